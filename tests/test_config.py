"""Tests for environment-driven settings."""

from archive.config import ArchiveSettings


class TestArchiveSettings:
    def test_defaults(self):
        settings = ArchiveSettings()

        assert settings.db_path == "./contract_archive.db"
        assert settings.status_window_seconds == 96 * 15
        assert settings.max_payload_bytes == 2 * 1024 * 1024
        assert settings.reject_non_array_payloads is False

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path}/env.db")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example ,")
        monkeypatch.setenv("STATUS_SEGMENTS", "12")
        monkeypatch.setenv("STATUS_SEGMENT_SECONDS", "5")
        monkeypatch.setenv("REJECT_NON_ARRAY_PAYLOADS", "TRUE")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = ArchiveSettings.from_env()

        assert settings.db_path == f"{tmp_path}/env.db"
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.status_window_seconds == 60
        assert settings.reject_non_array_payloads is True
        assert settings.log_level == "DEBUG"
