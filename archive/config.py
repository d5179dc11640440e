"""Runtime configuration loaded from environment variables."""

import os
from typing import List

from dotenv import load_dotenv
from msgspec import Struct, field


TABLES = ("contracts", "users", "audit_log", "contract_types", "system_settings")

# Collections the client keeps in memory; system_settings is written directly
CLIENT_COLLECTIONS = ("contracts", "users", "audit_log", "contract_types")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class ArchiveSettings(Struct, kw_only=True):
    """Settings for the API service and its background sampler."""
    database_url: str = "sqlite:///./contract_archive.db"
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_files: bool = True
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )
    api_host: str = "0.0.0.0"
    api_port: int = 4000
    api_reload: bool = False
    tls_enabled: bool = False
    tls_cert_path: str = ""
    tls_key_path: str = ""
    status_segments: int = 96
    status_segment_seconds: float = 15.0
    status_sampler_enabled: bool = True
    db_max_bytes: int = 536870912  # 0.5 GB
    max_payload_mb: float = 2.0
    reject_non_array_payloads: bool = False
    qr_service_url: str = "https://api.qrserver.com/v1/create-qr-code/"
    qr_size: str = "120x120"
    public_base_url: str = ""
    default_license_number: str = "LIC-9821-LY"
    default_office_title: str = "محرر عقود"
    default_responsible_editor: str = "فتحي عبد الجواد"

    @property
    def db_path(self) -> str:
        """Filesystem path of the SQLite database."""
        if self.database_url.startswith("sqlite:///"):
            return self.database_url.replace("sqlite:///", "", 1)
        return self.database_url

    @property
    def status_window_seconds(self) -> float:
        return self.status_segments * self.status_segment_seconds

    @property
    def max_payload_bytes(self) -> int:
        return int(self.max_payload_mb * 1024 * 1024)

    @classmethod
    def from_env(cls) -> "ArchiveSettings":
        """Build settings from the process environment (and a .env file)."""
        load_dotenv()
        defaults = cls()

        cors_origins = os.getenv("CORS_ORIGINS")

        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
            log_dir=os.getenv("LOG_DIR", defaults.log_dir),
            log_to_files=_env_bool("LOG_TO_FILES", "true"),
            cors_origins=(
                [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
                if cors_origins else defaults.cors_origins
            ),
            api_host=os.getenv("API_HOST", defaults.api_host),
            api_port=int(os.getenv("API_PORT", str(defaults.api_port))),
            api_reload=_env_bool("API_RELOAD", "false"),
            tls_enabled=_env_bool("TLS_ENABLED", "false"),
            tls_cert_path=os.getenv("TLS_CERT_PATH", defaults.tls_cert_path),
            tls_key_path=os.getenv("TLS_KEY_PATH", defaults.tls_key_path),
            status_segments=int(os.getenv("STATUS_SEGMENTS", str(defaults.status_segments))),
            status_segment_seconds=float(
                os.getenv("STATUS_SEGMENT_SECONDS", str(defaults.status_segment_seconds))
            ),
            status_sampler_enabled=_env_bool("STATUS_SAMPLER_ENABLED", "true"),
            db_max_bytes=int(os.getenv("DB_MAX_BYTES", str(defaults.db_max_bytes))),
            max_payload_mb=float(os.getenv("MAX_PAYLOAD_MB", str(defaults.max_payload_mb))),
            reject_non_array_payloads=_env_bool("REJECT_NON_ARRAY_PAYLOADS", "false"),
            qr_service_url=os.getenv("QR_SERVICE_URL", defaults.qr_service_url),
            qr_size=os.getenv("QR_SIZE", defaults.qr_size),
            public_base_url=os.getenv("PUBLIC_BASE_URL", defaults.public_base_url),
            default_license_number=os.getenv("DEFAULT_LICENSE_NUMBER", defaults.default_license_number),
            default_office_title=os.getenv("DEFAULT_OFFICE_TITLE", defaults.default_office_title),
            default_responsible_editor=os.getenv(
                "DEFAULT_RESPONSIBLE_EDITOR", defaults.default_responsible_editor
            ),
        )
