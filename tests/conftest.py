"""Shared fixtures for the archive test suite."""

import pytest
from fastapi.testclient import TestClient

from archive.config import ArchiveSettings
from api.main import create_app
from storage import BackupService, CollectionStore


@pytest.fixture
def settings(tmp_path) -> ArchiveSettings:
    """Settings pointing at a throwaway database, sampler off."""
    return ArchiveSettings(
        database_url=f"sqlite:///{tmp_path}/archive.db",
        log_to_files=False,
        status_sampler_enabled=False,
    )


@pytest.fixture
def store(tmp_path) -> CollectionStore:
    return CollectionStore(str(tmp_path / "store.db"))


@pytest.fixture
def backups(store) -> BackupService:
    return BackupService(store)


@pytest.fixture
def client(settings):
    """API client with the lifespan (store, sampler) running."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def sample_contract() -> dict:
    """Contract document as the client stores it"""
    return {
        "id": 1700000000000,
        "title": "عقد بيع",
        "type": "بيع",
        "party1": {
            "name": "علي محمد",
            "type": "فرد",
            "idNumber": "A12345",
            "idType": "بطاقة هوية",
            "nationalId": "119900112233",
            "phone": "0912345678",
        },
        "party2": {
            "name": "شركة النور",
            "type": "شركة",
            "idNumber": "C-778",
            "idType": "رخصة",
        },
        "creationDate": "2024-03-05",
        "startDate": "2024-03-05",
        "endDate": "2025-03-05",
        "value": 15000,
        "status": "نهائي",
        "editorName": "فتحي عبد الجواد",
        "keywords": ["بيع", "سيارة"],
        "notes": "",
        "isArchived": False,
    }
