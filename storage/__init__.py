"""Storage package for collection persistence and backups."""

from storage.collection_store import CollectionStore, ensure_table
from storage.backup_service import BackupService

__all__ = [
    "CollectionStore",
    "ensure_table",
    "BackupService",
]
