"""Backup and restore of every archive collection."""

from typing import Any, Dict, List

from loguru import logger

from archive.config import TABLES
from archive.error_handling import StoreError, handle_errors
from storage.collection_store import CollectionStore


class BackupService:
    """Whole-archive export/import on top of a CollectionStore."""

    def __init__(self, store: CollectionStore):
        self.store = store

    def export(self) -> Dict[str, List[Dict[str, Any]]]:
        """Read every allow-listed collection.

        Returns:
            Mapping of collection name to its documents
        """
        backup = {table: self.store.list_documents(table) for table in TABLES}
        logger.info(
            "Backup exported",
            counts={table: len(docs) for table, docs in backup.items()}
        )
        return backup

    @handle_errors(StoreError)
    def restore(self, payload: Any) -> List[str]:
        """Replace the collections present in ``payload``.

        Collections missing from the payload, or whose value is not a list,
        are left untouched. All replacements share one transaction: if any
        collection fails, none of them change.

        Args:
            payload: Mapping shaped like the output of ``export``

        Returns:
            Names of the collections that were replaced
        """
        if not isinstance(payload, dict):
            logger.warning("Restore payload is not an object, nothing restored")
            return []

        restored = []
        with self.store.transaction() as conn:
            for table in TABLES:
                items = payload.get(table)
                if not isinstance(items, list):
                    continue
                self.store.replace_rows(conn, table, items)
                restored.append(table)

        logger.info(f"Restore completed: {', '.join(restored) or 'no collections'}")
        return restored
