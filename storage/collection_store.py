"""Collection store using SQLite for document persistence.

Every allow-listed collection is a table of ``(id, position, data)`` rows
where ``data`` is the JSON document. Writes always describe the complete
desired collection: the store upserts the given documents by id and deletes
every row whose id is not in the payload, inside one transaction.
"""

import random
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import msgspec
from loguru import logger

from archive.config import TABLES
from archive.error_handling import (
    ContractNotFoundError,
    InvalidTableError,
    PayloadError,
    StoreError,
    handle_errors,
)
from archive.logging_config import get_table_logger, log_store_operation


def ensure_table(name: str) -> str:
    """Validate a collection name against the allow-list.

    Raises:
        InvalidTableError: If the name is not an allow-listed collection
    """
    if name not in TABLES:
        raise InvalidTableError(name)
    return name


def fallback_id() -> int:
    """Id for a document that arrives without a numeric one."""
    return int(time.time() * 1000 + random.random() * 1000)


def document_id(item: Dict[str, Any]) -> Optional[int]:
    """Return the document's numeric id, or None when it has none."""
    value = item.get("id")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


class CollectionStore:
    """SQLite-backed store of whole JSON collections.

    Connections are opened per operation and always closed; multi-statement
    writes run in a transaction that rolls back on any failure.
    """

    def __init__(self, db_path: str = "contract_archive.db"):
        """Initialize the store and create missing tables.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._ensure_database_exists()
        logger.info(f"CollectionStore initialized with db_path={db_path}")

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=30)

    @handle_errors(StoreError)
    def _ensure_database_exists(self) -> None:
        """Create database and tables if they don't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        with self.transaction() as conn:
            for table in TABLES:
                conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        id INTEGER PRIMARY KEY,
                        position INTEGER NOT NULL DEFAULT 0,
                        data TEXT NOT NULL
                    )
                """)
        logger.debug("Database schema initialized successfully")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Open a connection inside a transaction.

        Commits when the block exits normally, rolls back on any exception
        and closes the connection on every path.
        """
        conn = self._connect()
        try:
            conn.execute("BEGIN")
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @log_store_operation("list")
    @handle_errors(StoreError)
    def list_documents(self, table: str) -> List[Dict[str, Any]]:
        """Return every document of a collection in stored order.

        Args:
            table: Collection name

        Returns:
            List of documents

        Raises:
            InvalidTableError: If the collection is not allow-listed
            StoreError: If the query fails
        """
        ensure_table(table)
        with self._reader() as conn:
            rows = conn.execute(
                f"SELECT data FROM {table} ORDER BY position, id"
            ).fetchall()
        return [msgspec.json.decode(row[0]) for row in rows]

    @handle_errors(StoreError)
    def get_document(self, table: str, item_id: int) -> Optional[Dict[str, Any]]:
        """Fetch one document by id, or None."""
        ensure_table(table)
        with self._reader() as conn:
            row = conn.execute(
                f"SELECT data FROM {table} WHERE id = ?", (item_id,)
            ).fetchone()
        if not row:
            return None
        return msgspec.json.decode(row[0])

    def get_contract(self, contract_id: int) -> Dict[str, Any]:
        """Fetch one contract.

        Raises:
            ContractNotFoundError: If no contract has this id
        """
        contract = self.get_document("contracts", contract_id)
        if contract is None:
            logger.warning(f"Contract not found: {contract_id}")
            raise ContractNotFoundError(contract_id)
        return contract

    @handle_errors(StoreError)
    def first_document(self, table: str) -> Optional[Dict[str, Any]]:
        """First document of a collection (used for single-row settings)."""
        ensure_table(table)
        with self._reader() as conn:
            row = conn.execute(
                f"SELECT data FROM {table} ORDER BY position, id LIMIT 1"
            ).fetchone()
        if not row:
            return None
        return msgspec.json.decode(row[0])

    @log_store_operation("replace")
    @handle_errors(StoreError)
    def replace_collection(self, table: str, items: List[Any]) -> int:
        """Make the stored collection equal to ``items``.

        Args:
            table: Collection name
            items: Complete desired collection

        Returns:
            Number of documents stored

        Raises:
            InvalidTableError: If the collection is not allow-listed
            PayloadError: If an item is not a JSON object or two items share
                an id (nothing is written)
            StoreError: If any statement fails (nothing is written)
        """
        ensure_table(table)
        with self.transaction() as conn:
            count = self.replace_rows(conn, table, items)
        get_table_logger(table).info(f"Collection replaced with {count} documents")
        return count

    def replace_rows(self, conn: sqlite3.Connection, table: str, items: List[Any]) -> int:
        """Replace a collection using an already-open transaction.

        Raises:
            PayloadError: If an item is not an object or two items share an id
        """
        # Explicit ids first, so fallback ids can never collide with them
        used_ids = set()
        for position, item in enumerate(items):
            if not isinstance(item, dict):
                raise PayloadError(
                    f"Item {position} of {table} is not an object"
                )
            item_id = document_id(item)
            if item_id is None:
                continue
            if item_id in used_ids:
                raise PayloadError(f"Duplicate id {item_id} in {table}")
            used_ids.add(item_id)

        rows = []
        for position, item in enumerate(items):
            item_id = document_id(item)
            if item_id is None:
                item_id = fallback_id()
                while item_id in used_ids:
                    item_id += 1
                used_ids.add(item_id)
                item = {**item, "id": item_id}
            rows.append((item_id, position, msgspec.json.encode(item).decode()))

        keep_ids = [row[0] for row in rows]
        if keep_ids:
            conn.execute(
                "CREATE TEMP TABLE IF NOT EXISTS _keep_ids (id INTEGER PRIMARY KEY)"
            )
            conn.execute("DELETE FROM _keep_ids")
            conn.executemany(
                "INSERT OR IGNORE INTO _keep_ids (id) VALUES (?)",
                [(item_id,) for item_id in keep_ids]
            )
            conn.execute(
                f"DELETE FROM {table} WHERE id NOT IN (SELECT id FROM _keep_ids)"
            )
            conn.execute("DELETE FROM _keep_ids")
        else:
            conn.execute(f"DELETE FROM {table}")

        conn.executemany(
            f"""
            INSERT INTO {table} (id, position, data) VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                position = excluded.position,
                data = excluded.data
            """,
            rows
        )
        return len(rows)

    @handle_errors(StoreError)
    def ping(self) -> float:
        """Run a trivial query.

        Returns:
            Round-trip time in seconds
        """
        start = time.perf_counter()
        with self._reader() as conn:
            conn.execute("SELECT 1").fetchone()
        return time.perf_counter() - start

    def check_tables(self) -> bool:
        """Whether every collection answers a count query."""
        try:
            with self._reader() as conn:
                for table in TABLES:
                    conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Collection check failed: {e}")
            return False
        return True

    @handle_errors(StoreError)
    def size_bytes(self) -> int:
        """Current size of the database file as reported by SQLite."""
        with self._reader() as conn:
            page_count = conn.execute("PRAGMA page_count").fetchone()[0]
            page_size = conn.execute("PRAGMA page_size").fetchone()[0]
        return int(page_count) * int(page_size)
