"""
Document Store - JSON documents grouped in collections

The marketplace keeps users and orders as schemaless documents, addressed by
(collection, doc_id), the same way a hosted document database would. SQLite is
the backing store so a single file holds the whole marketplace.

Fun fact: A document store is just a projection store that forgot where its
events went. Nobody misses them.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterator

from fruitflow.kernel.errors import (
    DataSourceUnavailable,
    DocumentAlreadyExists,
    DocumentNotFound,
)
from fruitflow.kernel.logging import get_logger
from fruitflow.kernel.metrics import data_source_failures_total, documents_written_total
from fruitflow.kernel.retry import retry_on_sqlite_lock

logger = get_logger(__name__)


class SQLiteDocumentStore:
    """
    SQLite-based document store

    Schema:
    - documents table: (collection, doc_id) primary key, JSON body, update time

    Every document returned carries its own ``id`` key. Operational SQLite
    failures (locked or unreadable database) surface as DataSourceUnavailable
    after lock retries are exhausted.
    """

    def __init__(self, db_path: str | Path, timeout: float = 5.0) -> None:
        """
        Initialize document store with SQLite database

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds a connection waits on another writer's lock
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        """Create tables if they don't exist"""
        with self._connect("initialize_schema") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    doc_id TEXT NOT NULL,
                    data_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (collection, doc_id)
                )
            """)
            conn.commit()

    @contextmanager
    def _connect(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections"""
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as e:
            data_source_failures_total.labels(operation=operation).inc()
            raise DataSourceUnavailable(operation, str(e)) from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.OperationalError as e:
            data_source_failures_total.labels(operation=operation).inc()
            logger.warning("Document store operation failed", operation=operation, error=str(e))
            raise DataSourceUnavailable(operation, str(e)) from e
        finally:
            conn.close()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _decode(row: sqlite3.Row) -> dict[str, Any]:
        data = json.loads(row["data_json"])
        data["id"] = row["doc_id"]
        return data

    @staticmethod
    def _encode(data: dict[str, Any]) -> str:
        body = {k: v for k, v in data.items() if k != "id"}
        return json.dumps(body, default=str)

    @retry_on_sqlite_lock()
    def _begin_write(self, conn: sqlite3.Connection) -> None:
        # Take the write lock before reading so no other writer slips in
        conn.execute("BEGIN IMMEDIATE")

    @retry_on_sqlite_lock()
    def _fetch(self, conn: sqlite3.Connection, collection: str, doc_id: str) -> sqlite3.Row | None:
        cursor = conn.execute(
            "SELECT doc_id, data_json FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        )
        return cursor.fetchone()

    @retry_on_sqlite_lock()
    def _upsert(self, conn: sqlite3.Connection, collection: str, doc_id: str, body: str) -> None:
        conn.execute(
            """
            INSERT INTO documents (collection, doc_id, data_json, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(collection, doc_id) DO UPDATE SET
                data_json = excluded.data_json,
                updated_at = excluded.updated_at
        """,
            (collection, doc_id, body, self._now()),
        )
        conn.commit()

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """
        Load a document

        Returns:
            Document dict (with ``id``) if it exists, None otherwise
        """
        with self._connect("get") as conn:
            row = self._fetch(conn, collection, doc_id)
            return self._decode(row) if row else None

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or fully replace a document"""
        with self._connect("set") as conn:
            self._upsert(conn, collection, doc_id, self._encode(data))
        documents_written_total.labels(collection=collection, operation="set").inc()

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """
        Create a new document

        Raises:
            DocumentAlreadyExists: If doc_id is taken in the collection
        """
        with self._connect("create") as conn:
            self._begin_write(conn)
            if self._fetch(conn, collection, doc_id) is not None:
                raise DocumentAlreadyExists(collection, doc_id)
            self._upsert(conn, collection, doc_id, self._encode(data))
        documents_written_total.labels(collection=collection, operation="create").inc()

    def transform(
        self,
        collection: str,
        doc_id: str,
        change: Callable[[dict[str, Any]], dict[str, Any]],
    ) -> dict[str, Any]:
        """
        Read a document, compute fields from it and merge them back atomically

        The read and the write happen under one write lock, so a concurrent
        writer either lands before the read or waits until after the write.
        Fields that ``change`` does not return keep their stored values.

        Args:
            change: Receives the current document, returns the fields to merge

        Returns:
            The document after the merge

        Raises:
            DocumentNotFound: If the document does not exist
        """
        with self._connect("update") as conn:
            self._begin_write(conn)
            row = self._fetch(conn, collection, doc_id)
            if row is None:
                raise DocumentNotFound(collection, doc_id)
            merged = self._decode(row)
            fields = change(dict(merged))
            merged.update({k: v for k, v in fields.items() if k != "id"})
            self._upsert(conn, collection, doc_id, self._encode(merged))
        documents_written_total.labels(collection=collection, operation="update").inc()
        return merged

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Merge fields into an existing document

        Only the given fields change; see ``transform``.

        Raises:
            DocumentNotFound: If the document does not exist
        """
        return self.transform(collection, doc_id, lambda _current: fields)

    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document (missing documents are ignored)"""
        with self._connect("delete") as conn:
            conn.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            )
            conn.commit()
        documents_written_total.labels(collection=collection, operation="delete").inc()

    def list_documents(self, collection: str) -> list[dict[str, Any]]:
        """List every document in a collection, ordered by doc_id"""
        with self._connect("list") as conn:
            cursor = conn.execute(
                "SELECT doc_id, data_json FROM documents WHERE collection = ? ORDER BY doc_id",
                (collection,),
            )
            return [self._decode(row) for row in cursor.fetchall()]

    def query(self, collection: str, **equals: Any) -> list[dict[str, Any]]:
        """
        List documents whose fields equal all the given values

        Example:
            store.query("orders", customer_id="alice", assessment_submitted=True)
        """
        return [
            doc
            for doc in self.list_documents(collection)
            if all(doc.get(field) == value for field, value in equals.items())
        ]

    def count(self, collection: str) -> int:
        """Number of documents in a collection"""
        with self._connect("count") as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) AS n FROM documents WHERE collection = ?",
                (collection,),
            )
            return int(cursor.fetchone()["n"])

    def list_collections(self) -> list[str]:
        """List collection names that hold at least one document"""
        with self._connect("list_collections") as conn:
            cursor = conn.execute(
                "SELECT DISTINCT collection FROM documents ORDER BY collection"
            )
            return [row["collection"] for row in cursor.fetchall()]
