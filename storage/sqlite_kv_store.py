"""
SQLite key-value store.

Implements KeyValueStore on a single ``kv`` table in WAL mode. Writes go
through one lock-guarded sqlite3 connection; snapshot views are separate
read-only aiosqlite connections holding an open read transaction, so a long
scan sees a fixed point in time and never blocks the writer.
"""

import logging
import sqlite3
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional, Tuple, Union

import aiosqlite

from .kv_interface import KeyLike, KeyValueStore, SnapshotView, StoreError, to_key_bytes

logger = logging.getLogger(__name__)


def _blob_row(key, value) -> Optional[Tuple[bytes, bytes]]:
    """Convert a raw (key, value) row to bytes, None if either column is not a BLOB."""
    try:
        return bytes(key), bytes(value)
    except TypeError as e:
        logger.warning(f"Skipping unreadable row {key!r}: {e}")
        return None


class SQLiteSnapshotView(SnapshotView):
    """Snapshot view backed by a read-only aiosqlite connection."""

    def __init__(self, connection: aiosqlite.Connection):
        self._connection = connection

    async def iter_prefix(self, prefix: KeyLike) -> AsyncIterator[Tuple[bytes, bytes]]:
        prefix_bytes = to_key_bytes(prefix)
        async with self._connection.execute(
            "SELECT key, value FROM kv WHERE key >= ? ORDER BY key",
            (prefix_bytes,)
        ) as cursor:
            async for raw_key, raw_value in cursor:
                row = _blob_row(raw_key, raw_value)
                if row is None:
                    continue
                if not row[0].startswith(prefix_bytes):
                    break
                yield row


class SQLiteKeyValueStore(KeyValueStore):
    """
    File-backed key-value store on SQLite.

    Keys are stored as BLOBs, so ordering is plain byte order, the same order
    a prefix scan walks.
    """

    def __init__(self, db_path: Union[str, Path], connection_timeout: float = 30.0):
        super().__init__()
        self.db_path = Path(db_path)
        self.connection_timeout = connection_timeout
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self) -> None:
        with self._lock:
            if self._connection is not None:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                connection = sqlite3.connect(
                    str(self.db_path),
                    timeout=self.connection_timeout,
                    check_same_thread=False,
                    isolation_level=None
                )
                connection.execute("PRAGMA journal_mode=WAL")
                connection.execute("""
                    CREATE TABLE IF NOT EXISTS kv (
                        key BLOB PRIMARY KEY,
                        value BLOB NOT NULL
                    ) WITHOUT ROWID
                """)
            except sqlite3.Error as e:
                raise StoreError(f"Failed to open key-value store at {self.db_path}: {e}") from e
            self._connection = connection
            self.logger.debug(f"Opened key-value store at {self.db_path}")

    def close(self) -> None:
        with self._lock:
            if self._connection is None:
                return
            try:
                self._connection.close()
            finally:
                self._connection = None
            self.logger.debug(f"Closed key-value store at {self.db_path}")

    def _require_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise StoreError(f"Key-value store at {self.db_path} is not open")
        return self._connection

    def put(self, key: KeyLike, value: bytes) -> None:
        with self._lock:
            self._require_connection().execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (to_key_bytes(key), bytes(value))
            )

    def get(self, key: KeyLike) -> Optional[bytes]:
        with self._lock:
            row = self._require_connection().execute(
                "SELECT value FROM kv WHERE key = ?",
                (to_key_bytes(key),)
            ).fetchone()
        return bytes(row[0]) if row else None

    def delete(self, key: KeyLike) -> bool:
        with self._lock:
            cursor = self._require_connection().execute(
                "DELETE FROM kv WHERE key = ?",
                (to_key_bytes(key),)
            )
            return cursor.rowcount > 0

    def update(self, fn: Callable[[KeyValueStore], None]) -> None:
        with self._lock:
            connection = self._require_connection()
            connection.execute("BEGIN IMMEDIATE")
            try:
                fn(self)
            except BaseException:
                connection.execute("ROLLBACK")
                raise
            connection.execute("COMMIT")

    def scan_prefix(self, prefix: KeyLike) -> List[Tuple[bytes, bytes]]:
        prefix_bytes = to_key_bytes(prefix)
        entries = []
        with self._lock:
            cursor = self._require_connection().execute(
                "SELECT key, value FROM kv WHERE key >= ? ORDER BY key",
                (prefix_bytes,)
            )
            for raw_key, raw_value in cursor:
                row = _blob_row(raw_key, raw_value)
                if row is None:
                    continue
                if not row[0].startswith(prefix_bytes):
                    break
                entries.append(row)
        return entries

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator[SQLiteSnapshotView]:
        if not self.is_open:
            raise StoreError(f"Key-value store at {self.db_path} is not open")
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        async with aiosqlite.connect(uri, uri=True, timeout=self.connection_timeout, isolation_level=None) as connection:
            await connection.execute("BEGIN")
            # The first read pins the WAL snapshot for the rest of the transaction
            async with connection.execute("SELECT 1 FROM kv LIMIT 1") as cursor:
                await cursor.fetchall()
            try:
                yield SQLiteSnapshotView(connection)
            finally:
                await connection.rollback()
