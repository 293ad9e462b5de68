"""
Ledger Store Module

Provides the key/value interface the state machine consumes, plus in-memory
(testing) and SQLite (persistence) engines. Values are opaque byte strings
stored byte-exact; put overwrites.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Union
import sqlite3
import threading
from pathlib import Path
from contextlib import contextmanager

from .errors import StoreError


class LedgerStore(ABC):
    """Abstract interface for ledger store backends"""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the value for key, or None if absent"""
        pass

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        """Write value under key, replacing any previous value"""
        pass

    def close(self) -> None:
        """Close store connection (default no-op)"""
        pass

    def begin_transaction(self) -> None:
        """Start a transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @contextmanager
    def serialize(self, key: str):
        """
        Hold exclusive access to key for a read-modify-write.

        The default does nothing: external stores must serialize conflicting
        writes per key themselves.
        """
        yield

    @property
    def transactional(self) -> bool:
        """Whether rollback actually discards writes"""
        return False

    @contextmanager
    def atomic(self):
        """Context manager for atomic operations"""
        self.begin_transaction()
        try:
            yield
            self.commit()
        except Exception:
            self.rollback()
            raise


def _check_value(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise StoreError(f"value must be bytes, got {type(value).__name__}")
    return bytes(value)


class InMemoryLedgerStore(LedgerStore):
    """In-memory store for testing and single-process use"""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: bytes) -> None:
        value = _check_value(value)
        with self._lock:
            self._data[key] = value

    @contextmanager
    def serialize(self, key: str):
        with self._lock:
            yield

    def get_all_data(self) -> Dict[str, bytes]:
        """Get all data for debugging/inspection"""
        with self._lock:
            return dict(self._data)


class SQLiteLedgerStore(LedgerStore):
    """SQLite store with real transaction support"""

    TABLE = "ledger_state"

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level='DEFERRED')
        self._lock = threading.RLock()
        self._in_transaction = False

        with self._lock:
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")
            self._connection.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.TABLE} (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL
                )
            """)
            self._connection.commit()

    @property
    def transactional(self) -> bool:
        return True

    @contextmanager
    def serialize(self, key: str):
        with self._lock:
            yield

    @contextmanager
    def atomic(self):
        """Hold the connection for the whole transaction"""
        with self._lock:
            with super().atomic():
                yield

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            try:
                cursor = self._connection.execute(
                    f"SELECT value FROM {self.TABLE} WHERE key = ?", (key,)
                )
                row = cursor.fetchone()
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e
            if row is None:
                return None
            return bytes(row[0])

    def put(self, key: str, value: bytes) -> None:
        value = _check_value(value)
        with self._lock:
            try:
                self._connection.execute(
                    f"INSERT OR REPLACE INTO {self.TABLE} (key, value) VALUES (?, ?)",
                    (key, sqlite3.Binary(value))
                )
                # Only commit if not in transaction
                if not self._in_transaction:
                    self._connection.commit()
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e

    def begin_transaction(self) -> None:
        with self._lock:
            if not self._in_transaction:
                # isolation_level='DEFERRED' opens the transaction on first write
                self._in_transaction = True

    def commit(self) -> None:
        with self._lock:
            if self._in_transaction:
                self._connection.commit()
                self._in_transaction = False

    def rollback(self) -> None:
        with self._lock:
            if self._in_transaction:
                self._connection.rollback()
                self._in_transaction = False

    def close(self) -> None:
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_store(backend: str = "memory", database_path: Union[str, Path] = ":memory:") -> LedgerStore:
    """Build a store engine from a backend name"""
    if backend == "memory":
        return InMemoryLedgerStore()
    if backend == "sqlite":
        return SQLiteLedgerStore(database_path)
    raise ValueError(f"Unknown storage backend: {backend}")
