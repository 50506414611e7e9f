"""
Storage Backend Module

Provides the abstract storage interface and implementations for in-memory
(testing), SQLite (local fallback) and PostgreSQL (hosted troop database).
Rows are JSON documents addressed by table name and record id.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Union
from datetime import datetime, timezone
import sqlite3
import json
import threading
from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from contextlib import contextmanager

from .logging_config import get_logger


logger = get_logger("troop.storage")


@dataclass
class StorageRecord:
    """Base class for all stored records"""
    id: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        result = asdict(self)
        # Convert datetime objects to ISO strings
        result['created_at'] = self.created_at.isoformat()
        result['updated_at'] = self.updated_at.isoformat()
        for key, value in result.items():
            if isinstance(value, Enum):
                result[key] = value.value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StorageRecord':
        """Create instance from dictionary"""
        # Convert ISO strings back to datetime objects
        if 'created_at' in data and isinstance(data['created_at'], str):
            data['created_at'] = datetime.fromisoformat(data['created_at'])
        if 'updated_at' in data and isinstance(data['updated_at'], str):
            data['updated_at'] = datetime.fromisoformat(data['updated_at'])

        return cls(**data)


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Save a record to storage"""
        pass

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record from storage"""
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table"""
        pass

    @abstractmethod
    def delete(self, table: str, record_id: str) -> bool:
        """Delete a record from storage"""
        pass

    @abstractmethod
    def exists(self, table: str, record_id: str) -> bool:
        """Check if a record exists"""
        pass

    @abstractmethod
    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records matching filters"""
        pass

    @abstractmethod
    def count(self, table: str) -> int:
        """Count records in table"""
        pass

    @abstractmethod
    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def begin_transaction(self) -> None:
        """Start a database transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

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


class InMemoryStorage(StorageInterface):
    """
    In-memory storage implementation for testing and offline use.

    Transactions snapshot every table on begin and restore the snapshot on
    rollback. Nested transactions join the outermost one.
    """

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()
        self._snapshot: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None
        self._depth = 0

    def _ensure_table(self, table: str) -> None:
        """Ensure table exists"""
        if table not in self._data:
            self._data[table] = {}

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Save a record to memory"""
        with self._lock:
            self._ensure_table(table)
            # Deep copy to prevent external mutation
            self._data[table][record_id] = json.loads(json.dumps(data, default=str))

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record from memory"""
        with self._lock:
            self._ensure_table(table)
            record = self._data[table].get(record_id)
            if record:
                return json.loads(json.dumps(record))
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table"""
        with self._lock:
            self._ensure_table(table)
            return [json.loads(json.dumps(record)) for record in self._data[table].values()]

    def delete(self, table: str, record_id: str) -> bool:
        """Delete a record from memory"""
        with self._lock:
            self._ensure_table(table)
            if record_id in self._data[table]:
                del self._data[table][record_id]
                return True
            return False

    def exists(self, table: str, record_id: str) -> bool:
        """Check if a record exists"""
        with self._lock:
            self._ensure_table(table)
            return record_id in self._data[table]

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records matching filters"""
        with self._lock:
            self._ensure_table(table)
            results = []
            for record in self._data[table].values():
                match = True
                for key, value in filters.items():
                    if key not in record or record[key] != value:
                        match = False
                        break
                if match:
                    results.append(json.loads(json.dumps(record)))
            return results

    def count(self, table: str) -> int:
        """Count records in table"""
        with self._lock:
            self._ensure_table(table)
            return len(self._data[table])

    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        with self._lock:
            self._data[table] = {}

    def begin_transaction(self) -> None:
        """Snapshot all tables so a rollback can restore them"""
        self._lock.acquire()
        if self._depth == 0:
            self._snapshot = json.loads(json.dumps(self._data))
        self._depth += 1

    def commit(self) -> None:
        """Commit current transaction"""
        if self._depth == 0:
            return
        self._depth -= 1
        if self._depth == 0:
            self._snapshot = None
        self._lock.release()

    def rollback(self) -> None:
        """Restore the snapshot taken by the outermost transaction"""
        if self._depth == 0:
            return
        self._depth -= 1
        if self._depth == 0 and self._snapshot is not None:
            self._data = self._snapshot
            self._snapshot = None
        self._lock.release()

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass


class SQLDocumentStorage(StorageInterface):
    """
    Shared logic for SQL backends that keep one JSON document per row

    Each table has the columns (id, data, created_at, updated_at). Subclasses
    open the connection and supply the placeholder style, the table schema,
    the upsert statement and how a stored document is decoded.
    """

    placeholder = "?"

    def __init__(self):
        self._connection = None
        self._lock = threading.RLock()
        self._depth = 0
        self._tables = set()

    @property
    def _in_transaction(self) -> bool:
        return self._depth > 0

    @abstractmethod
    def _schema(self, table: str) -> List[str]:
        """CREATE statements for one table"""
        pass

    @abstractmethod
    def _upsert(self, table: str, record_id: str, data_json: str) -> None:
        """Insert or replace one document"""
        pass

    @abstractmethod
    def _decode(self, value: Any) -> Dict[str, Any]:
        """Stored data column to a document"""
        pass

    def _query(self, sql: str, params: Optional[tuple] = None, fetch: Optional[str] = None) -> Any:
        """Run one statement; fetch is None (rowcount), 'one' or 'all'"""
        cursor = self._connection.cursor()
        try:
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, params)
            if fetch == "one":
                return cursor.fetchone()
            if fetch == "all":
                return cursor.fetchall()
            return cursor.rowcount
        finally:
            cursor.close()

    def _autocommit(self) -> None:
        """Commit a standalone write; writes inside atomic() wait for the outer commit"""
        if not self._in_transaction:
            self._connection.commit()

    def _ensure_table(self, table: str) -> None:
        if table in self._tables:
            return
        for statement in self._schema(table):
            self._query(statement)
        self._autocommit()
        self._tables.add(table)

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._ensure_table(table)
            self._upsert(table, record_id, json.dumps(data, default=str))
            self._autocommit()

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            row = self._query(
                f"SELECT data FROM {table} WHERE id = {self.placeholder}", (record_id,), fetch="one"
            )
            return self._decode(row['data']) if row else None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Every document in insertion order"""
        with self._lock:
            self._ensure_table(table)
            rows = self._query(f"SELECT data FROM {table} ORDER BY created_at", fetch="all")
            return [self._decode(row['data']) for row in rows]

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            deleted = self._query(f"DELETE FROM {table} WHERE id = {self.placeholder}", (record_id,))
            self._autocommit()
            return deleted > 0

    def exists(self, table: str, record_id: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            row = self._query(
                f"SELECT 1 FROM {table} WHERE id = {self.placeholder} LIMIT 1", (record_id,), fetch="one"
            )
            return row is not None

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Documents whose top-level keys equal every filter value"""
        return [
            record for record in self.load_all(table)
            if all(key in record and record[key] == value for key, value in filters.items())
        ]

    def count(self, table: str) -> int:
        with self._lock:
            self._ensure_table(table)
            return self._query(f"SELECT COUNT(*) AS count FROM {table}", fetch="one")['count']

    def clear_table(self, table: str) -> None:
        with self._lock:
            self._ensure_table(table)
            self._query(f"DELETE FROM {table}")
            self._autocommit()

    def begin_transaction(self) -> None:
        """Open (or join) a transaction; the driver begins it on the first write"""
        self._lock.acquire()
        self._depth += 1

    def commit(self) -> None:
        if self._depth == 0:
            return
        self._depth -= 1
        if self._depth == 0:
            self._connection.commit()
        self._lock.release()

    def rollback(self) -> None:
        if self._depth == 0:
            return
        self._depth -= 1
        if self._depth == 0:
            self._connection.rollback()
            # tables created inside the transaction are gone again
            self._tables.clear()
        self._lock.release()

    def close(self) -> None:
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


class SQLiteStorage(SQLDocumentStorage):
    """SQLite storage, used when no hosted database is configured"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        super().__init__()
        self.db_path = str(db_path)
        # DEFERRED: the driver opens a transaction on the first write and holds it until commit
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level='DEFERRED')
        self._connection.row_factory = sqlite3.Row

        if self.db_path != ":memory:":
            self._connection.execute("PRAGMA journal_mode = WAL")
            self._connection.execute("PRAGMA synchronous = NORMAL")
            self._connection.commit()

    def _schema(self, table: str) -> List[str]:
        return [
            f"""CREATE TABLE IF NOT EXISTS {table} (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )""",
            f"CREATE INDEX IF NOT EXISTS idx_{table}_created_at ON {table}(created_at)",
        ]

    def _upsert(self, table: str, record_id: str, data_json: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        # Keep the original created_at so load_all stays in insertion order
        self._query(f"""
            INSERT OR REPLACE INTO {table} (id, data, created_at, updated_at)
            VALUES (?, ?, COALESCE((SELECT created_at FROM {table} WHERE id = ?), ?), ?)
        """, (record_id, data_json, record_id, now, now))

    def _decode(self, value: Any) -> Dict[str, Any]:
        return json.loads(value)


class PostgreSQLStorage(SQLDocumentStorage):
    """PostgreSQL storage for the hosted troop database (JSONB documents)"""

    placeholder = "%s"

    def __init__(self, connection_string: str):
        super().__init__()
        try:
            import psycopg2
            import psycopg2.extras
        except ImportError as e:
            raise ImportError(
                "psycopg2 is required for PostgreSQL storage. Install with: pip install troop-cookies[postgres]"
            ) from e
        self.psycopg2 = psycopg2
        self.extras = psycopg2.extras
        self.connection_string = connection_string
        self._connect()

    def _connect(self) -> None:
        with self._lock:
            self._connection = self.psycopg2.connect(
                self.connection_string,
                cursor_factory=self.extras.RealDictCursor
            )
            # Transactions are managed by atomic()
            self._connection.autocommit = False
        logger.info("Connected to PostgreSQL troop database")

    def _schema(self, table: str) -> List[str]:
        return [
            f"""CREATE TABLE IF NOT EXISTS {table} (
                    id TEXT PRIMARY KEY,
                    data JSONB NOT NULL,
                    created_at TIMESTAMPTZ DEFAULT NOW(),
                    updated_at TIMESTAMPTZ DEFAULT NOW()
                )""",
            f"CREATE INDEX IF NOT EXISTS idx_{table}_created_at ON {table}(created_at)",
        ]

    def _upsert(self, table: str, record_id: str, data_json: str) -> None:
        now = datetime.now(timezone.utc)
        self._query(f"""
            INSERT INTO {table} (id, data, created_at, updated_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE SET
                data = EXCLUDED.data,
                updated_at = EXCLUDED.updated_at
        """, (record_id, data_json, now, now))

    def _decode(self, value: Any) -> Dict[str, Any]:
        # psycopg2 decodes JSONB into Python objects already
        return dict(value)

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Filter in the database with JSONB containment"""
        if not filters:
            return self.load_all(table)
        with self._lock:
            self._ensure_table(table)
            rows = self._query(
                f"SELECT data FROM {table} WHERE data @> %s::jsonb ORDER BY created_at",
                (json.dumps(filters, default=str),), fetch="all"
            )
            return [self._decode(row['data']) for row in rows]


DEFAULT_SQLITE_PATH = "troop_cookies.db"


def create_storage(database_url: Optional[str]) -> StorageInterface:
    """
    Build a storage backend from a database URL.

    ``memory://`` gives an in-memory store, ``sqlite:///path`` a SQLite file
    and ``postgresql://...`` the hosted database. An empty URL falls back to
    a local SQLite file.
    """
    url = (database_url or "").strip()

    if not url:
        logger.info(f"No database configured, using local SQLite file {DEFAULT_SQLITE_PATH}")
        return SQLiteStorage(DEFAULT_SQLITE_PATH)

    if url.startswith("memory://"):
        return InMemoryStorage()

    if url.startswith("sqlite://"):
        path = url[len("sqlite:///"):] if url.startswith("sqlite:///") else ""
        return SQLiteStorage(path or ":memory:")

    if url.startswith("postgresql://") or url.startswith("postgres://"):
        return PostgreSQLStorage(url)

    raise ValueError(f"Unsupported database URL: {url}")
