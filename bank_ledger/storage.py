"""
Storage Backend Module

Provides the abstract table-storage interface and two implementations:
in-memory (testing) and SQLite (persistence). Records are JSON documents
keyed by string id; monetary values are stored as Decimal strings.

Both backends support ``atomic()`` blocks that either persist every write
made inside them or none of them, and hand out integer ids from named
sequences. Blocks nest; a failure inside a nested block aborts the outermost
one, even when an enclosing block catches the error and carries on.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Set, Union
from datetime import datetime, timezone
import copy
import sqlite3
import json
import threading
from pathlib import Path
from contextlib import contextmanager

from .errors import PersistenceFailure


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Save (insert or replace) a record"""
        pass

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record, None if absent"""
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table in insertion order"""
        pass

    @abstractmethod
    def delete(self, table: str, record_id: str) -> bool:
        """Delete a record, True if it existed"""
        pass

    @abstractmethod
    def exists(self, table: str, record_id: str) -> bool:
        pass

    @abstractmethod
    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records whose fields equal every filter value"""
        pass

    @abstractmethod
    def count(self, table: str) -> int:
        pass

    @abstractmethod
    def clear_table(self, table: str) -> None:
        pass

    @abstractmethod
    def next_id(self, sequence: str) -> int:
        """Return the next integer from a named sequence, starting at 1"""
        pass

    @abstractmethod
    def close(self) -> None:
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

    def _write_lock(self):
        """Lock held for the whole of an atomic block"""
        return _NullLock()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Context manager for atomic operations

        Raises:
            PersistenceFailure: The commit failed, or a nested block failed and
                its error was swallowed; nothing from the block is kept
        """
        with self._write_lock():
            self.begin_transaction()
            try:
                yield
                self.commit()
            except BaseException:
                self.rollback()
                raise


class _NullLock:
    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def _matches(record: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    for key, value in filters.items():
        if key not in record or record[key] != value:
            return False
    return True


class InMemoryStorage(StorageInterface):
    """In-memory storage implementation for testing"""

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._sequences: Dict[str, int] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._aborted = False
        self._snapshot = None

    def _ensure_table(self, table: str) -> None:
        if table not in self._data:
            self._data[table] = {}

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._ensure_table(table)
            # Round-trip through JSON so callers never share state with the store
            self._data[table][record_id] = json.loads(json.dumps(data, default=str))

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            record = self._data[table].get(record_id)
            if record is not None:
                return copy.deepcopy(record)
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            return [copy.deepcopy(record) for record in self._data[table].values()]

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            return self._data[table].pop(record_id, None) is not None

    def exists(self, table: str, record_id: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            return record_id in self._data[table]

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            return [
                copy.deepcopy(record)
                for record in self._data[table].values()
                if _matches(record, filters)
            ]

    def count(self, table: str) -> int:
        with self._lock:
            self._ensure_table(table)
            return len(self._data[table])

    def clear_table(self, table: str) -> None:
        with self._lock:
            self._data[table] = {}

    def next_id(self, sequence: str) -> int:
        with self._lock:
            value = self._sequences.get(sequence, 0) + 1
            self._sequences[sequence] = value
            return value

    def begin_transaction(self) -> None:
        with self._lock:
            if self._depth == 0:
                self._snapshot = (copy.deepcopy(self._data), dict(self._sequences))
                self._aborted = False
            self._depth += 1

    def commit(self) -> None:
        with self._lock:
            if self._depth == 0:
                return
            self._depth -= 1
            if self._depth > 0:
                return
            if self._aborted:
                self._restore_snapshot()
                self._snapshot = None
                self._aborted = False
                raise PersistenceFailure("Atomic block aborted by an inner failure")
            self._snapshot = None

    def rollback(self) -> None:
        with self._lock:
            if self._depth == 0:
                return
            self._restore_snapshot()
            self._depth -= 1
            # An inner failure dooms the enclosing block as well
            self._aborted = self._depth > 0
            if self._depth == 0:
                self._snapshot = None

    def _restore_snapshot(self) -> None:
        data, sequences = self._snapshot
        self._data, self._sequences = copy.deepcopy(data), dict(sequences)

    def _write_lock(self):
        return self._lock

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass

    def get_all_data(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Get all data for debugging/inspection"""
        with self._lock:
            return copy.deepcopy(self._data)


class SQLiteStorage(StorageInterface):
    """SQLite storage implementation for persistence"""

    SEQUENCE_TABLE = "id_sequences"

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._lock = threading.RLock()
        self._depth = 0
        self._aborted = False
        self._known_tables: Set[str] = set()
        try:
            # DEFERRED so writes inside atomic() stay uncommitted until commit()
            self._connection = sqlite3.connect(
                self.db_path, check_same_thread=False, isolation_level='DEFERRED'
            )
            self._connection.row_factory = sqlite3.Row

            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")

            self._connection.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.SEQUENCE_TABLE} (
                    name TEXT PRIMARY KEY,
                    value INTEGER NOT NULL
                )
            """)
            self._connection.commit()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Cannot open SQLite database {self.db_path}: {e}") from e

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        if self._connection is None:
            raise PersistenceFailure("Storage is closed")
        try:
            return self._connection.execute(sql, params)
        except sqlite3.Error as e:
            raise PersistenceFailure(f"SQLite error: {e}") from e

    def _autocommit(self) -> None:
        # Writes outside an atomic block are committed immediately
        if not self.in_transaction:
            try:
                self._connection.commit()
            except sqlite3.Error as e:
                self._discard()
                raise PersistenceFailure(f"SQLite commit failed: {e}") from e

    def _ensure_table(self, table: str) -> None:
        """Ensure table exists with proper schema"""
        if table in self._known_tables:
            return
        self._execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{table}_created_at
            ON {table}(created_at)
        """)
        self._autocommit()
        self._known_tables.add(table)

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._ensure_table(table)
            now = datetime.now(timezone.utc).isoformat()
            data_json = json.dumps(data, default=str)

            # Upsert keeps the original rowid, so load_all stays in insertion order
            self._execute(f"""
                INSERT INTO {table} (id, data, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
            """, (record_id, data_json, now, now))
            self._autocommit()

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            row = self._execute(
                f"SELECT data FROM {table} WHERE id = ?", (record_id,)
            ).fetchone()
            if row:
                return json.loads(row['data'])
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            cursor = self._execute(f"SELECT data FROM {table} ORDER BY rowid")
            return [json.loads(row['data']) for row in cursor.fetchall()]

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            cursor = self._execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
            self._autocommit()
            return cursor.rowcount > 0

    def exists(self, table: str, record_id: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            cursor = self._execute(
                f"SELECT 1 FROM {table} WHERE id = ? LIMIT 1", (record_id,)
            )
            return cursor.fetchone() is not None

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records matching filters (JSON field equality)"""
        with self._lock:
            self._ensure_table(table)
            if not filters:
                return self.load_all(table)

            conditions = []
            params: List[Any] = []
            for key, value in filters.items():
                conditions.append("json_extract(data, ?) = ?")
                params.extend([f"$.{key}", value])

            cursor = self._execute(f"""
                SELECT data FROM {table}
                WHERE {" AND ".join(conditions)}
                ORDER BY rowid
            """, tuple(params))
            results = [json.loads(row['data']) for row in cursor.fetchall()]
            # json_extract compares loosely across types; re-check exactly
            return [record for record in results if _matches(record, filters)]

    def count(self, table: str) -> int:
        with self._lock:
            self._ensure_table(table)
            return self._execute(f"SELECT COUNT(*) AS count FROM {table}").fetchone()['count']

    def clear_table(self, table: str) -> None:
        with self._lock:
            self._ensure_table(table)
            self._execute(f"DELETE FROM {table}")
            self._autocommit()

    def next_id(self, sequence: str) -> int:
        with self._lock:
            self._execute(f"""
                INSERT INTO {self.SEQUENCE_TABLE} (name, value) VALUES (?, 1)
                ON CONFLICT(name) DO UPDATE SET value = value + 1
            """, (sequence,))
            row = self._execute(
                f"SELECT value FROM {self.SEQUENCE_TABLE} WHERE name = ?", (sequence,)
            ).fetchone()
            self._autocommit()
            return row['value']

    def begin_transaction(self) -> None:
        with self._lock:
            # isolation_level='DEFERRED' opens the transaction on the first write
            if self._depth == 0:
                self._aborted = False
            self._depth += 1

    def commit(self) -> None:
        with self._lock:
            if self._depth == 0:
                return
            if self._depth > 1:
                self._depth -= 1
                return
            if self._aborted:
                self._depth = 0
                self._aborted = False
                self._discard()
                raise PersistenceFailure("Atomic block aborted by an inner failure")
            try:
                self._connection.commit()
            except sqlite3.Error as e:
                # Depth stays at 1 so the caller's rollback discards the writes
                raise PersistenceFailure(f"SQLite commit failed: {e}") from e
            self._depth = 0

    def rollback(self) -> None:
        with self._lock:
            if self._depth == 0:
                return
            self._depth -= 1
            self._aborted = self._depth > 0
            self._discard()

    def _discard(self) -> None:
        self._known_tables.clear()
        try:
            self._connection.rollback()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"SQLite rollback failed: {e}") from e

    def _write_lock(self):
        return self._lock

    def close(self) -> None:
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None
