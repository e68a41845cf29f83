"""
Storage Backend Module

Provides the abstract account store interface and implementations for
in-memory (testing) and SQLite (persistence). Records are plain dicts; all
balances are stored as Decimal strings.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Union, Tuple, NamedTuple
from decimal import Decimal
from datetime import datetime, timezone
import sqlite3
import json
import threading
from dataclasses import dataclass, asdict
from enum import Enum
from pathlib import Path
from contextlib import contextmanager


ACCOUNT_FIELDS = ("id", "branch", "number", "name", "balance")
UPDATABLE_FIELDS = ("branch", "number", "name")


class AccountKey(NamedTuple):
    """Address of a single account"""
    branch: int
    number: int


class SortOrder(Enum):
    """Sort direction for account queries"""
    ASCENDING = 1
    DESCENDING = -1


class AdjustOutcome(Enum):
    """Outcome of a conditional balance adjustment"""
    APPLIED = "applied"
    NOT_FOUND = "not_found"
    BELOW_MINIMUM = "below_minimum"


@dataclass
class BalanceAdjustment:
    """Result of conditional_adjust_balance; record is the post-update
    snapshot when applied, the untouched record when refused"""
    outcome: AdjustOutcome
    record: Optional[Dict[str, Any]] = None

    @property
    def applied(self) -> bool:
        return self.outcome == AdjustOutcome.APPLIED


@dataclass
class BalanceStats:
    """Aggregate of balances over a set of accounts"""
    count: int
    total: Decimal
    average: Decimal


@dataclass
class UpdateOne:
    """A single set-fields operation targeted by storage id"""
    account_id: str
    fields: Dict[str, Any]


@dataclass
class BulkWriteResult:
    """Summary of a bulk_write batch"""
    matched_count: int
    modified_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


SortSpec = List[Tuple[str, SortOrder]]


def _matches(record: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    """Exact-value match over every filter key"""
    for key, value in filters.items():
        if key not in record or record[key] != value:
            return False
    return True


def _sort_value(record: Dict[str, Any], field: str):
    value = record[field]
    if field == "balance":
        return Decimal(value)
    return value


def _sort_records(records: List[Dict[str, Any]], sort: Optional[SortSpec]) -> List[Dict[str, Any]]:
    """Lexicographic multi-key sort; stable, so applied last key first"""
    if not sort:
        return records
    for field, order in reversed(sort):
        records = sorted(
            records,
            key=lambda r: _sort_value(r, field),
            reverse=order == SortOrder.DESCENDING
        )
    return records


def _stats(records: List[Dict[str, Any]]) -> Optional[BalanceStats]:
    if not records:
        return None
    total = sum((Decimal(r["balance"]) for r in records), Decimal("0"))
    return BalanceStats(count=len(records), total=total, average=total / len(records))


def _check_fields(fields: Dict[str, Any]) -> None:
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields cannot be updated in bulk: {sorted(unknown)}")


class AccountStore(ABC):
    """Abstract interface for account storage backends"""

    @abstractmethod
    def insert(self, record: Dict[str, Any]) -> None:
        """Insert a new account record; duplicate (branch, number) raises ValueError"""
        pass

    @abstractmethod
    def find_one(self, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """First record matching filters in store order"""
        pass

    @abstractmethod
    def find(self, filters: Dict[str, Any], sort: Optional[SortSpec] = None,
             limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Records matching filters, optionally sorted and limited"""
        pass

    @abstractmethod
    def conditional_adjust_balance(self, key: AccountKey, delta: Decimal,
                                   min_resulting_balance: Optional[Decimal] = None) -> BalanceAdjustment:
        """
        Atomically add delta to the balance of the account at key.

        When min_resulting_balance is given and the new balance would fall
        below it, the record is left untouched and BELOW_MINIMUM is returned.
        """
        pass

    @abstractmethod
    def find_one_and_remove(self, key: AccountKey) -> Optional[Dict[str, Any]]:
        """Delete the account at key and return its last state"""
        pass

    @abstractmethod
    def balance_stats(self, filters: Dict[str, Any]) -> Optional[BalanceStats]:
        """Count/sum/average of balances; None when nothing matches"""
        pass

    @abstractmethod
    def bulk_write(self, operations: List[UpdateOne]) -> Optional[BulkWriteResult]:
        """Apply a batch of set-field operations; None for an empty batch"""
        pass

    @abstractmethod
    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count records matching filters"""
        pass

    @abstractmethod
    def distinct(self, field: str) -> List[Any]:
        """Sorted distinct values of a field"""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every account"""
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

    def __enter__(self) -> 'AccountStore':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class InMemoryStorage(AccountStore):
    """In-memory storage implementation for testing"""

    def __init__(self):
        # id -> record, insertion ordered
        self._data: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()

    @staticmethod
    def _copy(record: Dict[str, Any]) -> Dict[str, Any]:
        # Deep copy to prevent external mutation
        return json.loads(json.dumps(record, default=str))

    def _locate(self, key: AccountKey) -> Optional[Dict[str, Any]]:
        for record in self._data.values():
            if record["branch"] == key.branch and record["number"] == key.number:
                return record
        return None

    def insert(self, record: Dict[str, Any]) -> None:
        with self._lock:
            if self._locate(AccountKey(record["branch"], record["number"])):
                raise ValueError(
                    f"Account {record['number']} already exists in branch {record['branch']}"
                )
            self._data[record["id"]] = self._copy(record)

    def find_one(self, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            for record in self._data.values():
                if _matches(record, filters):
                    return self._copy(record)
            return None

    def find(self, filters: Dict[str, Any], sort: Optional[SortSpec] = None,
             limit: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._lock:
            results = [self._copy(r) for r in self._data.values() if _matches(r, filters)]
        results = _sort_records(results, sort)
        if limit is not None:
            results = results[:limit]
        return results

    def conditional_adjust_balance(self, key: AccountKey, delta: Decimal,
                                   min_resulting_balance: Optional[Decimal] = None) -> BalanceAdjustment:
        with self._lock:
            record = self._locate(key)
            if record is None:
                return BalanceAdjustment(AdjustOutcome.NOT_FOUND)

            new_balance = Decimal(record["balance"]) + delta
            if min_resulting_balance is not None and new_balance < min_resulting_balance:
                return BalanceAdjustment(AdjustOutcome.BELOW_MINIMUM, self._copy(record))

            record["balance"] = str(new_balance)
            record["updated_at"] = datetime.now(timezone.utc).isoformat()
            return BalanceAdjustment(AdjustOutcome.APPLIED, self._copy(record))

    def find_one_and_remove(self, key: AccountKey) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._locate(key)
            if record is None:
                return None
            del self._data[record["id"]]
            return self._copy(record)

    def balance_stats(self, filters: Dict[str, Any]) -> Optional[BalanceStats]:
        return _stats(self.find(filters))

    def bulk_write(self, operations: List[UpdateOne]) -> Optional[BulkWriteResult]:
        if not operations:
            return None
        for op in operations:
            _check_fields(op.fields)

        matched = modified = 0
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            for op in operations:
                record = self._data.get(op.account_id)
                if record is None:
                    continue
                matched += 1
                if any(record.get(k) != v for k, v in op.fields.items()):
                    record.update(op.fields)
                    record["updated_at"] = now
                    modified += 1
        return BulkWriteResult(matched_count=matched, modified_count=modified)

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        with self._lock:
            return sum(1 for r in self._data.values() if _matches(r, filters or {}))

    def distinct(self, field: str) -> List[Any]:
        if field not in ACCOUNT_FIELDS:
            raise ValueError(f"Unknown account field: {field}")
        with self._lock:
            return sorted({r[field] for r in self._data.values()})

    def clear(self) -> None:
        with self._lock:
            self._data = {}

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass


class SQLiteStorage(AccountStore):
    """SQLite storage implementation for persistence"""

    TABLE = "accounts"

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        # Autocommit mode; write transactions are opened explicitly with BEGIN IMMEDIATE
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level=None)
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._tx_depth = 0

        # Enable WAL mode for better concurrent access
        if self.db_path != ":memory:":
            with self._lock:
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")

        self._ensure_table()

    def _ensure_table(self) -> None:
        """Ensure table exists with proper schema"""
        with self._lock:
            self._connection.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.TABLE} (
                    id TEXT PRIMARY KEY,
                    branch INTEGER NOT NULL,
                    number INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    balance TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            # Not unique: promotion may move a number into a branch that already uses it
            self._connection.execute(f"""
                CREATE INDEX IF NOT EXISTS idx_{self.TABLE}_branch_number
                ON {self.TABLE}(branch, number)
            """)

    @staticmethod
    def _where(filters: Dict[str, Any]) -> Tuple[str, List[Any]]:
        if not filters:
            return "", []
        unknown = set(filters) - set(ACCOUNT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown account fields: {sorted(unknown)}")
        clause = " AND ".join(f"{key} = ?" for key in filters)
        return f"WHERE {clause}", list(filters.values())

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> Dict[str, Any]:
        return {key: row[key] for key in row.keys()}

    def _select(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        where, params = self._where(filters)
        cursor = self._connection.execute(
            f"SELECT * FROM {self.TABLE} {where} ORDER BY rowid", params
        )
        return [self._row_to_record(row) for row in cursor.fetchall()]

    def insert(self, record: Dict[str, Any]) -> None:
        with self.atomic():
            existing = self._select({"branch": record["branch"], "number": record["number"]})
            if existing:
                raise ValueError(
                    f"Account {record['number']} already exists in branch {record['branch']}"
                )
            now = datetime.now(timezone.utc).isoformat()
            self._connection.execute(f"""
                INSERT INTO {self.TABLE} (id, branch, number, name, balance, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                record["id"], record["branch"], record["number"], record["name"],
                str(record["balance"]), record.get("created_at", now), record.get("updated_at", now)
            ))

    def find_one(self, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            where, params = self._where(filters)
            cursor = self._connection.execute(
                f"SELECT * FROM {self.TABLE} {where} ORDER BY rowid LIMIT 1", params
            )
            row = cursor.fetchone()
            return self._row_to_record(row) if row else None

    def find(self, filters: Dict[str, Any], sort: Optional[SortSpec] = None,
             limit: Optional[int] = None) -> List[Dict[str, Any]]:
        # Balances are Decimal strings, so ordering happens in Python
        with self._lock:
            results = self._select(filters)
        results = _sort_records(results, sort)
        if limit is not None:
            results = results[:limit]
        return results

    def conditional_adjust_balance(self, key: AccountKey, delta: Decimal,
                                   min_resulting_balance: Optional[Decimal] = None) -> BalanceAdjustment:
        with self.atomic():
            cursor = self._connection.execute(
                f"SELECT * FROM {self.TABLE} WHERE branch = ? AND number = ? ORDER BY rowid LIMIT 1",
                (key.branch, key.number)
            )
            row = cursor.fetchone()
            if row is None:
                return BalanceAdjustment(AdjustOutcome.NOT_FOUND)

            record = self._row_to_record(row)
            new_balance = Decimal(record["balance"]) + delta
            if min_resulting_balance is not None and new_balance < min_resulting_balance:
                return BalanceAdjustment(AdjustOutcome.BELOW_MINIMUM, record)

            record["balance"] = str(new_balance)
            record["updated_at"] = datetime.now(timezone.utc).isoformat()
            self._connection.execute(
                f"UPDATE {self.TABLE} SET balance = ?, updated_at = ? WHERE id = ?",
                (record["balance"], record["updated_at"], record["id"])
            )
            return BalanceAdjustment(AdjustOutcome.APPLIED, record)

    def find_one_and_remove(self, key: AccountKey) -> Optional[Dict[str, Any]]:
        with self.atomic():
            cursor = self._connection.execute(
                f"SELECT * FROM {self.TABLE} WHERE branch = ? AND number = ? ORDER BY rowid LIMIT 1",
                (key.branch, key.number)
            )
            row = cursor.fetchone()
            if row is None:
                return None
            record = self._row_to_record(row)
            self._connection.execute(f"DELETE FROM {self.TABLE} WHERE id = ?", (record["id"],))
            return record

    def balance_stats(self, filters: Dict[str, Any]) -> Optional[BalanceStats]:
        with self._lock:
            return _stats(self._select(filters))

    def bulk_write(self, operations: List[UpdateOne]) -> Optional[BulkWriteResult]:
        if not operations:
            return None
        for op in operations:
            _check_fields(op.fields)

        matched = modified = 0
        now = datetime.now(timezone.utc).isoformat()
        with self.atomic():
            for op in operations:
                cursor = self._connection.execute(
                    f"SELECT * FROM {self.TABLE} WHERE id = ?", (op.account_id,)
                )
                row = cursor.fetchone()
                if row is None:
                    continue
                matched += 1
                record = self._row_to_record(row)
                if all(record.get(k) == v for k, v in op.fields.items()):
                    continue
                assignments = ", ".join(f"{k} = ?" for k in op.fields)
                self._connection.execute(
                    f"UPDATE {self.TABLE} SET {assignments}, updated_at = ? WHERE id = ?",
                    (*op.fields.values(), now, op.account_id)
                )
                modified += 1
        return BulkWriteResult(matched_count=matched, modified_count=modified)

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        with self._lock:
            where, params = self._where(filters or {})
            cursor = self._connection.execute(
                f"SELECT COUNT(*) AS count FROM {self.TABLE} {where}", params
            )
            return cursor.fetchone()['count']

    def distinct(self, field: str) -> List[Any]:
        if field not in ACCOUNT_FIELDS:
            raise ValueError(f"Unknown account field: {field}")
        with self._lock:
            cursor = self._connection.execute(
                f"SELECT DISTINCT {field} FROM {self.TABLE} ORDER BY {field}"
            )
            return [row[0] for row in cursor.fetchall()]

    def clear(self) -> None:
        with self.atomic():
            self._connection.execute(f"DELETE FROM {self.TABLE}")

    def begin_transaction(self) -> None:
        """Open a write transaction, holding the lock until commit/rollback"""
        self._lock.acquire()
        if self._tx_depth == 0:
            try:
                self._connection.execute("BEGIN IMMEDIATE")
            except Exception:
                self._lock.release()
                raise
        # Nested use joins the outer transaction
        self._tx_depth += 1

    def _finish(self, statement: str) -> None:
        try:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                self._connection.execute(statement)
        finally:
            self._lock.release()

    def commit(self) -> None:
        """Commit current transaction"""
        self._finish("COMMIT")

    def rollback(self) -> None:
        """Rollback current transaction"""
        self._finish("ROLLBACK")

    def close(self) -> None:
        """Close SQLite connection"""
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_storage(backend: str = "sqlite", database_path: Union[str, Path] = "mybank.db") -> AccountStore:
    """
    Build a store for the configured backend.

    Raises:
        ValueError: If the backend name is unknown
    """
    if backend == "memory":
        return InMemoryStorage()
    if backend == "sqlite":
        return SQLiteStorage(database_path)
    raise ValueError(f"Unknown storage backend: {backend}")
