"""Relational audit store with SQLite backend.

This module implements ``AuditRepository`` for transaction logs and access
audits. Thread safety is achieved through thread-local connections for file
databases and a single lock-protected connection for in-memory databases.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import nullcontext
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel

from auditadmin.errors import RecordNotFoundError
from auditadmin.schemas import DataType, SearchCriteria, SearchField, SearchType, SortField, resolve_sort

from .fields import (
    ACCESS_AUDIT_SEARCH_FIELDS,
    ACCESS_AUDIT_SORT_FIELDS,
    TRX_LOG_SEARCH_FIELDS,
    TRX_LOG_SORT_FIELDS,
)
from .records import AccessAudit, AccessAuditList, TrxLog, TrxLogList
from .repository import AuditRepository

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

_TRX_LOGS = "trx_logs"
_ACCESS_AUDITS = "access_audits"

_RANGE_OPERATORS = {
    SearchType.GREATER_THAN: ">",
    SearchType.GREATER_EQUAL_THAN: ">=",
    SearchType.LESS_THAN: "<",
    SearchType.LESS_EQUAL_THAN: "<=",
}


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        # Aware values are stored in UTC so ISO text compares chronologically
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def _date_param(value: Any) -> Any:
    """Normalize an ISO date string parameter the way stored dates are."""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _to_db(datetime.fromisoformat(text))
        except ValueError:
            return value
    return _to_db(value)


def _like_pattern(value: Any) -> str:
    escaped = str(value).strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _columns(model: Type[BaseModel]) -> List[str]:
    """Model fields stored as columns, excluding the primary key."""
    return [name for name in model.model_fields if name != "id"]


def build_where(
    criteria: SearchCriteria, search_fields: Sequence[SearchField]
) -> Tuple[str, List[Any]]:
    """Translate criteria parameters into a parameterized WHERE clause.

    Returns:
        The clause (starting with ``WHERE 1=1``) and its parameters.
    """
    clause = "WHERE 1=1"
    params: List[Any] = []

    for search_field in search_fields:
        value = criteria.get_param_value(search_field.client_field_name)
        if value is None or str(value).strip() == "":
            continue
        column = search_field.field_name

        if isinstance(value, (list, tuple, set, frozenset)):
            values = [_to_db(v) for v in value]
            if not values:
                continue
            placeholders = ", ".join("?" for _ in values)
            clause += f" AND {column} IN ({placeholders})"
            params.extend(values)
        elif search_field.search_type == SearchType.PARTIAL:
            clause += f" AND {column} LIKE ? ESCAPE '\\'"
            params.append(_like_pattern(value))
        elif search_field.search_type.is_range:
            clause += f" AND {column} {_RANGE_OPERATORS[search_field.search_type]} ?"
            if search_field.data_type == DataType.DATE:
                params.append(_date_param(value))
            else:
                params.append(_to_db(value))
        else:
            clause += f" AND {column} = ?"
            params.append(_to_db(value))

    return clause, params


class AuditStore(AuditRepository):
    """SQLite-backed store for transaction logs and access audits.

    Search and count translate a ``SearchCriteria`` through the relational
    field tables in :mod:`auditadmin.audit.fields`.

    Example:
        >>> store = AuditStore(":memory:")
        >>> audit = store.create_access_audit(AccessAudit(request_user="alice"))
        >>> store.get_access_audit(audit.id).request_user
        'alice'
    """

    def __init__(self, db_path: str = "audit.db"):
        """Initialize the audit store.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory.
        """
        self.db_path = db_path
        self._is_memory = db_path == ":memory:"

        self._local = threading.local()

        # In-memory databases need a single shared connection to keep data
        self._memory_conn: Optional[sqlite3.Connection] = None
        self._memory_lock = threading.Lock()

        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection for the current thread."""
        if self._is_memory:
            if self._memory_conn is None:
                with self._memory_lock:
                    if self._memory_conn is None:
                        self._memory_conn = sqlite3.connect(
                            ":memory:", check_same_thread=False
                        )
            return self._memory_conn

        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self.db_path)
            logger.debug(f"Created new SQLite connection for thread {threading.current_thread().name}")
        return self._local.conn

    def _guard(self):
        return self._memory_lock if self._is_memory else nullcontext()

    def _init_db(self) -> None:
        """Create the audit tables if they don't exist."""
        conn = self._get_connection()
        with self._guard():
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {_TRX_LOGS} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    create_date TEXT,
                    update_date TEXT,
                    owner TEXT,
                    updated_by TEXT,
                    object_class_type INTEGER NOT NULL DEFAULT 0,
                    object_id INTEGER,
                    object_name TEXT,
                    parent_object_class_type INTEGER NOT NULL DEFAULT 0,
                    parent_object_id INTEGER,
                    parent_object_name TEXT,
                    attribute_name TEXT,
                    previous_value TEXT,
                    new_value TEXT,
                    transaction_id TEXT,
                    action TEXT,
                    session_id TEXT,
                    request_id TEXT,
                    session_type TEXT
                )
            """)
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {_ACCESS_AUDITS} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    create_date TEXT,
                    update_date TEXT,
                    audit_type INTEGER NOT NULL DEFAULT 0,
                    access_result INTEGER NOT NULL DEFAULT 0,
                    access_type TEXT,
                    acl_enforcer TEXT,
                    agent_id TEXT,
                    client_ip TEXT,
                    client_type TEXT,
                    policy_id INTEGER NOT NULL DEFAULT 0,
                    repo_name TEXT,
                    repo_type INTEGER NOT NULL DEFAULT 0,
                    result_reason TEXT,
                    session_id TEXT,
                    event_time TEXT,
                    request_user TEXT,
                    action TEXT,
                    request_data TEXT,
                    resource_path TEXT,
                    resource_type TEXT,
                    sequence_number INTEGER NOT NULL DEFAULT 0,
                    event_count INTEGER NOT NULL DEFAULT 0,
                    event_duration INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_trx_create_date ON {_TRX_LOGS}(create_date)")
            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_audit_event_time ON {_ACCESS_AUDITS}(event_time)")
            conn.commit()

    # Generic row operations

    def _insert(self, table: str, record: BaseModel) -> int:
        now = datetime.now(timezone.utc)
        values = record.model_dump()
        values["create_date"] = values.get("create_date") or now
        values["update_date"] = now
        columns = _columns(type(record))

        conn = self._get_connection()
        with self._guard():
            cursor = conn.execute(
                f"INSERT INTO {table} ({', '.join(columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})",
                [_to_db(values[c]) for c in columns],
            )
            conn.commit()
        return cursor.lastrowid

    def _fetch(self, table: str, model: Type[RecordT], record_id: int) -> RecordT:
        columns = ["id"] + _columns(model)
        conn = self._get_connection()
        with self._guard():
            row = conn.execute(
                f"SELECT {', '.join(columns)} FROM {table} WHERE id = ?", (record_id,)
            ).fetchone()
        if row is None:
            raise RecordNotFoundError(model.__name__, record_id)
        return model(**dict(zip(columns, row)))

    def _update(self, table: str, record: BaseModel) -> None:
        if record.id is None:
            raise RecordNotFoundError(type(record).__name__, record.id)
        values = record.model_dump()
        values["update_date"] = datetime.now(timezone.utc)
        columns = [c for c in _columns(type(record)) if c != "create_date"]

        conn = self._get_connection()
        with self._guard():
            cursor = conn.execute(
                f"UPDATE {table} SET {', '.join(f'{c} = ?' for c in columns)} WHERE id = ?",
                [_to_db(values[c]) for c in columns] + [record.id],
            )
            conn.commit()
        if cursor.rowcount == 0:
            raise RecordNotFoundError(type(record).__name__, record.id)

    def _delete(self, table: str, kind: str, record_id: int, force: bool) -> None:
        conn = self._get_connection()
        with self._guard():
            cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
            conn.commit()
        if cursor.rowcount == 0:
            raise RecordNotFoundError(kind, record_id)
        logger.debug(f"Deleted {kind} id={record_id} force={force}")

    def _count(
        self, table: str, criteria: SearchCriteria, search_fields: Sequence[SearchField]
    ) -> int:
        where, params = build_where(criteria, search_fields)
        conn = self._get_connection()
        with self._guard():
            row = conn.execute(f"SELECT COUNT(*) FROM {table} {where}", params).fetchone()
        return int(row[0])

    def _search(
        self,
        table: str,
        model: Type[RecordT],
        criteria: SearchCriteria,
        search_fields: Sequence[SearchField],
        sort_fields: Sequence[SortField],
    ) -> Tuple[List[RecordT], int]:
        """Return one page of matching records and the total match count."""
        total = self._count(table, criteria, search_fields)

        columns = ["id"] + _columns(model)
        where, params = build_where(criteria, search_fields)
        query = f"SELECT {', '.join(columns)} FROM {table} {where}"

        sort = resolve_sort(criteria, sort_fields)
        if sort is not None:
            field_name, order = sort
            query += f" ORDER BY {field_name} {order.value.upper()}, id {order.value.upper()}"

        query += " LIMIT ? OFFSET ?"
        params.extend([criteria.max_rows, criteria.start_index])
        logger.debug(f"Audit SQL query={query} params={params}")

        conn = self._get_connection()
        with self._guard():
            rows = conn.execute(query, params).fetchall()
        return [model(**dict(zip(columns, row))) for row in rows], total

    # Transaction logs

    def get_trx_log(self, trx_log_id: int) -> TrxLog:
        return self._fetch(_TRX_LOGS, TrxLog, trx_log_id)

    def create_trx_log(self, trx_log: TrxLog) -> TrxLog:
        return self.get_trx_log(self._insert(_TRX_LOGS, trx_log))

    def update_trx_log(self, trx_log: TrxLog) -> TrxLog:
        self._update(_TRX_LOGS, trx_log)
        return self.get_trx_log(trx_log.id)

    def delete_trx_log(self, trx_log_id: int, force: bool) -> None:
        self._delete(_TRX_LOGS, "TrxLog", trx_log_id, force)

    def search_trx_logs(self, criteria: SearchCriteria) -> TrxLogList:
        results, total = self._search(
            _TRX_LOGS, TrxLog, criteria, TRX_LOG_SEARCH_FIELDS, TRX_LOG_SORT_FIELDS
        )
        return TrxLogList(
            start_index=criteria.start_index,
            page_size=criteria.max_rows,
            total_count=total,
            result_size=len(results),
            sort_by=criteria.sort_by,
            sort_type=criteria.sort_type,
            results=results,
        )

    def get_trx_log_search_count(self, criteria: SearchCriteria) -> int:
        return self._count(_TRX_LOGS, criteria, TRX_LOG_SEARCH_FIELDS)

    # Access audits

    def get_access_audit(self, access_audit_id: int) -> AccessAudit:
        return self._fetch(_ACCESS_AUDITS, AccessAudit, access_audit_id)

    def create_access_audit(self, access_audit: AccessAudit) -> AccessAudit:
        return self.get_access_audit(self._insert(_ACCESS_AUDITS, access_audit))

    def update_access_audit(self, access_audit: AccessAudit) -> AccessAudit:
        self._update(_ACCESS_AUDITS, access_audit)
        return self.get_access_audit(access_audit.id)

    def delete_access_audit(self, access_audit_id: int, force: bool) -> None:
        self._delete(_ACCESS_AUDITS, "AccessAudit", access_audit_id, force)

    def search_access_audits(self, criteria: SearchCriteria) -> AccessAuditList:
        results, total = self._search(
            _ACCESS_AUDITS,
            AccessAudit,
            criteria,
            ACCESS_AUDIT_SEARCH_FIELDS,
            ACCESS_AUDIT_SORT_FIELDS,
        )
        return AccessAuditList(
            start_index=criteria.start_index,
            page_size=criteria.max_rows,
            total_count=total,
            result_size=len(results),
            sort_by=criteria.sort_by,
            sort_type=criteria.sort_type,
            results=results,
        )

    def get_access_audit_search_count(self, criteria: SearchCriteria) -> int:
        return self._count(_ACCESS_AUDITS, criteria, ACCESS_AUDIT_SEARCH_FIELDS)

    def close(self) -> None:
        """Close database connections.

        For in-memory databases, closes the shared connection (data is lost).
        For file databases, closes this thread's connection.
        """
        if self._is_memory:
            with self._memory_lock:
                if self._memory_conn is not None:
                    self._memory_conn.close()
                    self._memory_conn = None
                    logger.debug("Closed in-memory audit store connection")
        else:
            if hasattr(self._local, "conn") and self._local.conn is not None:
                self._local.conn.close()
                self._local.conn = None
                logger.debug("Closed thread-local audit store connection")
