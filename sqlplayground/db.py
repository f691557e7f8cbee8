# sqlplayground/db.py
"""
Query execution against the playground database.

WARNING: statements are executed verbatim. There is no statement allow-list,
no read-only enforcement and no injection defense; anything the user or the
model sends runs with the privileges of DATABASE_URL. Do not point this at a
database you are not prepared to lose, and do not expose it to untrusted users.

Env vars:
- DATABASE_URL (default: sqlite+aiosqlite:///./playground.db)
- DB_POOL_SIZE (default: 5), DB_MAX_OVERFLOW (default: 5)
- DB_ECHO (default: false)
"""

import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import inspect
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from sqlplayground import monitoring

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./playground.db")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "5"))
DB_ECHO = os.getenv("DB_ECHO", "false").lower() in ("1", "true", "yes")

_LOG_SQL_CHARS = 500


def binary_to_text(value: Any) -> Any:
    """Hex-encode BLOB/bytea values; everything else is returned as is."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    return value


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    type: Any = None  # driver type code: PostgreSQL OID under asyncpg, None under SQLite


@dataclass(frozen=True)
class QueryResult:
    columns: List[ColumnInfo] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    row_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": [{"name": c.name, "type": c.type} for c in self.columns],
            "rows": [{k: binary_to_text(v) for k, v in row.items()} for row in self.rows],
            "row_count": self.row_count,
        }


@dataclass(frozen=True)
class QuerySuccess:
    result: QueryResult
    ok: bool = True


@dataclass(frozen=True)
class QueryFailure:
    message: str
    ok: bool = False


ExecutionOutcome = Union[QuerySuccess, QueryFailure]


def normalize_url(url: str) -> str:
    """Point bare postgres/sqlite URLs at the async drivers."""
    if url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    if url.startswith("sqlite://"):
        return "sqlite+aiosqlite://" + url[len("sqlite://"):]
    return url


def make_engine(url: str, **kwargs) -> AsyncEngine:
    url = normalize_url(url)
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_size", DB_POOL_SIZE)
        kwargs.setdefault("max_overflow", DB_MAX_OVERFLOW)
        kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(url, echo=DB_ECHO, **kwargs)


engine = make_engine(DATABASE_URL)


def reconfigure(url: str) -> AsyncEngine:
    """Replace the module engine (for tests and tooling). Returns the new engine."""
    global engine
    engine = make_engine(url)
    return engine


def _error_message(exc: Exception) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class QueryExecutor:
    """
    Runs one statement per call on a pooled connection.

    The connection is checked out with `async with` so it goes back to the
    pool on success, on error and on task cancellation.
    """

    def __init__(self, db_engine: Optional[AsyncEngine] = None):
        self._engine = db_engine

    @property
    def engine(self) -> AsyncEngine:
        # fall back to the module engine so reconfigure() is picked up
        return self._engine if self._engine is not None else engine

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None,
                      source: str = "direct") -> ExecutionOutcome:
        start = time.time()
        try:
            async with self.engine.connect() as conn:
                if params:
                    result = await conn.exec_driver_sql(sql, tuple(params))
                else:
                    result = await conn.exec_driver_sql(sql)

                if result.returns_rows:
                    # cursor is released once rows are consumed, so read metadata first
                    description = result.cursor.description if result.cursor is not None else None
                    names = list(result.keys())
                    type_codes = [d[1] for d in description] if description else [None] * len(names)
                    columns = [ColumnInfo(name=n, type=t) for n, t in zip(names, type_codes)]
                    rows = [dict(r) for r in result.mappings().all()]
                    row_count = len(rows)
                else:
                    columns, rows = [], []
                    row_count = max(result.rowcount, 0)
                await conn.commit()
        except (SQLAlchemyError, OSError) as e:
            message = _error_message(e)
            monitoring.observe_sql(start, source, "fail")
            monitoring.logger.warning(
                "Query failed",
                extra={"sql": sql[:_LOG_SQL_CHARS], "source": source, "error": message},
            )
            return QueryFailure(message=message)

        monitoring.observe_sql(start, source, "success")
        monitoring.set_last_result_rows(row_count)
        monitoring.logger.info(
            "Executed query",
            extra={
                "sql": sql[:_LOG_SQL_CHARS],
                "source": source,
                "duration_ms": int((time.time() - start) * 1000),
                "rows": row_count,
            },
        )
        return QuerySuccess(result=QueryResult(columns=columns, rows=rows, row_count=row_count))

    async def list_tables(self) -> List[str]:
        """Names of the tables visible through the configured connection."""
        async with self.engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: sorted(inspect(sync_conn).get_table_names()))
