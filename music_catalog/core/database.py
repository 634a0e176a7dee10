"""
Storage adapter.

Wraps an async SQLAlchemy engine behind three operations (execute,
fetch_one, fetch_many) plus an explicit transaction boundary. One
``Database`` is built per application at startup and handed to route
functions through the ``get_db`` dependency.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Union

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import Executable

from music_catalog.core.errors import StorageError

logger = logging.getLogger(__name__)

Statement = Union[str, Executable]
Params = Optional[Mapping[str, Any]]
Row = Dict[str, Any]

# Range of a SQLite INTEGER column
INTEGER_MIN = -(2 ** 63)
INTEGER_MAX = 2 ** 63 - 1


class Base(DeclarativeBase):
    """Declarative base shared by all catalog models."""


@dataclass
class ExecuteResult:
    """Outcome of a mutating statement."""
    inserted_id: Optional[int]
    rows_affected: int


def _compile(statement: Statement) -> Executable:
    if isinstance(statement, str):
        return text(statement)
    return statement


def _wrap_fault(exc: SQLAlchemyError) -> StorageError:
    cause = getattr(exc, "orig", None) or exc
    logger.exception("Storage fault: %s", cause)
    return StorageError()


class _Executor(ABC):
    """The three storage operations, run against one connection."""

    async def _run(self, conn: AsyncConnection, statement: Statement, params: Params):
        try:
            return await conn.execute(_compile(statement), dict(params) if params else None)
        except SQLAlchemyError as exc:
            raise _wrap_fault(exc) from exc

    @staticmethod
    def _to_execute_result(statement: Statement, result) -> ExecuteResult:
        inserted_id = None
        if getattr(statement, "is_insert", False):
            primary_key = result.inserted_primary_key
            if primary_key:
                inserted_id = primary_key[0]
        return ExecuteResult(inserted_id=inserted_id, rows_affected=result.rowcount)

    @abstractmethod
    async def execute(self, statement: Statement, params: Params = None) -> ExecuteResult:
        ...

    @abstractmethod
    async def fetch_one(self, statement: Statement, params: Params = None) -> Optional[Row]:
        ...

    @abstractmethod
    async def fetch_many(self, statement: Statement, params: Params = None) -> List[Row]:
        ...


class Transaction(_Executor):
    """Storage operations bound to a single open transaction."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def execute(self, statement: Statement, params: Params = None) -> ExecuteResult:
        result = await self._run(self._conn, statement, params)
        return self._to_execute_result(statement, result)

    async def fetch_one(self, statement: Statement, params: Params = None) -> Optional[Row]:
        result = await self._run(self._conn, statement, params)
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def fetch_many(self, statement: Statement, params: Params = None) -> List[Row]:
        result = await self._run(self._conn, statement, params)
        return [dict(row) for row in result.mappings().all()]


class Database(_Executor):
    """
    Shared storage handle.

    Every call checks out the engine's connection under a lock, so the
    statements of one transaction never interleave with another request's
    writes. Each standalone call commits on its own.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        kwargs: Dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url.endswith("://"):
                kwargs["poolclass"] = StaticPool
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **kwargs)
        self._lock = asyncio.Lock()

        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """Run several statements atomically: all commit or none do."""
        async with self._lock:
            try:
                async with self.engine.begin() as conn:
                    yield Transaction(conn)
            except SQLAlchemyError as exc:
                raise _wrap_fault(exc) from exc

    async def execute(self, statement: Statement, params: Params = None) -> ExecuteResult:
        async with self.transaction() as tx:
            return await tx.execute(statement, params)

    async def fetch_one(self, statement: Statement, params: Params = None) -> Optional[Row]:
        async with self.transaction() as tx:
            return await tx.fetch_one(statement, params)

    async def fetch_many(self, statement: Statement, params: Params = None) -> List[Row]:
        async with self.transaction() as tx:
            return await tx.fetch_many(statement, params)

    async def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        # Import models so their tables are registered on Base.metadata
        import music_catalog.models  # noqa: F401

        async with self._lock:
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except SQLAlchemyError as exc:
                raise _wrap_fault(exc) from exc
        logger.info("Schema ready on %s", self.engine.url.render_as_string(hide_password=True))

    async def dispose(self) -> None:
        await self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async def get_db(request: Request) -> Database:
    """FastAPI dependency returning the application's storage handle."""
    return request.app.state.db
