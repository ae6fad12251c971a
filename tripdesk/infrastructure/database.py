"""
Async SQLAlchemy engine and session factory, wrapped in a ``Database`` store.

Uses ``asyncpg`` as the PostgreSQL driver for non-blocking I/O and
``aiosqlite`` for local runs and tests.  Each service receives the store at
construction; there is no process-wide session.

``transaction()`` is the only way to write: it commits on success, rolls
back on any error, and translates driver failures into domain errors so a
raw storage exception never reaches a caller.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tripdesk.config import Settings
from tripdesk.domain.errors import Conflict, StorageError

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def translate_integrity_error(exc: IntegrityError) -> Conflict:
    """Map a unique / foreign-key violation to a user-facing ``Conflict``."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    text = str(orig).lower()
    if code == _FOREIGN_KEY_VIOLATION or "foreign key" in text:
        return Conflict("Cannot delete: still referenced by other records.")
    if code == _UNIQUE_VIOLATION or "unique" in text:
        return Conflict("A record with that name already exists.")
    return Conflict(f"Constraint violation: {orig}")


class Database:
    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs):
        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(
                self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys
            )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        kwargs = {}
        if not settings.database_url.startswith("sqlite"):
            kwargs = {
                "pool_size": settings.db_pool_size,
                "max_overflow": settings.db_max_overflow,
            }
        return cls(settings.database_url, **kwargs)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """One atomic unit of work: commit on success, roll back on error."""
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    yield session
            except IntegrityError as exc:
                logger.info("Transaction rolled back: %s", exc.orig)
                raise translate_integrity_error(exc) from exc
            except SQLAlchemyError as exc:
                logger.error("Storage failure, transaction rolled back: %s", exc)
                raise StorageError(f"Storage failure: {exc}") from exc

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """A session for reads; nothing is committed."""
        async with self.session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                raise StorageError(f"Storage failure: {exc}") from exc

    async def create_all(self) -> None:
        from . import models  # noqa: F401  register tables

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
