"""
Store handle for the service.

One ``Database`` is created per process (or per test) and passed to the
services that need it. ``transaction()`` is the only way the services touch
the store: it opens a session, begins a transaction, bounds lock waits, rolls
back on any failure and translates driver errors into ``StorageError``.

Row locking:
- PostgreSQL: ``SELECT ... FOR UPDATE`` on the flight instance row, bounded by
  ``SET LOCAL lock_timeout``.
- SQLite: no row locks, so every transaction starts with ``BEGIN IMMEDIATE``
  which takes the database write lock up front; waits are bounded by the
  driver busy timeout.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings
from .exceptions import LockTimeoutError, StorageError
from .models import Base


LOCK_NOT_AVAILABLE = "55P03"


def _is_lock_timeout(exc: DBAPIError) -> bool:
    if getattr(exc.orig, "sqlstate", None) == LOCK_NOT_AVAILABLE:
        return True
    return "database is locked" in str(exc.orig)


def _install_sqlite_locking(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        # take over BEGIN from the driver
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    def __init__(self, url: str, *, lock_timeout: float = 5.0, echo: bool = False, **engine_kwargs):
        self.url = url
        self.lock_timeout = lock_timeout
        if url.startswith("sqlite"):
            engine_kwargs.setdefault("connect_args", {"timeout": lock_timeout})
        self.engine = create_async_engine(url, echo=echo, future=True, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            _install_sqlite_locking(self.engine)
        self.session_maker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        kwargs = {}
        if not settings.is_sqlite:
            kwargs = {
                "pool_size": settings.DB_POOL_SIZE,
                "max_overflow": settings.DB_POOL_MAX_OVERFLOW,
                "pool_timeout": settings.DB_POOL_TIMEOUT,
                "pool_pre_ping": True,
            }
        return cls(
            settings.DATABASE_URL_ASYNC,
            lock_timeout=settings.LOCK_TIMEOUT_SECONDS,
            echo=settings.DB_ECHO,
            **kwargs,
        )

    @property
    def supports_row_locks(self) -> bool:
        return self.engine.dialect.name == "postgresql"

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session inside one transaction; commit on clean exit, roll back otherwise."""
        async with self.session_maker() as session:
            try:
                async with session.begin():
                    if self.supports_row_locks:
                        # SET does not take bind parameters; value is a configured int
                        timeout_ms = int(self.lock_timeout * 1000)
                        await session.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))
                    yield session
            except DBAPIError as e:
                if _is_lock_timeout(e):
                    logger.warning(f"⏳ [DB] Lock wait exceeded {self.lock_timeout}s")
                    raise LockTimeoutError("Timed out waiting for a database lock") from e
                logger.error(f"💥 [DB] Transaction failed: {e.orig}")
                raise StorageError("Database operation failed") from e
            except SQLAlchemyError as e:
                logger.error(f"💥 [DB] Transaction failed: {e}")
                raise StorageError("Database operation failed") from e
            except OSError as e:
                logger.error(f"💥 [DB] Database unreachable: {e}")
                raise StorageError("Database unreachable") from e

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
