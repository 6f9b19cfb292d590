"""
Database engine, units of work and reactive queries.

`Database` is the single logical store shared by the catalog store and the
team store. Every write happens inside `transaction()`, which serializes
writers so that read-then-write sequences (count members, then insert)
cannot interleave. Committed changes are pushed to `watch()` subscribers.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from pokeroster.config import settings
from pokeroster.db.streams import TOUCHED_TABLES, ChangeNotifier, TrackingSession
from pokeroster.models.db import Base
from pokeroster.models.failure import StoreFailureError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Query = Callable[[AsyncSession], Awaitable[T]]


class Database:
    """
    Async store with serialized units of work and change notification.

    Usage:
        async with database.transaction() as session:
            ...  # committed on exit, rolled back on any exception

        async for snapshot in database.watch({"team"}, list_teams):
            ...
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            sync_session_class=TrackingSession,
            expire_on_commit=False,
        )
        self.notifier = ChangeNotifier()
        self._write_lock = asyncio.Lock()
        # In-memory SQLite hands every session the same connection
        self._shared_connection = isinstance(engine.pool, StaticPool)

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "Database":
        return cls(create_async_engine(url, echo=echo, pool_pre_ping=True))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Open one atomic unit of work.

        Commits when the block exits normally. Any exception rolls back.
        SQLAlchemy errors are re-raised as StoreFailureError.
        """
        async with self._write_lock:
            async with self.session_factory() as session:
                try:
                    async with session.begin():
                        yield session
                except SQLAlchemyError as e:
                    logger.error("Transaction rolled back: %s", e)
                    raise StoreFailureError("The store could not commit the change", str(e)) from e
                touched = session.info.pop(TOUCHED_TABLES, set())
        self.notifier.publish(touched)

    @asynccontextmanager
    async def read(self) -> AsyncIterator[AsyncSession]:
        """Open a read-only session."""
        if self._shared_connection:
            async with self._write_lock:
                async with self._read_session() as session:
                    yield session
        else:
            async with self._read_session() as session:
                yield session

    @asynccontextmanager
    async def _read_session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                logger.error("Read failed: %s", e)
                raise StoreFailureError("The store could not be read", str(e)) from e

    async def run(self, query: Query[T]) -> T:
        """Run a query in its own read session."""
        async with self.read() as session:
            return await query(session)

    async def watch(self, tables: Iterable[str], query: Query[T]) -> AsyncGenerator[T, None]:
        """
        Emit `query`'s result now and after every commit touching `tables`.

        Close the generator (or break out of the loop) to detach.
        """
        subscription = self.notifier.subscribe(tables)
        try:
            while True:
                yield await self.run(query)
                await subscription.wait()
        finally:
            subscription.close()

    async def init_db(self) -> None:
        """Create all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_db(self) -> None:
        """
        Drop all tables.

        WARNING: Destroys all data. Use only for testing.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


database = Database.from_url(settings.database_url, echo=settings.debug)


def get_database() -> Database:
    """
    Dependency that provides the application database.

    Usage in FastAPI:
        @app.get("/items")
        async def get_items(db: Database = Depends(get_database)):
            ...
    """
    return database


async def init_db() -> None:
    """
    Initialize database tables.

    Should be called once at application startup.
    """
    await database.init_db()
