"""Database engine, session and lifecycle management."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import func, insert, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.db.base import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_SECONDS = 30


class Database:
    """Owns the engine and hands out sessions; opened at startup, disposed at shutdown."""

    def __init__(self, url: str, echo: bool = False) -> None:
        connect_args = {}
        if url.startswith("sqlite"):
            # Writers queue on the database lock instead of failing immediately.
            connect_args["timeout"] = SQLITE_BUSY_TIMEOUT_SECONDS
        self.engine: AsyncEngine = create_async_engine(url, future=True, echo=echo, connect_args=connect_args)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False, class_=AsyncSession)

    async def create_all(self) -> None:
        # Import models so their tables are registered on the metadata.
        import app.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def seed_seats(self, seat_count: int) -> int:
        """Insert seats 1..seat_count if the table is empty. Returns how many seats appeared."""
        from app.models.seat import Seat

        async with self.session() as session:
            before = await session.scalar(select(func.count()).select_from(Seat))
            if before:
                return 0
            # Ids already inserted by a concurrently starting process are skipped.
            await session.execute(
                self._insert_ignoring_duplicates(Seat.__table__),
                [{"id": seat_id} for seat_id in range(1, seat_count + 1)],
            )
            await session.commit()
            after = await session.scalar(select(func.count()).select_from(Seat))
        logger.info("Seeded %d seats", after - before)
        return after - before

    def _insert_ignoring_duplicates(self, table):
        dialect = self.engine.dialect.name
        if dialect == "sqlite":
            return sqlite_insert(table).on_conflict_do_nothing()
        if dialect == "postgresql":
            return postgresql_insert(table).on_conflict_do_nothing()
        return insert(table)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Provide a transactional scope around a series of operations."""

        async with self.session_factory() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def dispose(self) -> None:
        await self.engine.dispose()
