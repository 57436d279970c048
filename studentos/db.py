"""SQLAlchemy 2.x async database setup.

Builds the engine and session factory from settings; no connection
credentials are hard-coded here.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import DatabaseSettings
from .errors import PersistenceError

logger = logging.getLogger(__name__)


def build_engine(config: DatabaseSettings) -> AsyncEngine:
    """Create the async engine; pool options only apply to pooled drivers."""
    kwargs: dict = {"echo": config.echo}
    if not config.url.startswith("sqlite"):
        kwargs.update(pool_size=config.pool_size, max_overflow=config.max_overflow, pool_pre_ping=True)
    return create_async_engine(config.url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@asynccontextmanager
async def transaction(
    session: AsyncSession,
    operation: str,
    entity_id: str | None = None,
) -> AsyncIterator[AsyncSession]:
    """Commit on success, roll back on any failure.

    Driver errors raised by the body or by the commit itself surface as
    ``PersistenceError``; application errors propagate unchanged after the
    rollback.

    Usage:
        async with transaction(session, "confirm_candidate", candidate_id):
            ...
    """
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(
            f"Store transaction failed during {operation}: {e}",
            extra={"operation": operation, "entity_id": entity_id},
        )
        raise PersistenceError(operation, entity_id, cause=e) from e
    except BaseException:
        await session.rollback()
        raise
