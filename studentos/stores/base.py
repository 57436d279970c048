"""Shared helpers for owner-scoped store accessors."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def store_errors(operation: str, entity_id: str | None = None) -> AsyncIterator[None]:
    """Re-raise driver failures as ``PersistenceError`` with operation context."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(
            f"Store operation {operation} failed: {e}",
            extra={"operation": operation, "entity_id": entity_id},
        )
        raise PersistenceError(operation, entity_id, cause=e) from e
