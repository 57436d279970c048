"""Owner-scoped access to the ``task_candidates`` relation.

Candidates are created by the external extraction pipeline; ``create``
exists for provisioning and tests. Status changes go through
``transition``, a compare-and-set on the current status.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..errors import NotFound
from .base import store_errors

logger = logging.getLogger(__name__)

# ``status`` only moves through ``transition``.
UPDATABLE_FIELDS = frozenset({"title", "type", "module", "due_date", "location"})


@dataclass
class CandidateCreate:
    """Input mirroring what the extraction pipeline writes."""
    user_id: str
    source_message_id: str
    type: models.TaskType
    title: str
    confidence: models.ConfidenceLevel
    confidence_score: float | None = None
    module: str | None = None
    due_date: datetime | None = None
    location: str | None = None
    extraction_reasons: Any = None
    links: list[str] = field(default_factory=list)
    attachments: Any = None
    thread_id: str | None = None
    created_at: datetime | None = None


class CandidateStore:
    """CRUD over ``task_candidates``; every statement filters on ``user_id``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: CandidateCreate) -> models.TaskCandidate:
        candidate = models.TaskCandidate(
            user_id=data.user_id,
            source_message_id=data.source_message_id,
            type=data.type,
            title=data.title,
            module=data.module,
            due_date=data.due_date,
            location=data.location,
            confidence=data.confidence,
            confidence_score=data.confidence_score,
            extraction_reasons=data.extraction_reasons,
            links=list(data.links) if data.links else None,
            attachments=data.attachments,
            thread_id=data.thread_id,
            status=models.CandidateStatus.NEW,
        )
        if data.created_at is not None:
            candidate.created_at = data.created_at
            candidate.updated_at = data.created_at
        async with store_errors("create_candidate"):
            self.session.add(candidate)
            await self.session.flush()
        return candidate

    async def get_by_id(self, candidate_id: str, owner_id: str) -> models.TaskCandidate | None:
        query = select(models.TaskCandidate).where(
            models.TaskCandidate.id == candidate_id,
            models.TaskCandidate.user_id == owner_id,
        )
        async with store_errors("fetch_candidate", candidate_id):
            result = await self.session.execute(query)
            return result.scalar_one_or_none()

    async def list_for_owner(
        self,
        owner_id: str,
        status: models.CandidateStatus | None = None,
    ) -> list[models.TaskCandidate]:
        """Candidates newest first, optionally restricted to one status."""
        query = select(models.TaskCandidate).where(models.TaskCandidate.user_id == owner_id)
        if status is not None:
            query = query.where(models.TaskCandidate.status == status)
        query = query.order_by(models.TaskCandidate.created_at.desc())

        async with store_errors("fetch_candidates"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def list_new_ranked(self, owner_id: str) -> list[models.TaskCandidate]:
        """Unprocessed candidates, most confident first, then newest."""
        query = (
            select(models.TaskCandidate)
            .where(
                models.TaskCandidate.user_id == owner_id,
                models.TaskCandidate.status == models.CandidateStatus.NEW,
            )
            .order_by(
                models.TaskCandidate.confidence_score.desc().nulls_last(),
                models.TaskCandidate.created_at.desc(),
            )
        )
        async with store_errors("fetch_new_candidates"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def update(
        self,
        candidate_id: str,
        owner_id: str,
        patch: Mapping[str, Any],
    ) -> models.TaskCandidate:
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable on candidates: {sorted(unknown)}")

        candidate = await self.get_by_id(candidate_id, owner_id)
        if candidate is None:
            raise NotFound("Candidate", candidate_id)

        for key, value in patch.items():
            setattr(candidate, key, value)
        candidate.updated_at = models.utcnow()

        async with store_errors("update_candidate", candidate_id):
            await self.session.flush()
        return candidate

    async def transition(
        self,
        candidate_id: str,
        owner_id: str,
        *,
        expected: models.CandidateStatus,
        target: models.CandidateStatus,
    ) -> bool:
        """Move status ``expected -> target`` atomically.

        Returns False when the row is gone or no longer in ``expected``,
        i.e. a concurrent writer got there first.
        """
        query = (
            update(models.TaskCandidate)
            .where(
                models.TaskCandidate.id == candidate_id,
                models.TaskCandidate.user_id == owner_id,
                models.TaskCandidate.status == expected,
            )
            .values(status=target, updated_at=models.utcnow())
            .execution_options(synchronize_session=False)
        )
        async with store_errors("update_candidate_status", candidate_id):
            result = await self.session.execute(query)
        return result.rowcount == 1

    async def refresh(self, candidate: models.TaskCandidate) -> models.TaskCandidate:
        async with store_errors("fetch_candidate", candidate.id):
            await self.session.refresh(candidate)
        return candidate
