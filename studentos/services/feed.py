"""Feed aggregation: candidates and tasks for the triage screen.

The two relations are queried independently and returned side by side;
splitting them into display sections is left to the client.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..stores import CandidateStore, TaskStore

DEFAULT_UPCOMING_LIMIT = 10


class FeedStatus(str, Enum):
    """Candidate filter accepted by the feed."""
    NEW = "new"
    CONFIRMED = "confirmed"
    ALL = "all"


@dataclass
class Feed:
    candidates: list[models.TaskCandidate]
    tasks: list[models.Task]


class FeedService:

    def __init__(
        self,
        session: AsyncSession,
        candidates: CandidateStore | None = None,
        tasks: TaskStore | None = None,
    ) -> None:
        self.candidates = candidates or CandidateStore(session)
        self.tasks = tasks or TaskStore(session)

    async def get_feed(self, owner_id: str, status_filter: FeedStatus = FeedStatus.ALL) -> Feed:
        status_filter = FeedStatus(status_filter)
        status = None if status_filter is FeedStatus.ALL else models.CandidateStatus(status_filter.value)
        candidates = await self.candidates.list_for_owner(owner_id, status)
        tasks = await self.tasks.list_for_owner(owner_id)
        return Feed(candidates=candidates, tasks=tasks)

    async def get_new_candidates(self, owner_id: str) -> list[models.TaskCandidate]:
        return await self.candidates.list_new_ranked(owner_id)

    async def get_upcoming_tasks(self, owner_id: str, limit: int = DEFAULT_UPCOMING_LIMIT) -> list[models.Task]:
        return await self.tasks.list_upcoming(owner_id, limit)
