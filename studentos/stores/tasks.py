"""Owner-scoped access to the ``tasks`` relation."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..errors import NotFound
from .base import store_errors

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50

# Columns a caller may patch. Ownership, lineage and timestamps are not among them.
UPDATABLE_FIELDS = frozenset({"title", "type", "module", "due_date", "notes", "links", "status"})


@dataclass
class TaskCreate:
    """Input for materializing a task from a candidate."""
    candidate_id: str
    user_id: str
    title: str
    type: models.TaskType
    thread_id: str | None = None
    module: str | None = None
    due_date: datetime | None = None
    notes: str | None = None
    links: list[str] = field(default_factory=list)


@dataclass
class TaskFilters:
    status: models.TaskStatus | None = None
    type: models.TaskType | None = None
    limit: int | None = None
    offset: int | None = None


class TaskStore:
    """CRUD over ``tasks``; every statement filters on ``user_id``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: TaskCreate) -> models.Task:
        task = models.Task(
            candidate_id=data.candidate_id,
            user_id=data.user_id,
            thread_id=data.thread_id,
            title=data.title,
            type=data.type,
            module=data.module,
            due_date=data.due_date,
            notes=data.notes,
            links=list(data.links) if data.links else None,
            status=models.TaskStatus.PENDING,
        )
        async with store_errors("create_task", data.candidate_id):
            self.session.add(task)
            await self.session.flush()
        logger.debug(f"Created task {task.id} from candidate {data.candidate_id}")
        return task

    async def get_by_id(self, task_id: str, owner_id: str) -> models.Task | None:
        query = select(models.Task).where(
            models.Task.id == task_id,
            models.Task.user_id == owner_id,
        )
        async with store_errors("fetch_task", task_id):
            result = await self.session.execute(query)
            return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: str, filters: TaskFilters | None = None) -> list[models.Task]:
        """Tasks ordered by due date ascending, undated tasks last."""
        filters = filters or TaskFilters()
        query = (
            select(models.Task)
            .where(models.Task.user_id == owner_id)
            .order_by(
                models.Task.due_date.asc().nulls_last(),
                models.Task.created_at.asc(),
            )
        )
        if filters.status is not None:
            query = query.where(models.Task.status == filters.status)
        if filters.type is not None:
            query = query.where(models.Task.type == filters.type)
        if filters.offset:
            query = query.offset(filters.offset).limit(filters.limit or DEFAULT_PAGE_SIZE)
        elif filters.limit:
            query = query.limit(filters.limit)

        async with store_errors("fetch_tasks"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def list_upcoming(self, owner_id: str, limit: int) -> list[models.Task]:
        """Pending tasks that have a due date, soonest first."""
        query = (
            select(models.Task)
            .where(
                models.Task.user_id == owner_id,
                models.Task.status == models.TaskStatus.PENDING,
                models.Task.due_date.is_not(None),
            )
            .order_by(models.Task.due_date.asc())
            .limit(limit)
        )
        async with store_errors("fetch_upcoming_tasks"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def update(self, task_id: str, owner_id: str, patch: Mapping[str, Any]) -> models.Task:
        """Apply ``patch``; a ``status`` change keeps ``completed_at`` consistent."""
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable on tasks: {sorted(unknown)}")

        task = await self.get_by_id(task_id, owner_id)
        if task is None:
            raise NotFound("Task", task_id)

        for key, value in patch.items():
            if key == "status":
                continue
            setattr(task, key, value)
        if "status" in patch and patch["status"] is not None:
            task.set_status(patch["status"])

        async with store_errors("update_task", task_id):
            await self.session.flush()
        return task

    async def delete(self, task_id: str, owner_id: str) -> None:
        query = delete(models.Task).where(
            models.Task.id == task_id,
            models.Task.user_id == owner_id,
        )
        async with store_errors("delete_task", task_id):
            await self.session.execute(query)
