"""Task reads and owner mutations (update, complete, delete)."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..db import transaction
from ..errors import NotFound
from ..stores import TaskFilters, TaskStore

logger = logging.getLogger(__name__)


class TaskService:

    def __init__(self, session: AsyncSession, tasks: TaskStore | None = None) -> None:
        self.session = session
        self.tasks = tasks or TaskStore(session)

    async def get_task(self, task_id: str, owner_id: str) -> models.Task:
        task = await self.tasks.get_by_id(task_id, owner_id)
        if task is None:
            raise NotFound("Task", task_id)
        return task

    async def list_tasks(self, owner_id: str, filters: TaskFilters | None = None) -> list[models.Task]:
        return await self.tasks.list_for_owner(owner_id, filters)

    async def update_task(self, task_id: str, owner_id: str, patch: Mapping[str, Any]) -> models.Task:
        async with transaction(self.session, "update_task", task_id):
            task = await self.tasks.update(task_id, owner_id, patch)
        logger.debug(f"Updated task {task_id} fields={sorted(patch)}")
        return task

    async def complete_task(self, task_id: str, owner_id: str) -> models.Task:
        """Mark a task completed.

        Idempotent: completing an already-completed task leaves the original
        ``completed_at`` untouched and performs no write.
        """
        task = await self.get_task(task_id, owner_id)
        if task.status is models.TaskStatus.COMPLETED and task.completed_at is not None:
            return task

        async with transaction(self.session, "complete_task", task_id):
            task.set_status(models.TaskStatus.COMPLETED)
        logger.info(f"Completed task {task_id}", extra={"task_id": task_id, "user_id": owner_id})
        return task

    async def delete_task(self, task_id: str, owner_id: str) -> None:
        """Delete if owned; a missing row is not an error."""
        async with transaction(self.session, "delete_task", task_id):
            await self.tasks.delete(task_id, owner_id)
