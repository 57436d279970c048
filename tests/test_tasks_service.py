# tests/test_tasks_service.py

from __future__ import annotations

import pytest

from studentos import models
from studentos.errors import NotFound
from studentos.services import TaskService
from studentos.stores import TaskFilters, TaskStore

from .fakes import ALICE, BOB, add_task, utc


async def test_get_task_is_owner_scoped(session) -> None:
    task = await add_task(session, ALICE)
    service = TaskService(session)

    assert (await service.get_task(task.id, ALICE.id)).id == task.id
    with pytest.raises(NotFound):
        await service.get_task(task.id, BOB.id)


async def test_complete_task_sets_completed_at(session, session_factory) -> None:
    task = await add_task(session)

    completed = await TaskService(session).complete_task(task.id, ALICE.id)

    assert completed.status is models.TaskStatus.COMPLETED
    assert completed.completed_at is not None
    async with session_factory() as fresh:
        stored = await TaskStore(fresh).get_by_id(task.id, ALICE.id)
    assert stored.status is models.TaskStatus.COMPLETED
    assert stored.completed_at == completed.completed_at


async def test_complete_task_is_idempotent(session) -> None:
    task = await add_task(session)
    service = TaskService(session)
    first = await service.complete_task(task.id, ALICE.id)
    stamp = first.completed_at

    again = await service.complete_task(task.id, ALICE.id)

    assert again.status is models.TaskStatus.COMPLETED
    assert again.completed_at == stamp


async def test_complete_other_users_task_is_not_found(session) -> None:
    task = await add_task(session, BOB)

    with pytest.raises(NotFound):
        await TaskService(session).complete_task(task.id, ALICE.id)


async def test_status_patch_keeps_completed_at_consistent(session) -> None:
    task = await add_task(session)
    service = TaskService(session)

    completed = await service.update_task(task.id, ALICE.id, {"status": models.TaskStatus.COMPLETED})
    assert completed.completed_at is not None

    reopened = await service.update_task(task.id, ALICE.id, {"status": models.TaskStatus.PENDING})
    assert reopened.completed_at is None

    cancelled = await service.update_task(task.id, ALICE.id, {"status": models.TaskStatus.CANCELLED})
    assert cancelled.completed_at is None


async def test_update_task_patches_only_given_fields(session) -> None:
    task = await add_task(session, module="CS101", notes="keep me")

    updated = await TaskService(session).update_task(
        task.id, ALICE.id, {"title": "Renamed", "due_date": utc(2026, 2, 1)}
    )

    assert updated.title == "Renamed"
    assert updated.due_date == utc(2026, 2, 1)
    assert updated.module == "CS101"
    assert updated.notes == "keep me"
    assert updated.status is models.TaskStatus.PENDING


async def test_delete_task_is_silent_for_missing_rows(session, session_factory) -> None:
    task = await add_task(session)
    service = TaskService(session)

    await service.delete_task(task.id, ALICE.id)
    await service.delete_task(task.id, ALICE.id)

    async with session_factory() as fresh:
        assert await TaskService(fresh).list_tasks(ALICE.id) == []


async def test_list_tasks_applies_filters(session) -> None:
    await add_task(session, type=models.TaskType.ADMIN)
    reading = await add_task(session, type=models.TaskType.READING)

    tasks = await TaskService(session).list_tasks(ALICE.id, TaskFilters(type=models.TaskType.READING))

    assert [t.id for t in tasks] == [reading.id]
