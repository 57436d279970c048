# tests/test_models.py

from __future__ import annotations

import itertools

import pytest

from studentos.models import CandidateStatus, Task, TaskStatus, can_transition

from .fakes import utc


def test_only_new_candidates_can_move() -> None:
    allowed = {
        (CandidateStatus.NEW, CandidateStatus.CONFIRMED),
        (CandidateStatus.NEW, CandidateStatus.EDITED),
        (CandidateStatus.NEW, CandidateStatus.IGNORED),
    }
    for current, target in itertools.product(CandidateStatus, repeat=2):
        assert can_transition(current, target) is ((current, target) in allowed), (current, target)


def test_can_transition_accepts_raw_status_strings() -> None:
    assert can_transition("new", CandidateStatus.CONFIRMED)
    assert not can_transition("confirmed", CandidateStatus.IGNORED)


def test_completing_a_task_sets_completed_at() -> None:
    task = Task(status=TaskStatus.PENDING)
    now = utc(2025, 1, 5, 12, 0)

    task.set_status(TaskStatus.COMPLETED, now=now)

    assert task.status is TaskStatus.COMPLETED
    assert task.completed_at == now


def test_completing_twice_keeps_first_timestamp() -> None:
    task = Task(status=TaskStatus.PENDING)
    first = utc(2025, 1, 5, 12, 0)
    task.set_status(TaskStatus.COMPLETED, now=first)

    task.set_status(TaskStatus.COMPLETED, now=utc(2025, 1, 6, 12, 0))

    assert task.completed_at == first


@pytest.mark.parametrize("status", [TaskStatus.PENDING, TaskStatus.CANCELLED])
def test_leaving_completed_clears_completed_at(status: TaskStatus) -> None:
    task = Task(status=TaskStatus.PENDING)
    task.set_status(TaskStatus.COMPLETED, now=utc(2025, 1, 5))

    task.set_status(status)

    assert task.status is status
    assert task.completed_at is None
