# tests/test_feed.py

from __future__ import annotations

from studentos import models
from studentos.services import FeedService, FeedStatus

from .fakes import ALICE, BOB, add_candidate, add_task, days_from, utc


async def test_feed_filters_candidates_by_status(session) -> None:
    fresh = await add_candidate(session, created_at=utc(2025, 1, 2))
    confirmed = await add_candidate(session, created_at=utc(2025, 1, 1), status=models.CandidateStatus.CONFIRMED)
    await add_candidate(session, BOB)
    feed = FeedService(session)

    everything = await feed.get_feed(ALICE.id)
    only_new = await feed.get_feed(ALICE.id, FeedStatus.NEW)
    only_confirmed = await feed.get_feed(ALICE.id, "confirmed")

    assert [c.id for c in everything.candidates] == [fresh.id, confirmed.id]
    assert [c.id for c in only_new.candidates] == [fresh.id]
    assert [c.id for c in only_confirmed.candidates] == [confirmed.id]


async def test_feed_returns_all_tasks_regardless_of_filter(session) -> None:
    pending = await add_task(session, due_date=utc(2025, 1, 10))
    done = await add_task(session, due_date=utc(2025, 1, 12), status=models.TaskStatus.COMPLETED)

    result = await FeedService(session).get_feed(ALICE.id, FeedStatus.NEW)

    assert [t.id for t in result.tasks] == [pending.id, done.id]


async def test_upcoming_only_pending_dated_tasks(session) -> None:
    due = await add_task(session, due_date=utc(2025, 1, 10))
    await add_task(session, due_date=None)
    await add_task(session, due_date=utc(2025, 1, 5), status=models.TaskStatus.COMPLETED)
    await add_task(session, BOB, due_date=utc(2025, 1, 1))

    upcoming = await FeedService(session).get_upcoming_tasks(ALICE.id)

    assert [t.id for t in upcoming] == [due.id]


async def test_upcoming_respects_limit_and_order(session) -> None:
    start = utc(2025, 3, 1)
    created = [await add_task(session, due_date=days_from(start, offset)) for offset in (4, 1, 3, 2, 0)]
    by_due = sorted(created, key=lambda t: t.due_date)

    upcoming = await FeedService(session).get_upcoming_tasks(ALICE.id, limit=3)

    assert [t.id for t in upcoming] == [t.id for t in by_due[:3]]


async def test_new_candidates_excludes_processed(session) -> None:
    keep = await add_candidate(session)
    await add_candidate(session, status=models.CandidateStatus.IGNORED)
    await add_candidate(session, status=models.CandidateStatus.EDITED)

    new = await FeedService(session).get_new_candidates(ALICE.id)

    assert [c.id for c in new] == [keep.id]
