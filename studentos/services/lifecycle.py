"""Candidate lifecycle: confirm, edit and ignore transitions.

A candidate starts as ``new`` and leaves that state exactly once. Every
write checks ``can_transition`` first and then flips the status with a
compare-and-set, so two concurrent requests cannot both act on the same
``new`` candidate.

Confirming runs the status flip and the task insert in one store
transaction. Either both land or neither does, which makes confirm
exactly-once against the store: a retry after success fails with
``InvalidState`` instead of creating a second task.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..db import transaction
from ..errors import InvalidState, NotFound, ValidationError
from ..stores import CandidateStore, SourceMessageStore, SourceSnippet, TaskCreate, TaskStore

logger = logging.getLogger(__name__)

CONFIRM_OVERRIDE_FIELDS = frozenset({"title", "type", "module", "due_date", "notes"})
EDIT_OPTIONAL_FIELDS = frozenset({"module", "due_date", "location"})


@dataclass
class ConfirmResult:
    """Outcome of a successful confirm."""
    task: models.Task
    candidate: models.TaskCandidate


def build_task_input(
    candidate: models.TaskCandidate,
    owner_id: str,
    overrides: Mapping[str, Any],
) -> TaskCreate:
    """Merge a candidate with caller overrides into a task creation input.

    ``title`` and ``type`` take the override only when it is given and not
    None; an empty title also falls back. For ``module``, ``due_date`` and ``notes`` a key that is present
    wins even when None (an explicit clear); an absent key falls back to the
    candidate.
    """
    unknown = set(overrides) - CONFIRM_OVERRIDE_FIELDS
    if unknown:
        raise ValidationError(
            "Unsupported confirm overrides",
            details=[{"loc": [name], "msg": "unknown field"} for name in sorted(unknown)],
        )

    title = overrides.get("title")
    task_type = overrides.get("type")
    return TaskCreate(
        candidate_id=candidate.id,
        user_id=owner_id,
        thread_id=candidate.thread_id,
        title=title or candidate.title,
        type=models.TaskType(task_type) if task_type is not None else candidate.type,
        module=overrides["module"] if "module" in overrides else candidate.module,
        due_date=overrides["due_date"] if "due_date" in overrides else candidate.due_date,
        notes=overrides.get("notes"),
        links=list(candidate.links or []),
    )


class CandidateLifecycleService:
    """Orchestrates candidate transitions over the candidate and task stores."""

    def __init__(
        self,
        session: AsyncSession,
        candidates: CandidateStore | None = None,
        tasks: TaskStore | None = None,
        sources: SourceMessageStore | None = None,
    ) -> None:
        self.session = session
        self.candidates = candidates or CandidateStore(session)
        self.tasks = tasks or TaskStore(session)
        self.sources = sources or SourceMessageStore(session)

    async def get_candidate(self, candidate_id: str, owner_id: str) -> models.TaskCandidate:
        candidate = await self.candidates.get_by_id(candidate_id, owner_id)
        if candidate is None:
            raise NotFound("Candidate", candidate_id)
        return candidate

    async def confirm_candidate(
        self,
        candidate_id: str,
        owner_id: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> ConfirmResult:
        """Turn a ``new`` candidate into a pending task owned by the caller."""
        candidate = await self.get_candidate(candidate_id, owner_id)
        self._ensure_transition(candidate, models.CandidateStatus.CONFIRMED)
        task_input = build_task_input(candidate, owner_id, overrides or {})

        async with transaction(self.session, "confirm_candidate", candidate_id):
            await self._claim(candidate, models.CandidateStatus.CONFIRMED)
            task = await self.tasks.create(task_input)

        await self.candidates.refresh(candidate)
        logger.info(
            f"Confirmed candidate {candidate_id} as task {task.id}",
            extra={"candidate_id": candidate_id, "task_id": task.id, "user_id": owner_id},
        )
        return ConfirmResult(task=task, candidate=candidate)

    async def edit_candidate(
        self,
        candidate_id: str,
        owner_id: str,
        updates: Mapping[str, Any],
    ) -> models.TaskCandidate:
        """Replace title/type (and any optional fields given); status becomes ``edited``."""
        missing = [name for name in ("title", "type") if updates.get(name) is None]
        if missing:
            raise ValidationError(
                "Editing a candidate requires title and type",
                details=[{"loc": [name], "msg": "field required"} for name in missing],
            )

        candidate = await self.get_candidate(candidate_id, owner_id)
        self._ensure_transition(candidate, models.CandidateStatus.EDITED)

        patch: dict[str, Any] = {
            "title": updates["title"],
            "type": models.TaskType(updates["type"]),
        }
        patch.update({key: updates[key] for key in EDIT_OPTIONAL_FIELDS if key in updates})

        async with transaction(self.session, "edit_candidate", candidate_id):
            await self._claim(candidate, models.CandidateStatus.EDITED)
            await self.candidates.update(candidate_id, owner_id, patch)

        await self.candidates.refresh(candidate)
        logger.info(f"Edited candidate {candidate_id}", extra={"candidate_id": candidate_id, "user_id": owner_id})
        return candidate

    async def ignore_candidate(
        self,
        candidate_id: str,
        owner_id: str,
        reason: models.IgnoreReason | None = None,
    ) -> models.TaskCandidate:
        """Dismiss a candidate. The reason is logged, never stored."""
        candidate = await self.get_candidate(candidate_id, owner_id)
        self._ensure_transition(candidate, models.CandidateStatus.IGNORED)

        async with transaction(self.session, "ignore_candidate", candidate_id):
            await self._claim(candidate, models.CandidateStatus.IGNORED)

        await self.candidates.refresh(candidate)
        logger.info(
            "Candidate ignored",
            extra={
                "candidate_id": candidate_id,
                "user_id": owner_id,
                "reason": models.IgnoreReason(reason).value if reason is not None else None,
            },
        )
        return candidate

    async def get_candidate_source(self, candidate_id: str, owner_id: str) -> SourceSnippet:
        candidate = await self.get_candidate(candidate_id, owner_id)
        snippet = await self.sources.get_snippet(candidate.source_message_id, owner_id)
        if snippet is None:
            raise NotFound("Source message", candidate.source_message_id)
        return snippet

    def _ensure_transition(self, candidate: models.TaskCandidate, target: models.CandidateStatus) -> None:
        if not models.can_transition(candidate.status, target):
            raise InvalidState(
                "Candidate already processed",
                details={"status": models.CandidateStatus(candidate.status).value, "requested": target.value},
            )

    async def _claim(self, candidate: models.TaskCandidate, target: models.CandidateStatus) -> None:
        claimed = await self.candidates.transition(
            candidate.id,
            candidate.user_id,
            expected=models.CandidateStatus(candidate.status),
            target=target,
        )
        if not claimed:
            # Lost a race with another request between our read and write.
            raise InvalidState("Candidate already processed", details={"requested": target.value})
