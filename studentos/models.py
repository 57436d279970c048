"""Core SQLAlchemy models (2.x style) for the task feed schema.

Table and column names follow the managed store: rows are owned through
``user_id``. Timestamps are stored as UTC and always loaded timezone-aware.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, String, Text, TypeDecorator
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class UTCDateTime(TypeDecorator):
    """DateTime that binds UTC and loads tz-aware values even on SQLite."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class TaskType(str, Enum):
    """Kinds of work an extracted item can describe."""
    DEADLINE = "DEADLINE"
    READING = "READING"
    ADMIN = "ADMIN"
    CHANGE = "CHANGE"
    EVENT = "EVENT"


class ConfidenceLevel(str, Enum):
    """Coarse extraction-certainty band."""
    HIGH = "HIGH"
    MED = "MED"
    LOW = "LOW"


class CandidateStatus(str, Enum):
    """Candidate triage state."""
    NEW = "new"
    CONFIRMED = "confirmed"
    EDITED = "edited"
    IGNORED = "ignored"


class TaskStatus(str, Enum):
    """Task progress state."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class IgnoreReason(str, Enum):
    """Why a user dismissed a candidate. Logged only."""
    NOT_A_TASK = "not_a_task"
    DUPLICATE = "duplicate"
    SPAM = "spam"
    OTHER = "other"


# Every legal candidate transition. Anything absent is rejected.
CANDIDATE_TRANSITIONS: dict[CandidateStatus, frozenset[CandidateStatus]] = {
    CandidateStatus.NEW: frozenset(
        {CandidateStatus.CONFIRMED, CandidateStatus.EDITED, CandidateStatus.IGNORED}
    ),
    CandidateStatus.CONFIRMED: frozenset(),
    CandidateStatus.EDITED: frozenset(),
    CandidateStatus.IGNORED: frozenset(),
}


def can_transition(current: CandidateStatus, target: CandidateStatus) -> bool:
    """Return whether a candidate may move from ``current`` to ``target``."""
    return target in CANDIDATE_TRANSITIONS[CandidateStatus(current)]


def _enum_column(enum_cls: type[Enum], length: int = 20) -> SAEnum:
    # Store enum values (e.g. "new"), not member names, in a plain VARCHAR.
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class UserProfile(Base):
    """App-local mirror of an identity-provider account."""
    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class SourceMessage(Base):
    """Inbound message a candidate was extracted from (read-only here)."""
    __tablename__ = "source_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    subject: Mapped[str | None] = mapped_column(Text)
    from_name: Mapped[str | None] = mapped_column(String(255))
    from_email: Mapped[str | None] = mapped_column(String(320))
    received_at: Mapped[datetime | None] = mapped_column(UTCDateTime())
    body_snippet: Mapped[str | None] = mapped_column(Text)
    urls: Mapped[list[str] | None] = mapped_column(JSON)


class TaskCandidate(Base):
    """Provisional task produced by the extraction pipeline."""
    __tablename__ = "task_candidates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    source_message_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    type: Mapped[TaskType] = mapped_column(_enum_column(TaskType), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    module: Mapped[str | None] = mapped_column(String(255))
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime())
    location: Mapped[str | None] = mapped_column(String(255))
    confidence: Mapped[ConfidenceLevel] = mapped_column(_enum_column(ConfidenceLevel), nullable=False)
    confidence_score: Mapped[float | None] = mapped_column(Float)
    extraction_reasons: Mapped[dict | list | None] = mapped_column(JSON)
    links: Mapped[list[str] | None] = mapped_column(JSON)
    attachments: Mapped[dict | list | None] = mapped_column(JSON)
    status: Mapped[CandidateStatus] = mapped_column(
        _enum_column(CandidateStatus),
        default=CandidateStatus.NEW,
        nullable=False,
    )
    thread_id: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_task_candidates_user_status", "user_id", "status"),
        Index("ix_task_candidates_user_created", "user_id", "created_at"),
    )


class Task(Base):
    """User-confirmed task, created from exactly one candidate."""
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    candidate_id: Mapped[str] = mapped_column(
        ForeignKey("task_candidates.id"),
        nullable=False,
        unique=True,
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    thread_id: Mapped[str | None] = mapped_column(String(255))
    title: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[TaskType] = mapped_column(_enum_column(TaskType), nullable=False)
    module: Mapped[str | None] = mapped_column(String(255))
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime())
    notes: Mapped[str | None] = mapped_column(Text)
    links: Mapped[list[str] | None] = mapped_column(JSON)
    status: Mapped[TaskStatus] = mapped_column(
        _enum_column(TaskStatus),
        default=TaskStatus.PENDING,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime())

    __table_args__ = (
        Index("ix_tasks_user_status_due", "user_id", "status", "due_date"),
    )

    def set_status(self, status: TaskStatus, *, now: datetime | None = None) -> None:
        """Change status keeping ``completed_at`` set iff the task is completed."""
        status = TaskStatus(status)
        if status is TaskStatus.COMPLETED:
            if self.status is not TaskStatus.COMPLETED or self.completed_at is None:
                self.completed_at = now or utcnow()
        else:
            self.completed_at = None
        self.status = status
