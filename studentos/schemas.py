"""Pydantic request and response models for the HTTP API.

Request bodies forbid unknown fields, so a typo fails with 400 instead of
being dropped silently.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from .models import CandidateStatus, ConfidenceLevel, IgnoreReason, TaskStatus, TaskType


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid")


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Responses


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    message: str | None = None
    details: Any = None


class CandidateDTO(_Record):
    id: str
    source_message_id: str
    user_id: str
    type: TaskType
    title: str
    module: str | None = None
    due_date: datetime | None = None
    location: str | None = None
    confidence: ConfidenceLevel
    confidence_score: float | None = None
    extraction_reasons: Any = None
    links: list[str] | None = None
    attachments: Any = None
    status: CandidateStatus
    thread_id: str | None = None
    created_at: datetime
    updated_at: datetime


class TaskDTO(_Record):
    id: str
    candidate_id: str
    user_id: str
    thread_id: str | None = None
    title: str
    type: TaskType
    module: str | None = None
    due_date: datetime | None = None
    notes: str | None = None
    links: list[str] | None = None
    status: TaskStatus
    created_at: datetime
    completed_at: datetime | None = None


class ProfileDTO(_Record):
    id: str
    email: str
    created_at: datetime
    updated_at: datetime


class SourceDTO(_Record):
    subject: str | None = None
    from_name: str | None = None
    from_email: str | None = None
    received_at: datetime | None = None
    body_snippet: str | None = None
    urls: list[str] | None = None


class FeedResponse(BaseModel):
    candidates: list[CandidateDTO]
    tasks: list[TaskDTO]


class CandidateListResponse(BaseModel):
    candidates: list[CandidateDTO]


class CandidateResponse(BaseModel):
    candidate: CandidateDTO


class TaskListResponse(BaseModel):
    tasks: list[TaskDTO]


class TaskResponse(BaseModel):
    task: TaskDTO


class SourceResponse(BaseModel):
    source: SourceDTO


class ProfileResponse(BaseModel):
    profile: ProfileDTO


class SuccessResponse(BaseModel):
    success: bool = True


class ReceivedResponse(BaseModel):
    received: bool = True


# Requests


class ConfirmCandidateRequest(_Request):
    """Optional overrides applied when materializing the task.

    A null or empty ``title`` keeps the candidate's title. For ``module``,
    ``due_date`` and ``notes`` an explicit null clears the value; leaving the
    key out keeps the candidate's value.
    """
    title: str | None = None
    type: TaskType | None = None
    module: str | None = None
    due_date: datetime | None = None
    notes: str | None = None

    def overrides(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class EditCandidateRequest(_Request):
    title: str = Field(min_length=1)
    type: TaskType
    module: str | None = None
    due_date: datetime | None = None
    location: str | None = None
    # Accepted for client compatibility; candidates have no notes column.
    notes: str | None = None

    def updates(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"notes"})


class IgnoreCandidateRequest(_Request):
    reason: IgnoreReason | None = None


class UpdateTaskRequest(_Request):
    """Partial task update; only keys present in the body are applied."""
    title: str | None = Field(default=None, min_length=1)
    type: TaskType | None = None
    module: str | None = None
    due_date: datetime | None = None
    notes: str | None = None
    links: list[str] | None = None
    status: TaskStatus | None = None

    @model_validator(mode="after")
    def reject_null_required(self) -> UpdateTaskRequest:
        for name in ("title", "type", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def patch(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class UpdateProfileRequest(_Request):
    email: EmailStr | None = None

    @model_validator(mode="after")
    def reject_null_email(self) -> UpdateProfileRequest:
        if "email" in self.model_fields_set and self.email is None:
            raise ValueError("email cannot be null")
        return self


class CreateProfileRequest(_Request):
    email: EmailStr | None = None
