"""HTTP routes.

Handlers validate input through the request schemas, call one service
method and shape the response. Failures are raised as typed errors and
rendered by the handlers registered in ``api``.
"""
from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Header, Query, status

from .auth import UserIdentity
from .config import Settings
from .deps import (
    get_app_settings,
    get_current_user,
    get_feed_service,
    get_lifecycle_service,
    get_profile_service,
    get_task_service,
)
from .errors import Unauthorized, ValidationError
from .models import TaskStatus, TaskType
from .schemas import (
    CandidateDTO,
    CandidateListResponse,
    CandidateResponse,
    ConfirmCandidateRequest,
    CreateProfileRequest,
    EditCandidateRequest,
    FeedResponse,
    IgnoreCandidateRequest,
    ProfileDTO,
    ProfileResponse,
    ReceivedResponse,
    SourceDTO,
    SourceResponse,
    SuccessResponse,
    TaskDTO,
    TaskListResponse,
    TaskResponse,
    UpdateProfileRequest,
    UpdateTaskRequest,
)
from .services import (
    DEFAULT_UPCOMING_LIMIT,
    CandidateLifecycleService,
    FeedService,
    FeedStatus,
    TaskService,
    UserProfileService,
)
from .stores import TaskFilters

logger = logging.getLogger(__name__)

_authenticated = [Depends(get_current_user)]

feed_router = APIRouter(prefix="/api/feed", tags=["feed"], dependencies=_authenticated)
candidate_router = APIRouter(prefix="/api/candidates", tags=["candidates"], dependencies=_authenticated)
task_router = APIRouter(prefix="/api/tasks", tags=["tasks"], dependencies=_authenticated)
user_router = APIRouter(prefix="/api/users", tags=["users"], dependencies=_authenticated)
integration_router = APIRouter(prefix="/api/integrations", tags=["integrations"], dependencies=_authenticated)
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


# Feed


@feed_router.get("", response_model=FeedResponse)
async def get_feed(
    status_filter: FeedStatus = Query(default=FeedStatus.ALL, alias="status"),
    user: UserIdentity = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
) -> FeedResponse:
    """All candidates (optionally one status) next to all tasks."""
    result = await feed.get_feed(user.id, status_filter)
    return FeedResponse(
        candidates=[CandidateDTO.model_validate(c) for c in result.candidates],
        tasks=[TaskDTO.model_validate(t) for t in result.tasks],
    )


@feed_router.get("/new", response_model=CandidateListResponse)
async def get_new_candidates(
    user: UserIdentity = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
) -> CandidateListResponse:
    candidates = await feed.get_new_candidates(user.id)
    return CandidateListResponse(candidates=[CandidateDTO.model_validate(c) for c in candidates])


@feed_router.get("/upcoming", response_model=TaskListResponse)
async def get_upcoming_tasks(
    limit: int = Query(default=DEFAULT_UPCOMING_LIMIT, ge=1, le=100),
    user: UserIdentity = Depends(get_current_user),
    feed: FeedService = Depends(get_feed_service),
) -> TaskListResponse:
    tasks = await feed.get_upcoming_tasks(user.id, limit)
    return TaskListResponse(tasks=[TaskDTO.model_validate(t) for t in tasks])


# Candidates


@candidate_router.post("/{candidate_id}/confirm", response_model=TaskResponse)
async def confirm_candidate(
    candidate_id: str,
    body: ConfirmCandidateRequest | None = None,
    user: UserIdentity = Depends(get_current_user),
    lifecycle: CandidateLifecycleService = Depends(get_lifecycle_service),
) -> TaskResponse:
    """Confirm a candidate and create its task."""
    overrides = body.overrides() if body is not None else {}
    result = await lifecycle.confirm_candidate(candidate_id, user.id, overrides)
    return TaskResponse(task=TaskDTO.model_validate(result.task))


@candidate_router.post("/{candidate_id}/edit", response_model=CandidateResponse)
async def edit_candidate(
    candidate_id: str,
    body: EditCandidateRequest,
    user: UserIdentity = Depends(get_current_user),
    lifecycle: CandidateLifecycleService = Depends(get_lifecycle_service),
) -> CandidateResponse:
    candidate = await lifecycle.edit_candidate(candidate_id, user.id, body.updates())
    return CandidateResponse(candidate=CandidateDTO.model_validate(candidate))


@candidate_router.post("/{candidate_id}/ignore", response_model=SuccessResponse)
async def ignore_candidate(
    candidate_id: str,
    body: IgnoreCandidateRequest | None = None,
    user: UserIdentity = Depends(get_current_user),
    lifecycle: CandidateLifecycleService = Depends(get_lifecycle_service),
) -> SuccessResponse:
    reason = body.reason if body is not None else None
    await lifecycle.ignore_candidate(candidate_id, user.id, reason)
    return SuccessResponse()


@candidate_router.get("/{candidate_id}/source", response_model=SourceResponse)
async def get_candidate_source(
    candidate_id: str,
    user: UserIdentity = Depends(get_current_user),
    lifecycle: CandidateLifecycleService = Depends(get_lifecycle_service),
) -> SourceResponse:
    """The email snippet a candidate was extracted from."""
    snippet = await lifecycle.get_candidate_source(candidate_id, user.id)
    return SourceResponse(source=SourceDTO.model_validate(snippet))


# Tasks


@task_router.get("", response_model=TaskListResponse)
async def list_tasks(
    status_filter: TaskStatus | None = Query(default=None, alias="status"),
    type_filter: TaskType | None = Query(default=None, alias="type"),
    limit: int | None = Query(default=None, ge=1, le=200),
    offset: int | None = Query(default=None, ge=0),
    user: UserIdentity = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    filters = TaskFilters(status=status_filter, type=type_filter, limit=limit, offset=offset)
    result = await tasks.list_tasks(user.id, filters)
    return TaskListResponse(tasks=[TaskDTO.model_validate(t) for t in result])


@task_router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    user: UserIdentity = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await tasks.get_task(task_id, user.id)
    return TaskResponse(task=TaskDTO.model_validate(task))


@task_router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    body: UpdateTaskRequest,
    user: UserIdentity = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await tasks.update_task(task_id, user.id, body.patch())
    return TaskResponse(task=TaskDTO.model_validate(task))


@task_router.delete("/{task_id}", response_model=SuccessResponse)
async def delete_task(
    task_id: str,
    user: UserIdentity = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
) -> SuccessResponse:
    await tasks.delete_task(task_id, user.id)
    return SuccessResponse()


@task_router.post("/{task_id}/complete", response_model=TaskResponse)
async def complete_task(
    task_id: str,
    user: UserIdentity = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await tasks.complete_task(task_id, user.id)
    return TaskResponse(task=TaskDTO.model_validate(task))


# Users


@user_router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user: UserIdentity = Depends(get_current_user),
    profiles: UserProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    profile = await profiles.get_profile(user.id)
    return ProfileResponse(profile=ProfileDTO.model_validate(profile))


@user_router.post("/me", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def provision_my_profile(
    body: CreateProfileRequest | None = None,
    user: UserIdentity = Depends(get_current_user),
    profiles: UserProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """Create the caller's profile after signup; repeat calls return the existing one."""
    email = (body.email if body is not None else None) or user.email
    if not email:
        raise ValidationError(
            "An email is required to create a profile",
            details=[{"loc": ["body", "email"], "msg": "field required"}],
        )
    profile = await profiles.create_profile(user.id, email)
    return ProfileResponse(profile=ProfileDTO.model_validate(profile))


@user_router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: UpdateProfileRequest,
    user: UserIdentity = Depends(get_current_user),
    profiles: UserProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    profile = await profiles.update_profile(user.id, email=body.email)
    return ProfileResponse(profile=ProfileDTO.model_validate(profile))


@user_router.delete("/me", response_model=SuccessResponse)
async def delete_my_profile(
    user: UserIdentity = Depends(get_current_user),
    profiles: UserProfileService = Depends(get_profile_service),
) -> SuccessResponse:
    await profiles.delete_profile(user.id)
    return SuccessResponse()


# Integrations and webhooks


@integration_router.get("/status")
async def integration_status(settings: Settings = Depends(get_app_settings)) -> dict:
    """Connection state of the mail integrations. OAuth connect flows are not served here."""
    return {
        "gmail": {"connected": False},
        "outlook": {"connected": False},
        "forwarding": {"enabled": False, "domain": settings.forwarding.domain},
    }


@webhook_router.post("/gmail/pubsub", response_model=ReceivedResponse)
async def gmail_pubsub() -> ReceivedResponse:
    """Acknowledge push notifications; processing belongs to the ingestion pipeline."""
    return ReceivedResponse()


@webhook_router.post("/forward/{user_id}", response_model=ReceivedResponse)
async def forwarded_email(
    user_id: str,
    forwarding_secret: str | None = Header(default=None, alias="X-Forwarding-Secret"),
    settings: Settings = Depends(get_app_settings),
) -> ReceivedResponse:
    """Acknowledge a forwarded email, checking the shared secret when one is configured."""
    expected = settings.forwarding.secret
    if expected and not hmac.compare_digest((forwarding_secret or "").encode(), expected.encode()):
        raise Unauthorized("Invalid forwarding secret")
    logger.info("Forwarded email received", extra={"user_id": user_id})
    return ReceivedResponse()


ROUTERS = (
    feed_router,
    candidate_router,
    task_router,
    user_router,
    integration_router,
    webhook_router,
)
