"""FastAPI dependencies: sessions, caller identity and request-scoped services."""
from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import UserIdentity, extract_bearer_token
from .config import Settings
from .services import CandidateLifecycleService, FeedService, TaskService, UserProfileService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """One session per request.

    Usage:
        async def endpoint(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with request.app.state.session_factory() as session:
        yield session


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> UserIdentity:
    """Verify the bearer token and attach the identity to this request."""
    token = extract_bearer_token(authorization)
    identity = await request.app.state.verifier.verify(token)
    request.state.user = identity
    return identity


def get_lifecycle_service(session: AsyncSession = Depends(get_session)) -> CandidateLifecycleService:
    return CandidateLifecycleService(session)


def get_feed_service(session: AsyncSession = Depends(get_session)) -> FeedService:
    return FeedService(session)


def get_task_service(session: AsyncSession = Depends(get_session)) -> TaskService:
    return TaskService(session)


def get_profile_service(session: AsyncSession = Depends(get_session)) -> UserProfileService:
    return UserProfileService(session)
