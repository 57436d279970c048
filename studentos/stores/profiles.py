"""Access to ``user_profiles``, keyed by the identity-provider user id."""
from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..errors import NotFound
from .base import store_errors


class UserProfileStore:
    """The profile id is the owner id, so lookups are scoped by construction."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: str) -> models.UserProfile | None:
        query = select(models.UserProfile).where(models.UserProfile.id == user_id)
        async with store_errors("fetch_user_profile", user_id):
            result = await self.session.execute(query)
            return result.scalar_one_or_none()

    async def create(self, user_id: str, email: str) -> models.UserProfile:
        profile = models.UserProfile(id=user_id, email=email)
        async with store_errors("create_user_profile", user_id):
            self.session.add(profile)
            await self.session.flush()
        return profile

    async def update(self, user_id: str, *, email: str | None = None) -> models.UserProfile:
        profile = await self.get(user_id)
        if profile is None:
            raise NotFound("User profile", user_id)

        if email is not None:
            profile.email = email
        profile.updated_at = models.utcnow()

        async with store_errors("update_user_profile", user_id):
            await self.session.flush()
        return profile

    async def delete(self, user_id: str) -> None:
        async with store_errors("delete_user_profile", user_id):
            await self.session.execute(delete(models.UserProfile).where(models.UserProfile.id == user_id))
