"""User profile provisioning and edits."""
from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from ..db import transaction
from ..errors import NotFound
from ..stores import UserProfileStore

logger = logging.getLogger(__name__)


class UserProfileService:

    def __init__(self, session: AsyncSession, profiles: UserProfileStore | None = None) -> None:
        self.session = session
        self.profiles = profiles or UserProfileStore(session)

    async def get_profile(self, user_id: str) -> models.UserProfile:
        profile = await self.profiles.get(user_id)
        if profile is None:
            raise NotFound("User profile", user_id)
        return profile

    async def create_profile(self, user_id: str, email: str) -> models.UserProfile:
        """Provision the profile for a verified identity; existing rows are returned as-is."""
        existing = await self.profiles.get(user_id)
        if existing is not None:
            return existing

        async with transaction(self.session, "create_user_profile", user_id):
            profile = await self.profiles.create(user_id, email)
        logger.info(f"Provisioned user profile {user_id}", extra={"user_id": user_id})
        return profile

    async def update_profile(self, user_id: str, *, email: str | None = None) -> models.UserProfile:
        async with transaction(self.session, "update_user_profile", user_id):
            profile = await self.profiles.update(user_id, email=email)
        return profile

    async def delete_profile(self, user_id: str) -> None:
        """Hard delete; dependent rows are left to the store's cascade policy."""
        async with transaction(self.session, "delete_user_profile", user_id):
            await self.profiles.delete(user_id)
        logger.info(f"Deleted user profile {user_id}", extra={"user_id": user_id})
