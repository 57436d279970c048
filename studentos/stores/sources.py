"""Read-only projection of ``source_messages``."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import models
from .base import store_errors


@dataclass
class SourceSnippet:
    """The parts of a source message shown next to a candidate."""
    subject: str | None
    from_name: str | None
    from_email: str | None
    received_at: datetime | None
    body_snippet: str | None
    urls: list[str] | None


class SourceMessageStore:

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_snippet(self, message_id: str, owner_id: str) -> SourceSnippet | None:
        query = select(
            models.SourceMessage.subject,
            models.SourceMessage.from_name,
            models.SourceMessage.from_email,
            models.SourceMessage.received_at,
            models.SourceMessage.body_snippet,
            models.SourceMessage.urls,
        ).where(
            models.SourceMessage.id == message_id,
            models.SourceMessage.user_id == owner_id,
        )
        async with store_errors("fetch_source_message", message_id):
            result = await self.session.execute(query)
            row = result.one_or_none()

        if row is None:
            return None
        return SourceSnippet(
            subject=row.subject,
            from_name=row.from_name,
            from_email=row.from_email,
            received_at=row.received_at,
            body_snippet=row.body_snippet,
            urls=row.urls,
        )
