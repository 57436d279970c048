"""Bearer-token verification against the identity provider.

The verified identity lives on the in-flight request only; nothing here
caches tokens or users between requests.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import AuthSettings
from .errors import Unauthorized

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class UserIdentity:
    """Who the caller is, as asserted by the identity provider."""
    id: str
    email: str | None = None


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> UserIdentity: ...


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise Unauthorized("Missing or invalid authorization header")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Missing or invalid authorization header")
    return token


class SupabaseIdentityVerifier:
    """Resolves access tokens through the provider's ``/auth/v1/user`` endpoint."""

    def __init__(self, config: AuthSettings, *, client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=str(config.url).rstrip("/"),
            timeout=config.timeout_seconds,
            headers={"apikey": config.service_role_key},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _fetch_user(self, token: str) -> httpx.Response:
        return await self._client.get(
            "/auth/v1/user",
            headers={"Authorization": f"{BEARER_PREFIX}{token}"},
        )

    async def verify(self, token: str) -> UserIdentity:
        try:
            response = await self._fetch_user(token)
        except httpx.TransportError as e:
            logger.warning(f"Identity provider unreachable: {e}")
            raise Unauthorized("Invalid or expired token") from e

        if response.status_code != httpx.codes.OK:
            logger.debug(f"Identity provider rejected token with HTTP {response.status_code}")
            raise Unauthorized("Invalid or expired token")

        try:
            payload = response.json()
        except ValueError as e:
            raise Unauthorized("Invalid or expired token") from e

        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            raise Unauthorized("Invalid or expired token")
        return UserIdentity(id=str(user_id), email=payload.get("email"))
