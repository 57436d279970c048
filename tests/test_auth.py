# tests/test_auth.py

from __future__ import annotations

import httpx
import pytest

from studentos.auth import SupabaseIdentityVerifier, UserIdentity, extract_bearer_token
from studentos.config import AuthSettings
from studentos.errors import Unauthorized

BASE_URL = "https://project.supabase.test"


def _verifier(handler) -> SupabaseIdentityVerifier:
    config = AuthSettings(url=BASE_URL, anon_key="anon", service_role_key="service")
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return SupabaseIdentityVerifier(config, client=client)


def test_extract_bearer_token() -> None:
    assert extract_bearer_token("Bearer abc.def") == "abc.def"
    assert extract_bearer_token("Bearer   padded  ") == "padded"


@pytest.mark.parametrize("header", [None, "", "abc", "bearer abc", "Basic abc", "Bearer ", "Bearer    "])
def test_extract_bearer_token_rejects_malformed(header) -> None:
    with pytest.raises(Unauthorized):
        extract_bearer_token(header)


async def test_verify_returns_identity() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "user-1", "email": "user@example.com", "aud": "authenticated"})

    verifier = _verifier(handler)

    identity = await verifier.verify("good-token")

    assert identity == UserIdentity(id="user-1", email="user@example.com")
    assert seen[0].url.path == "/auth/v1/user"
    assert seen[0].headers["Authorization"] == "Bearer good-token"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"msg": "invalid JWT"}),
        httpx.Response(500, text="upstream down"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"email": "no-id@example.com"}),
        httpx.Response(200, json=["unexpected"]),
    ],
)
async def test_verify_rejects_bad_responses(response) -> None:
    verifier = _verifier(lambda request: response)

    with pytest.raises(Unauthorized) as excinfo:
        await verifier.verify("token")

    assert excinfo.value.message == "Invalid or expired token"


async def test_verify_retries_transport_errors_then_rejects() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        raise httpx.ConnectError("connection refused", request=request)

    verifier = _verifier(handler)

    with pytest.raises(Unauthorized):
        await verifier.verify("token")

    assert len(attempts) == 3


async def test_verify_recovers_after_transient_error() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            raise httpx.ReadTimeout("slow", request=request)
        return httpx.Response(200, json={"id": "user-2"})

    verifier = _verifier(handler)

    identity = await verifier.verify("token")

    assert identity == UserIdentity(id="user-2", email=None)
    assert len(attempts) == 2


async def test_aclose_leaves_injected_client_open() -> None:
    verifier = _verifier(lambda request: httpx.Response(200, json={"id": "u"}))

    await verifier.aclose()

    assert await verifier.verify("token") == UserIdentity(id="u")
