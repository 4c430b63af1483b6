from __future__ import annotations

import httpx
import pytest

from auth import SupabaseIdentityResolver
from config import SupabaseSettings
from utils.exceptions import ConfigurationError


def _resolver(handler) -> SupabaseIdentityResolver:
    settings = SupabaseSettings(url="https://project.supabase.co/", anon_key="anon-key")
    return SupabaseIdentityResolver(settings, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_resolves_identity_from_user_endpoint() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "user-1", "email": "admin@example.com"})

    identity = await _resolver(handler).resolve("token-abc")

    assert identity.email == "admin@example.com"
    assert identity.user_id == "user-1"
    assert str(seen[0].url) == "https://project.supabase.co/auth/v1/user"
    assert seen[0].headers["apikey"] == "anon-key"
    assert seen[0].headers["Authorization"] == "Bearer token-abc"


@pytest.mark.asyncio
async def test_rejected_token_resolves_to_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"msg": "invalid JWT"})

    assert await _resolver(handler).resolve("expired") is None


@pytest.mark.asyncio
async def test_user_without_email_resolves_to_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "anon", "email": ""})

    assert await _resolver(handler).resolve("anon-token") is None


@pytest.mark.asyncio
async def test_network_failure_resolves_to_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("dns failure", request=request)

    assert await _resolver(handler).resolve("token") is None


@pytest.mark.asyncio
async def test_unconfigured_resolver_raises() -> None:
    resolver = SupabaseIdentityResolver(SupabaseSettings(url=None, anon_key=None))

    with pytest.raises(ConfigurationError):
        await resolver.resolve("token")
