"""Identity lookup against Supabase auth."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from typing import Optional

import httpx

from config import SupabaseSettings
from utils.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    email: str
    user_id: Optional[str] = None


class IdentityResolver(ABC):
    @abstractmethod
    async def resolve(self, token: str) -> Optional[Identity]:
        """Identity for a bearer token, or None when the token is not valid."""
        pass


class SupabaseIdentityResolver(IdentityResolver):
    """Resolves access tokens through ``GET /auth/v1/user``."""

    def __init__(self, settings: SupabaseSettings, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    async def resolve(self, token: str) -> Optional[Identity]:
        if not self.settings.url or not self.settings.anon_key:
            raise ConfigurationError("SUPABASE_URL / SUPABASE_ANON_KEY not configured")

        url = f"{self.settings.url.rstrip('/')}/auth/v1/user"
        headers = {"apikey": self.settings.anon_key, "Authorization": f"Bearer {token}"}
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.request_timeout),
            transport=self._transport,
        ) as client:
            try:
                response = await client.get(url, headers=headers)
            except httpx.HTTPError as exc:
                logger.warning(f"[Auth] Identity lookup failed: {exc}")
                return None

        if response.status_code != 200:
            return None

        payload = response.json()
        email = str(payload.get("email") or "").strip()
        if not email:
            return None
        return Identity(email=email, user_id=payload.get("id"))
