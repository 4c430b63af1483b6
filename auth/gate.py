"""Admission gate for the admin-only branding endpoints."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from config import DarkroomSettings, Settings
from utils.exceptions import ConfigurationError, ForbiddenError, UnauthenticatedError

from .supabase import Identity, IdentityResolver


logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def normalize_email(value: str) -> str:
    return str(value or "").strip().lower()


def clamp_limit(requested: Any, settings: Optional[DarkroomSettings] = None) -> int:
    """
    Batch size for a request: default when absent or unparseable, otherwise
    clamped into ``[min_limit, max_limit]``. Out-of-range values are not an error.
    """
    cfg = settings or DarkroomSettings()
    if requested is None or isinstance(requested, bool):
        return cfg.default_limit
    try:
        value = int(float(requested))
    except (TypeError, ValueError, OverflowError):
        return cfg.default_limit
    return max(cfg.min_limit, min(cfg.max_limit, value))


class AdmissionGate:
    """Authenticated + allow-listed identity, checked before any item is touched."""

    def __init__(self, resolver: IdentityResolver, allow_list: Iterable[str]) -> None:
        self.resolver = resolver
        self.allow_list = {normalize_email(email) for email in allow_list if normalize_email(email)}

    @classmethod
    def from_settings(cls, settings: Settings, resolver: IdentityResolver) -> "AdmissionGate":
        return cls(resolver=resolver, allow_list=settings.admin.allow_list)

    async def authorize(self, authorization: Optional[str]) -> Identity:
        header = str(authorization or "")
        if not header.startswith(BEARER_PREFIX):
            raise UnauthenticatedError("Missing authorization")

        token = header[len(BEARER_PREFIX):].strip()
        if not token:
            raise UnauthenticatedError("Missing authorization")

        identity = await self.resolver.resolve(token)
        if identity is None or not identity.email:
            raise UnauthenticatedError("Unauthorized")

        if normalize_email(identity.email) not in self.allow_list:
            logger.warning(f"[Admission] {identity.email} is not an admin")
            raise ForbiddenError("Admin access required", email=identity.email)

        return identity


def require_configured(settings: Settings) -> None:
    """Fail fast when the commerce platform cannot be reached at all."""
    if not settings.shopify.admin_access_token:
        raise ConfigurationError("SHOPIFY_ADMIN_ACCESS_TOKEN not configured")
    if not settings.shopify.store_domain:
        raise ConfigurationError("SHOPIFY_STORE_DOMAIN not configured")
