"""Admin authentication and request admission."""

from .gate import AdmissionGate, clamp_limit, normalize_email, require_configured
from .supabase import Identity, IdentityResolver, SupabaseIdentityResolver

__all__ = [
    "AdmissionGate",
    "Identity",
    "IdentityResolver",
    "SupabaseIdentityResolver",
    "clamp_limit",
    "normalize_email",
    "require_configured",
]
