"""Batch orchestration for the branding pipeline."""

from .batch import BatchOrchestrator, summarize
from .channel import ChannelState, ProgressChannel
from .eligibility import DEFAULT_RULES, EligibilityRules, evaluate, preflight, preflight_summary
from .service import BrandingService, collect_run

__all__ = [
    "BatchOrchestrator",
    "summarize",
    "ChannelState",
    "ProgressChannel",
    "DEFAULT_RULES",
    "EligibilityRules",
    "evaluate",
    "preflight",
    "preflight_summary",
    "BrandingService",
    "collect_run",
]
