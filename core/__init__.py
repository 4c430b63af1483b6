"""Core contracts and shared types for the branding pipeline."""

from .contracts import (
    TERMINAL_EVENT_TYPES,
    BackgroundType,
    CatalogImage,
    CatalogItem,
    CompleteEvent,
    CopyOutcome,
    CopyStatus,
    EligibilityVerdict,
    EnrichmentResult,
    EnrichmentStatus,
    ErrorEvent,
    ErrorKind,
    PreflightItem,
    ProgressEvent,
    ProgressUpdate,
    RunSummary,
    StartEvent,
    event_payload,
    utc_timestamp,
)

__all__ = [
    "TERMINAL_EVENT_TYPES",
    "BackgroundType",
    "CatalogImage",
    "CatalogItem",
    "CompleteEvent",
    "CopyOutcome",
    "CopyStatus",
    "EligibilityVerdict",
    "EnrichmentResult",
    "EnrichmentStatus",
    "ErrorEvent",
    "ErrorKind",
    "PreflightItem",
    "ProgressEvent",
    "ProgressUpdate",
    "RunSummary",
    "StartEvent",
    "event_payload",
    "utc_timestamp",
]
