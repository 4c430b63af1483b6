"""Canonical data contracts for the catalog branding pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BackgroundType(str, Enum):
    """Photographic backdrops the image collaborator knows how to render."""

    STONE = "stone"
    CANDLE = "candle"
    GLASS = "glass"


class EnrichmentStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class ErrorKind(str, Enum):
    """Why an eligible item ended in ``error``."""

    TIMEOUT = "timeout"
    FAILURE = "failure"
    EXCEPTION = "exception"


class CopyStatus(str, Enum):
    """Tagged outcome of one curator note generation."""

    OK = "ok"
    CACHED = "cached"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class CatalogImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    url: str = ""
    alt_text: Optional[str] = None


class CatalogItem(BaseModel):
    """Read-only snapshot of one catalog item, fetched once per run."""

    model_config = ConfigDict(frozen=True)

    id: str
    handle: str
    title: str
    tags: List[str] = Field(default_factory=list)
    images: List[CatalogImage] = Field(default_factory=list)
    category: Optional[str] = None
    description: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [str(tag).strip() for tag in value if str(tag).strip()]

    @field_validator("category", "description", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Optional[str]:
        text = str(value or "").strip()
        return text or None

    @property
    def image_count(self) -> int:
        return len(self.images)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


class EligibilityVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    will_process: bool
    skip_reason: Optional[str] = None

    @classmethod
    def eligible(cls) -> "EligibilityVerdict":
        return cls(will_process=True)

    @classmethod
    def skip(cls, reason: str) -> "EligibilityVerdict":
        return cls(will_process=False, skip_reason=reason)


class PreflightItem(BaseModel):
    """One row of the dry-run report."""

    id: str
    handle: str
    title: str
    tags: List[str] = Field(default_factory=list)
    image_count: int = 0
    will_process: bool
    skip_reason: Optional[str] = None


class CopyOutcome(BaseModel):
    status: CopyStatus
    text: Optional[str] = None
    reason: Optional[str] = None
    duration_ms: int = 0

    @property
    def has_text(self) -> bool:
        return self.status in {CopyStatus.OK, CopyStatus.CACHED} and bool(self.text)


class EnrichmentResult(BaseModel):
    """Outcome for exactly one item of one run."""

    item_id: str
    handle: str = ""
    title: str = ""
    status: EnrichmentStatus
    duration_ms: int = 0
    payload: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    skip_reason: Optional[str] = None
    cached: bool = False
    background: Optional[BackgroundType] = None
    images_processed: Optional[int] = None


class RunSummary(BaseModel):
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    timed_out: int = 0
    skipped: int = 0
    success_rate: float = 0.0


class StartEvent(BaseModel):
    type: Literal["start"] = "start"
    run_id: str
    limit: int
    timestamp: str = Field(default_factory=utc_timestamp)


class ProgressUpdate(BaseModel):
    type: Literal["progress"] = "progress"
    item_id: str
    handle: str = ""
    title: str = ""
    status: EnrichmentStatus
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    skip_reason: Optional[str] = None
    duration_ms: int = 0
    processed: int = 0
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    timed_out: int = 0
    skipped: int = 0
    timestamp: str = Field(default_factory=utc_timestamp)


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    results: List[EnrichmentResult] = Field(default_factory=list)
    summary: RunSummary = Field(default_factory=RunSummary)
    timestamp: str = Field(default_factory=utc_timestamp)


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str
    timestamp: str = Field(default_factory=utc_timestamp)


ProgressEvent = Union[StartEvent, ProgressUpdate, CompleteEvent, ErrorEvent]

TERMINAL_EVENT_TYPES = {"complete", "error"}


def event_payload(event: ProgressEvent) -> Dict[str, Any]:
    """JSON-safe dict for one event."""
    return event.model_dump(mode="json", exclude_none=True)
