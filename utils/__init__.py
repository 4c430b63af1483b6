"""
Utils Module
Shared helpers: logging, errors, bounded waits
"""
from .deadline import DeadlineResult, with_deadline
from .logger import RunLogger, get_run_logger, new_run_id, setup_logging
from .exceptions import (
    AdmissionError,
    CatalogError,
    ChannelClosedError,
    ChannelStateError,
    ConfigurationError,
    DarkroomError,
    ForbiddenError,
    LLMError,
    UnauthenticatedError,
)

__all__ = [
    "DeadlineResult",
    "with_deadline",
    "RunLogger",
    "get_run_logger",
    "new_run_id",
    "setup_logging",
    "AdmissionError",
    "CatalogError",
    "ChannelClosedError",
    "ChannelStateError",
    "ConfigurationError",
    "DarkroomError",
    "ForbiddenError",
    "LLMError",
    "UnauthenticatedError",
]
