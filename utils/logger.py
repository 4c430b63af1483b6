"""
Logger Configuration
Shared logging setup plus a run-scoped adapter for pipeline steps
"""
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional, Tuple
from uuid import uuid4

from rich.console import Console
from rich.logging import RichHandler


console = Console()

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_FORMAT_SIMPLE = "%(message)s"

LOG_DIR = Path(__file__).parent.parent / "logs"

ROOT_LOGGER_NAME = "darkroom"

# Module loggers use __name__, so each top-level package is its own root.
APP_LOGGER_NAMES = (
    ROOT_LOGGER_NAME,
    "auth",
    "catalog",
    "config",
    "core",
    "intelligence",
    "orchestrator",
    "utils",
    "webapp",
)


def _build_handlers(level: int, log_file: Optional[str], use_rich: bool) -> List[logging.Handler]:
    if use_rich:
        console_handler: logging.Handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE))
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler.setLevel(level)
    handlers = [console_handler]

    if log_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(level)
        handlers.append(file_handler)
    return handlers


def _attach(logger: logging.Logger, level: int, handlers: List[logging.Handler]) -> logging.Logger:
    logger.setLevel(level)
    # avoid stacking handlers on repeated setup
    if not logger.handlers:
        for handler in handlers:
            logger.addHandler(handler)
    return logger


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    use_rich: bool = True,
) -> List[logging.Logger]:
    """Configure every application package root with one shared set of handlers."""
    handlers = _build_handlers(level, log_file, use_rich)
    return [_attach(logging.getLogger(name), level, handlers) for name in APP_LOGGER_NAMES]


def new_run_id() -> str:
    """Run identifier, sortable by start time."""
    return f"run_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid4().hex[:8]}"


class RunLogger(logging.LoggerAdapter):
    """
    Logger adapter that stamps every record with the run id and step context.

    The context is rendered into the message as ``key=value`` pairs and is
    also attached to the record under ``extra["darkroom"]`` for handlers
    that want structured fields.
    """

    def __init__(self, logger: logging.Logger, run_id: str):
        super().__init__(logger, {"run_id": run_id})
        self.run_id = run_id

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        context: Dict[str, Any] = {"run_id": self.run_id}
        context.update(kwargs.pop("context", None) or {})
        rendered = " ".join(f"{key}={value}" for key, value in context.items() if value is not None)
        extra = dict(kwargs.get("extra") or {})
        extra["darkroom"] = context
        kwargs["extra"] = extra
        return f"{msg} [{rendered}]", kwargs

    def step_start(self, step: str, **context: Any) -> float:
        self.info(f"Step started: {step}", context={**context, "step": step, "status": "start"})
        return time.monotonic()

    def step_success(self, step: str, started: float, **context: Any) -> None:
        self.info(
            f"Step completed: {step}",
            context={**context, "step": step, "status": "success", "duration_ms": _elapsed_ms(started)},
        )

    def step_error(self, step: str, started: float, error: Any, **context: Any) -> None:
        self.error(
            f"Step failed: {step}",
            context={
                **context,
                "step": step,
                "status": "error",
                "duration_ms": _elapsed_ms(started),
                "error": str(error),
            },
        )

    def step_skip(self, step: str, reason: str, **context: Any) -> None:
        self.info(f"Step skipped: {step}", context={**context, "step": step, "status": "skip", "reason": reason})


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def get_run_logger(run_id: str, name: str = f"{ROOT_LOGGER_NAME}.pipeline") -> RunLogger:
    return RunLogger(logging.getLogger(name), run_id)
