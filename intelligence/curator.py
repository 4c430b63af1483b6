"""
Curator note generator.

Short promotional copy for one catalog item. The note stored on the item
record wins; otherwise the LLM is asked once, bounded by a deadline, and a
successful note is written back to the record in the background.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Set

from catalog.base import CopyCache
from core import CopyOutcome, CopyStatus
from utils.deadline import with_deadline

from .llm.base import BaseLLM


logger = logging.getLogger(__name__)

GENERATION_DEADLINE_MS = 3000

CURATOR_PROMPT = """Act as a high-end brutalist curator. Write a 2-sentence description of this product that focuses on texture, shadows, and architectural presence. Avoid marketing fluff like "stunning" or "must-have." Be direct, minimal, and focused on material qualities.

Product Title: {title}
Product Type: {type}
Product Description: {description}

Write only the 2-sentence curator's note. No preamble, no explanation."""

_QUOTES = "\"'"


def build_curator_prompt(title: str, category: Optional[str], description: Optional[str]) -> str:
    return CURATOR_PROMPT.format(
        title=str(title or "").strip() or "Untitled",
        type=str(category or "").strip() or "Product",
        description=str(description or "").strip() or "No description available",
    )


def clean_generated_copy(text: Optional[str]) -> str:
    """Trim whitespace and drop one leading and one trailing quote character."""
    cleaned = str(text or "").strip()
    if cleaned[:1] and cleaned[:1] in _QUOTES:
        cleaned = cleaned[1:]
    if cleaned[-1:] and cleaned[-1:] in _QUOTES:
        cleaned = cleaned[:-1]
    return cleaned.strip()


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class CuratorNoteGenerator:
    """Cache-before-generate curator notes with a hard generation deadline."""

    def __init__(
        self,
        llm: Optional[BaseLLM],
        cache: CopyCache,
        *,
        deadline_ms: int = GENERATION_DEADLINE_MS,
    ) -> None:
        self.llm = llm
        self.cache = cache
        self.deadline_ms = int(deadline_ms)
        self._pending_writes: Set["asyncio.Task[None]"] = set()

    async def generate(
        self,
        item_id: str,
        title: str,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[str]:
        """Curator note text, or None when no note could be produced. Never raises."""
        outcome = await self.generate_outcome(item_id, title, category, description)
        return outcome.text if outcome.has_text else None

    async def generate_outcome(
        self,
        item_id: str,
        title: str,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> CopyOutcome:
        started = time.monotonic()

        cached = await self._read_cached(item_id)
        if cached:
            logger.debug(f"[Curator] Using stored note for {item_id}")
            return CopyOutcome(status=CopyStatus.CACHED, text=cached, duration_ms=_elapsed_ms(started))

        if self.llm is None:
            return CopyOutcome(status=CopyStatus.FAILED, reason="LLM not configured", duration_ms=_elapsed_ms(started))

        prompt = build_curator_prompt(title, category, description)
        try:
            bounded = await with_deadline(self.llm.agenerate(prompt), self.deadline_ms)
        except Exception as exc:
            logger.error(f"[Curator] Generation failed for {item_id}: {exc}")
            return CopyOutcome(status=CopyStatus.FAILED, reason=str(exc), duration_ms=_elapsed_ms(started))

        if bounded.timed_out:
            logger.warning(f"[Curator] Generation exceeded {self.deadline_ms}ms for {item_id}, falling back")
            return CopyOutcome(
                status=CopyStatus.TIMED_OUT,
                reason=f"Generation exceeded {self.deadline_ms}ms deadline",
                duration_ms=_elapsed_ms(started),
            )

        text = clean_generated_copy(bounded.value)
        if not text:
            logger.warning(f"[Curator] Empty response for {item_id}")
            return CopyOutcome(status=CopyStatus.FAILED, reason="Empty generation", duration_ms=_elapsed_ms(started))

        self._schedule_write_back(item_id, text)
        logger.debug(f"[Curator] Generated note for {item_id}: {text[:100]}")
        return CopyOutcome(status=CopyStatus.OK, text=text, duration_ms=_elapsed_ms(started))

    async def _read_cached(self, item_id: str) -> Optional[str]:
        try:
            value = await self.cache.read_cached_copy(item_id)
        except Exception as exc:
            logger.warning(f"[Curator] Stored note lookup failed for {item_id}, treating as miss: {exc}")
            return None
        text = str(value or "").strip()
        return text or None

    def _schedule_write_back(self, item_id: str, text: str) -> None:
        task = asyncio.ensure_future(self._write_back(item_id, text))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write_back(self, item_id: str, text: str) -> None:
        try:
            saved = await self.cache.write_cached_copy(item_id, text)
        except Exception as exc:
            logger.error(f"[Curator] Cache write failed for {item_id}: {exc}")
            return
        if not saved:
            logger.warning(f"[Curator] Cache write rejected for {item_id}")

    @property
    def pending_writes(self) -> int:
        return len(self._pending_writes)

    async def drain(self) -> None:
        """Wait for outstanding cache write-backs."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)
