from __future__ import annotations

import asyncio
import logging
from typing import Optional

import pytest

from catalog import InMemoryCatalog
from catalog.base import CopyCache
from core import CopyStatus
from intelligence.curator import CuratorNoteGenerator, build_curator_prompt, clean_generated_copy
from utils.logger import setup_logging

from fakes import HangingLLM, ScriptedLLM


class _BrokenCache(CopyCache):
    def __init__(self, *, read_error: Optional[Exception] = None, write_error: Optional[Exception] = None):
        self.read_error = read_error
        self.write_error = write_error
        self.writes = []

    async def read_cached_copy(self, item_id: str) -> Optional[str]:
        if self.read_error:
            raise self.read_error
        return None

    async def write_cached_copy(self, item_id: str, text: str) -> bool:
        self.writes.append((item_id, text))
        if self.write_error:
            raise self.write_error
        return True


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('"Cold basalt, carved."', "Cold basalt, carved."),
        ("'Quiet mass.'", "Quiet mass."),
        ('  "Only leading', "Only leading"),
        ('Says "stone"', 'Says "stone'),
        ("   ", ""),
        (None, ""),
    ],
)
def test_clean_generated_copy(raw, expected) -> None:
    assert clean_generated_copy(raw) == expected


def test_prompt_fills_placeholders() -> None:
    prompt = build_curator_prompt("Iron Bowl", None, "")

    assert "Product Title: Iron Bowl" in prompt
    assert "Product Type: Product" in prompt
    assert "Product Description: No description available" in prompt


@pytest.mark.asyncio
async def test_cached_note_skips_generation() -> None:
    catalog = InMemoryCatalog(notes={"p1": "Stored note."})
    llm = ScriptedLLM()
    generator = CuratorNoteGenerator(llm, catalog)

    outcome = await generator.generate_outcome("p1", "Iron Bowl")

    assert outcome.status == CopyStatus.CACHED
    assert outcome.text == "Stored note."
    assert llm.prompts == []
    assert catalog.note_writes == []


@pytest.mark.asyncio
async def test_generated_note_is_cleaned_and_written_back() -> None:
    catalog = InMemoryCatalog()
    llm = ScriptedLLM(['  "Granite holds the light. Edges stay sharp."  '])
    generator = CuratorNoteGenerator(llm, catalog)

    text = await generator.generate("p1", "Granite Block", "Sculpture", "A block.")
    await generator.drain()

    assert text == "Granite holds the light. Edges stay sharp."
    assert catalog.note_for("p1") == text
    assert "Product Type: Sculpture" in llm.prompts[0]
    assert generator.pending_writes == 0


@pytest.mark.asyncio
async def test_timeout_returns_none_without_raising() -> None:
    llm = HangingLLM()
    catalog = InMemoryCatalog()
    generator = CuratorNoteGenerator(llm, catalog, deadline_ms=20)

    outcome = await generator.generate_outcome("p1", "Slow Item")
    text = await generator.generate("p2", "Slow Item")

    assert outcome.status == CopyStatus.TIMED_OUT
    assert outcome.text is None
    assert text is None
    assert catalog.note_writes == []
    llm.release.set()
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_llm_error_is_a_failure_not_an_exception() -> None:
    generator = CuratorNoteGenerator(ScriptedLLM(error=RuntimeError("quota")), InMemoryCatalog())

    outcome = await generator.generate_outcome("p1", "Item")

    assert outcome.status == CopyStatus.FAILED
    assert "quota" in outcome.reason
    assert await generator.generate("p1", "Item") is None


@pytest.mark.asyncio
async def test_empty_generation_is_a_failure() -> None:
    catalog = InMemoryCatalog()
    generator = CuratorNoteGenerator(ScriptedLLM(['""']), catalog)

    outcome = await generator.generate_outcome("p1", "Item")
    await generator.drain()

    assert outcome.status == CopyStatus.FAILED
    assert catalog.note_writes == []


@pytest.mark.asyncio
async def test_missing_llm_is_a_failure() -> None:
    outcome = await CuratorNoteGenerator(None, InMemoryCatalog()).generate_outcome("p1", "Item")

    assert outcome.status == CopyStatus.FAILED


@pytest.mark.asyncio
async def test_cache_read_error_counts_as_miss() -> None:
    cache = _BrokenCache(read_error=RuntimeError("metafield lookup down"))
    generator = CuratorNoteGenerator(ScriptedLLM(["Fresh note."]), cache)

    outcome = await generator.generate_outcome("p1", "Item")
    await generator.drain()

    assert outcome.status == CopyStatus.OK
    assert cache.writes == [("p1", "Fresh note.")]


@pytest.mark.asyncio
async def test_cache_write_failure_keeps_generated_text() -> None:
    cache = _BrokenCache(write_error=RuntimeError("productUpdate rejected"))
    generator = CuratorNoteGenerator(ScriptedLLM(["Fresh note."]), cache)

    text = await generator.generate("p1", "Item")
    await generator.drain()

    assert text == "Fresh note."
    assert cache.writes == [("p1", "Fresh note.")]


@pytest.mark.asyncio
async def test_cache_write_failure_reaches_configured_handler(monkeypatch) -> None:
    setup_logging()
    handler = logging.getLogger("intelligence").handlers[0]
    emitted = []
    monkeypatch.setattr(handler, "emit", emitted.append)
    generator = CuratorNoteGenerator(
        ScriptedLLM(["Fresh note."]), _BrokenCache(write_error=RuntimeError("productUpdate rejected"))
    )

    await generator.generate("p1", "Item")
    await generator.drain()

    failures = [record for record in emitted if record.name == "intelligence.curator"]
    assert failures
    assert failures[-1].levelno == logging.ERROR
    assert "productUpdate rejected" in failures[-1].getMessage()
