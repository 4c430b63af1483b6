"""Sequential batch orchestrator: eligibility, enrichment stages, per-item isolation."""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Awaitable, Callable, Iterable, List, Optional, Union

from catalog.base import ImageBrander, ItemSource, ItemTagger
from core import (
    BackgroundType,
    CatalogItem,
    CopyStatus,
    EnrichmentResult,
    EnrichmentStatus,
    ErrorKind,
    ProgressUpdate,
    RunSummary,
)
from intelligence.background import BackgroundSelector, background_prompt
from intelligence.curator import CuratorNoteGenerator
from utils.logger import RunLogger, get_run_logger, new_run_id

from .eligibility import EligibilityRules, evaluate


ProgressCallback = Callable[[ProgressUpdate], Union[None, Awaitable[None]]]


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def summarize(results: List[EnrichmentResult]) -> RunSummary:
    """Disjoint counts; success rate is over attempted (non-skipped) items."""
    succeeded = sum(1 for r in results if r.status == EnrichmentStatus.SUCCESS)
    skipped = sum(1 for r in results if r.status == EnrichmentStatus.SKIPPED)
    timed_out = sum(
        1 for r in results if r.status == EnrichmentStatus.ERROR and r.error_kind == ErrorKind.TIMEOUT
    )
    failed = sum(1 for r in results if r.status == EnrichmentStatus.ERROR) - timed_out
    attempted = len(results) - skipped
    rate = round(100.0 * succeeded / attempted, 1) if attempted else 0.0
    return RunSummary(
        total=len(results),
        succeeded=succeeded,
        failed=failed,
        timed_out=timed_out,
        skipped=skipped,
        success_rate=rate,
    )


class BatchOrchestrator:
    """Runs items one at a time in order; a failing stage only fails its own item."""

    def __init__(
        self,
        generator: CuratorNoteGenerator,
        *,
        rules: Optional[EligibilityRules] = None,
        background_selector: Optional[BackgroundSelector] = None,
        image_brander: Optional[ImageBrander] = None,
        tagger: Optional[ItemTagger] = None,
        inter_item_delay: float = 0.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.generator = generator
        self.rules = rules
        self.background_selector = background_selector
        self.image_brander = image_brander
        self.tagger = tagger
        self.inter_item_delay = max(0.0, float(inter_item_delay))
        self._sleep = sleep

    async def run(
        self,
        items: Iterable[CatalogItem],
        on_progress: Optional[ProgressCallback] = None,
        *,
        run_id: Optional[str] = None,
    ) -> List[EnrichmentResult]:
        log = get_run_logger(run_id or new_run_id())
        batch = list(items)
        results: List[EnrichmentResult] = []
        log.info(f"Batch started with {len(batch)} items")

        for index, item in enumerate(batch):
            result = await self._process(item, log)
            results.append(result)

            summary = summarize(results)
            update = ProgressUpdate(
                item_id=result.item_id,
                handle=result.handle,
                title=result.title,
                status=result.status,
                error_kind=result.error_kind,
                error_message=result.error_message,
                skip_reason=result.skip_reason,
                duration_ms=result.duration_ms,
                processed=len(results),
                total=len(batch),
                succeeded=summary.succeeded,
                failed=summary.failed,
                timed_out=summary.timed_out,
                skipped=summary.skipped,
            )
            if on_progress is not None:
                maybe = on_progress(update)
                if inspect.isawaitable(maybe):
                    await maybe

            more_to_come = index < len(batch) - 1
            if more_to_come and self.inter_item_delay and result.status != EnrichmentStatus.SKIPPED:
                await self._sleep(self.inter_item_delay)

        final = summarize(results)
        log.info(
            f"Batch finished: {final.succeeded} succeeded, {final.failed} failed, "
            f"{final.timed_out} timed out, {final.skipped} skipped"
        )
        return results

    async def run_from_source(
        self,
        source: ItemSource,
        limit: int,
        on_progress: Optional[ProgressCallback] = None,
        *,
        run_id: Optional[str] = None,
    ) -> List[EnrichmentResult]:
        """Fetch the batch once and run it. A fetch failure propagates to the caller."""
        items = await source.fetch_items_needing_enrichment(limit)
        return await self.run(items, on_progress, run_id=run_id)

    async def _process(self, item: CatalogItem, log: RunLogger) -> EnrichmentResult:
        context = {"item_id": item.id, "handle": item.handle}
        verdict = evaluate(item, self.rules)
        if not verdict.will_process:
            log.step_skip("eligibility", verdict.skip_reason or "", **context)
            return EnrichmentResult(
                item_id=item.id,
                handle=item.handle,
                title=item.title,
                status=EnrichmentStatus.SKIPPED,
                skip_reason=verdict.skip_reason,
            )

        started = log.step_start("enrich", **context)
        try:
            result = await self._enrich(item, started)
        except Exception as exc:
            log.step_error("enrich", started, exc, **context)
            return EnrichmentResult(
                item_id=item.id,
                handle=item.handle,
                title=item.title,
                status=EnrichmentStatus.ERROR,
                duration_ms=_elapsed_ms(started),
                error_kind=ErrorKind.EXCEPTION,
                error_message=str(exc) or exc.__class__.__name__,
            )

        if result.status == EnrichmentStatus.SUCCESS:
            log.step_success("enrich", started, **context)
        else:
            log.step_error("enrich", started, result.error_message, error_kind=result.error_kind.value, **context)
        return result

    async def _enrich(self, item: CatalogItem, started: float) -> EnrichmentResult:
        outcome = await self.generator.generate_outcome(item.id, item.title, item.category, item.description)
        if not outcome.has_text:
            kind = ErrorKind.TIMEOUT if outcome.status == CopyStatus.TIMED_OUT else ErrorKind.FAILURE
            return EnrichmentResult(
                item_id=item.id,
                handle=item.handle,
                title=item.title,
                status=EnrichmentStatus.ERROR,
                duration_ms=_elapsed_ms(started),
                error_kind=kind,
                error_message=outcome.reason or "Generation returned no copy",
            )

        background: Optional[BackgroundType] = None
        images_processed: Optional[int] = None
        # no brander: images untouched, item stays queued
        if self.image_brander is not None:
            if self.background_selector is not None:
                background = await self.background_selector.select(item.title, item.tags)
            chosen = background or BackgroundType.STONE
            images_processed = await self.image_brander.brand(item, chosen, background_prompt(chosen))
            background = chosen
            if self.tagger is not None:
                await self.tagger.mark_branded(item, background)

        return EnrichmentResult(
            item_id=item.id,
            handle=item.handle,
            title=item.title,
            status=EnrichmentStatus.SUCCESS,
            duration_ms=_elapsed_ms(started),
            payload=outcome.text,
            cached=outcome.status == CopyStatus.CACHED,
            background=background,
            images_processed=images_processed,
        )
