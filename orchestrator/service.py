"""Service layer shared by the HTTP endpoints and the CLI."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from catalog.base import ItemSource
from core import CopyStatus, event_payload
from intelligence.curator import CuratorNoteGenerator
from utils.exceptions import ChannelClosedError
from utils.logger import get_run_logger, new_run_id

from .batch import BatchOrchestrator, summarize
from .channel import ProgressChannel
from .eligibility import EligibilityRules, evaluate, preflight, preflight_summary


logger = logging.getLogger(__name__)


class BrandingService:
    """Preflight, full runs and the curator health check over one item source."""

    def __init__(
        self,
        source: ItemSource,
        orchestrator: BatchOrchestrator,
        *,
        rules: Optional[EligibilityRules] = None,
    ) -> None:
        self.source = source
        self.orchestrator = orchestrator
        self.rules = rules

    @property
    def generator(self) -> CuratorNoteGenerator:
        return self.orchestrator.generator

    async def preflight(self, limit: int) -> Dict[str, Any]:
        """Dry run: eligibility for each candidate, no side effects."""
        items = await self.source.fetch_items_needing_enrichment(limit)
        rows = preflight(items, self.rules)
        summary = preflight_summary(rows)
        logger.info(
            f"[Preflight] {summary['total']} items, {summary['will_process']} to process, "
            f"{summary['will_skip']} to skip"
        )
        return {
            "products": [row.model_dump(mode="json") for row in rows],
            "summary": summary,
        }

    async def run_pipeline(self, channel: ProgressChannel, limit: int) -> None:
        """Drive one run into ``channel``; it always ends closed, run-level failures as ``error``."""
        log = get_run_logger(channel.run_id)
        try:
            channel.start(limit)
            results = await self.orchestrator.run_from_source(
                self.source,
                limit,
                channel.progress,
                run_id=channel.run_id,
            )
            summary = summarize(results)
            channel.complete(results, summary)
            log.info(f"Run complete: {summary.success_rate}% success over {summary.total} items")
        except ChannelClosedError:
            log.info("Consumer disconnected, run stopped")
        except Exception as exc:
            log.error(f"Run failed: {exc}")
            if not channel.closed:
                channel.fail(str(exc) or exc.__class__.__name__)
        finally:
            if not channel.closed:
                channel.close()

    async def curator_check(self, limit: int) -> Dict[str, Any]:
        """Generate notes for one batch's eligible items and report how each attempt ended."""
        items = await self.source.fetch_items_needing_enrichment(limit)
        rows: List[Dict[str, Any]] = []
        counts = {status.value: 0 for status in CopyStatus}

        for item in items:
            if not evaluate(item, self.rules).will_process:
                continue
            outcome = await self.generator.generate_outcome(item.id, item.title, item.category, item.description)
            counts[outcome.status.value] += 1
            rows.append(
                {
                    "item_id": item.id,
                    "handle": item.handle,
                    "status": outcome.status.value,
                    "duration_ms": outcome.duration_ms,
                    "reason": outcome.reason,
                }
            )

        await self.generator.drain()
        return {"checked": len(rows), "counts": counts, "items": rows}


async def collect_run(service: BrandingService, limit: int, run_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Run to completion and return the emitted events as JSON-safe dicts."""
    channel = ProgressChannel(run_id or new_run_id())
    await service.run_pipeline(channel, limit)
    return [event_payload(event) for event in channel.history]
