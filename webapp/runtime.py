"""Service wiring shared by the web app and the CLI."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from auth import AdmissionGate, IdentityResolver, SupabaseIdentityResolver
from catalog import ImageBrander, ItemSource, ShopifyAdminClient
from config import Settings, get_settings
from intelligence.background import BackgroundSelector
from intelligence.curator import CuratorNoteGenerator
from intelligence.llm import BaseLLM, get_llm
from orchestrator import BatchOrchestrator, BrandingService, EligibilityRules


logger = logging.getLogger(__name__)


@dataclass
class BrandingServices:
    settings: Settings
    gate: AdmissionGate
    service: BrandingService
    source: ItemSource
    llm: Optional[BaseLLM] = None

    async def aclose(self) -> None:
        await self.service.generator.drain()
        await self.source.aclose()
        if self.llm is not None:
            await self.llm.aclose()


def build_services(
    settings: Settings,
    *,
    resolver: Optional[IdentityResolver] = None,
    image_brander: Optional[ImageBrander] = None,
) -> BrandingServices:
    """Build the full object graph from one settings instance."""
    darkroom = settings.darkroom
    client = ShopifyAdminClient(settings.shopify, darkroom)

    llm: Optional[BaseLLM] = None
    try:
        llm = get_llm(settings.llm)
    except ValueError as exc:
        logger.error(f"[Runtime] LLM unavailable, curator notes will fail: {exc}")

    generator = CuratorNoteGenerator(llm, client, deadline_ms=darkroom.generation_deadline_ms)
    selector = (
        BackgroundSelector(llm, deadline_ms=darkroom.background_deadline_ms)
        if darkroom.select_background
        else None
    )
    rules = EligibilityRules.from_settings(darkroom)
    orchestrator = BatchOrchestrator(
        generator,
        rules=rules,
        background_selector=selector,
        image_brander=image_brander,
        tagger=client if darkroom.retag_items else None,
        inter_item_delay=darkroom.inter_item_delay_sec,
    )
    gate = AdmissionGate.from_settings(settings, resolver or SupabaseIdentityResolver(settings.supabase))
    return BrandingServices(
        settings=settings,
        gate=gate,
        service=BrandingService(client, orchestrator, rules=rules),
        source=client,
        llm=llm,
    )


_SERVICES: Optional[BrandingServices] = None


def get_services() -> BrandingServices:
    global _SERVICES
    if _SERVICES is None:
        _SERVICES = build_services(get_settings())
    return _SERVICES
