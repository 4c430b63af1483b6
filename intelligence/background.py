"""Backdrop selection for product photography."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from core import BackgroundType
from utils.deadline import with_deadline

from .llm.base import BaseLLM


logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND = BackgroundType.STONE

BACKGROUND_PROMPTS: Dict[BackgroundType, str] = {
    BackgroundType.STONE: (
        "Dark brutalist concrete wall, moody single-source lighting, architectural shadows, "
        "empty space, product photography backdrop, matte finish, stone texture"
    ),
    BackgroundType.CANDLE: (
        "Dark moody candlelit scene, warm ambient glow, soft shadows, intimate atmosphere, "
        "product photography backdrop, matte finish"
    ),
    BackgroundType.GLASS: (
        "Dark reflective glass surface, subtle highlights, modern minimalist, clean shadows, "
        "product photography backdrop, matte finish"
    ),
}

SELECTOR_PROMPT = """You are a product photography expert for a gothic, minimalist brand.

Product: {title}
Tags: {tags}

Choose the BEST background for this product from these options:
- stone: Dark brutalist concrete (best for: heavy objects, furniture, structural items)
- candle: Warm candlelit atmosphere (best for: candles, ritual items, intimate objects)
- glass: Reflective glass surface (best for: glassware, delicate items, transparent objects)

Respond with ONLY ONE WORD: stone, candle, or glass

Your choice:"""


def background_prompt(background: BackgroundType) -> str:
    return BACKGROUND_PROMPTS[background]


def parse_background(answer: Optional[str]) -> Optional[BackgroundType]:
    word = str(answer or "").strip().strip(".!\"'").lower()
    try:
        return BackgroundType(word)
    except ValueError:
        return None


class BackgroundSelector:
    """Asks the LLM for a backdrop; anything unusable falls back to stone."""

    def __init__(self, llm: Optional[BaseLLM], *, deadline_ms: int = 5000) -> None:
        self.llm = llm
        self.deadline_ms = int(deadline_ms)

    async def select(self, title: str, tags: List[str]) -> BackgroundType:
        if self.llm is None:
            logger.warning("LLM not configured, defaulting to stone background")
            return DEFAULT_BACKGROUND

        prompt = SELECTOR_PROMPT.format(title=title, tags=", ".join(tags))
        try:
            bounded = await with_deadline(self.llm.agenerate(prompt), self.deadline_ms)
        except Exception as exc:
            logger.error(f"Background selection error: {exc}")
            return DEFAULT_BACKGROUND

        if bounded.timed_out:
            logger.warning(f"Background selection exceeded {self.deadline_ms}ms, defaulting to stone")
            return DEFAULT_BACKGROUND

        choice = parse_background(bounded.value)
        if choice is None:
            logger.warning(f"Invalid background answer: {bounded.value!r}, defaulting to stone")
            return DEFAULT_BACKGROUND
        return choice
