"""
Intelligence Module
LLM abstraction, curator note generation and backdrop selection
"""
from .llm import (
    BaseLLM,
    GeminiLLM,
    get_llm,
)
from .curator import (
    CURATOR_PROMPT,
    GENERATION_DEADLINE_MS,
    CuratorNoteGenerator,
    build_curator_prompt,
    clean_generated_copy,
)
from .background import (
    BACKGROUND_PROMPTS,
    DEFAULT_BACKGROUND,
    BackgroundSelector,
    background_prompt,
    parse_background,
)

__all__ = [
    # LLM
    "BaseLLM",
    "GeminiLLM",
    "get_llm",
    # Curator
    "CURATOR_PROMPT",
    "GENERATION_DEADLINE_MS",
    "CuratorNoteGenerator",
    "build_curator_prompt",
    "clean_generated_copy",
    # Background
    "BACKGROUND_PROMPTS",
    "DEFAULT_BACKGROUND",
    "BackgroundSelector",
    "background_prompt",
    "parse_background",
]
