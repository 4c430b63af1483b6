"""
LLM Factory
Builds the configured LLM provider
"""
from typing import Optional
import logging

from config import LLMSettings

from .base import BaseLLM
from .gemini_llm import GeminiLLM


logger = logging.getLogger(__name__)


DEFAULT_MODELS = {
    "gemini": "gemini-1.5-flash",
}


def get_llm(
    settings: LLMSettings,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    **kwargs,
) -> BaseLLM:
    """
    Build an LLM instance from settings.

    Args:
        settings: LLM section of the app settings
        provider: override settings.provider
        model: override the model name
        **kwargs: temperature / max_tokens overrides

    Example:
        llm = get_llm(settings.llm)
        llm = get_llm(settings.llm, model="gemini-2.0-flash", temperature=0.2)
    """
    provider = (provider or settings.provider or "gemini").lower()
    model = model or settings.model_name or DEFAULT_MODELS.get(provider)

    kwargs.setdefault("temperature", settings.temperature)
    kwargs.setdefault("max_tokens", settings.max_tokens)

    if provider == "gemini":
        if not settings.gemini_api_key:
            logger.warning("LLM_GEMINI_API_KEY not set; generation calls will fail")
        return GeminiLLM(model=model, api_key=settings.gemini_api_key, **kwargs)

    raise ValueError(f"Unsupported LLM provider: {provider}")
