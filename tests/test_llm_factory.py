from __future__ import annotations

import sys
import types

import google
import pytest

from config import LLMSettings
from intelligence.llm import GeminiLLM, get_llm
from intelligence.llm.base import Message
from utils.exceptions import LLMError


def test_factory_builds_gemini_with_settings() -> None:
    llm = get_llm(LLMSettings(gemini_api_key="key", temperature=0.3, max_tokens=128))

    assert isinstance(llm, GeminiLLM)
    assert llm.model == "gemini-1.5-flash"
    assert llm.temperature == 0.3
    assert llm.max_tokens == 128


def test_factory_rejects_unknown_provider() -> None:
    with pytest.raises(ValueError, match="Unsupported LLM provider"):
        get_llm(LLMSettings(), provider="mystery")


@pytest.mark.asyncio
async def test_gemini_without_key_raises_llm_error() -> None:
    with pytest.raises(LLMError) as err:
        await GeminiLLM(api_key=None).agenerate("hello")

    assert err.value.provider == "gemini"


@pytest.mark.asyncio
async def test_gemini_sends_prompt_and_reads_text(monkeypatch) -> None:
    calls = {}

    class _Response:
        text = "  Basalt, unpolished.  "
        usage_metadata = None
        candidates = []

    class _Model:
        def __init__(self, model_name, generation_config, system_instruction):
            calls["model"] = model_name
            calls["config"] = generation_config
            calls["system"] = system_instruction

        async def generate_content_async(self, prompt):
            calls["prompt"] = prompt
            return _Response()

    fake_genai = types.SimpleNamespace(
        configure=lambda api_key: calls.setdefault("api_key", api_key),
        GenerativeModel=_Model,
    )
    monkeypatch.setitem(sys.modules, "google.generativeai", fake_genai)
    monkeypatch.setattr(google, "generativeai", fake_genai, raising=False)

    llm = GeminiLLM(model="gemini-2.0-flash", api_key="key", max_tokens=64)
    response = await llm.acomplete([Message.system("Be terse."), Message.user("Describe it.")])

    assert response.content == "  Basalt, unpolished.  "
    assert calls["api_key"] == "key"
    assert calls["model"] == "gemini-2.0-flash"
    assert calls["config"]["max_output_tokens"] == 64
    assert calls["system"] == "Be terse."
    assert calls["prompt"] == "Describe it."
