"""
Google Gemini LLM
Used for curator notes and background selection
"""
from typing import List, Optional, Tuple
import logging

from utils.exceptions import LLMError

from .base import BaseLLM, Message, MessageRole, LLMResponse


logger = logging.getLogger(__name__)


class GeminiLLM(BaseLLM):
    """
    Google Gemini implementation

    Models:
    - gemini-1.5-flash (default, lowest latency)
    - gemini-2.0-flash
    """

    def __init__(
        self,
        model: str = "gemini-1.5-flash",
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 256,
        **kwargs,
    ):
        super().__init__(model, temperature, max_tokens, **kwargs)
        self.api_key = api_key

    @property
    def provider(self) -> str:
        return "gemini"

    def _split_messages(self, messages: List[Message]) -> Tuple[Optional[str], str]:
        """Gemini takes the system prompt separately; user turns are concatenated."""
        system_instruction = None
        parts = []
        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_instruction = msg.content
            else:
                parts.append(msg.content)
        return system_instruction, "\n\n".join(parts)

    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        if not self.api_key:
            raise LLMError("GEMINI_API_KEY is not configured", provider=self.provider)

        import google.generativeai as genai

        genai.configure(api_key=self.api_key)
        system_instruction, prompt = self._split_messages(messages)

        model = genai.GenerativeModel(
            model_name=self.model,
            generation_config={
                "temperature": kwargs.get("temperature", self.temperature),
                "max_output_tokens": kwargs.get("max_tokens", self.max_tokens),
            },
            system_instruction=system_instruction,
        )

        try:
            response = await model.generate_content_async(prompt)
        except Exception as exc:
            raise LLMError(f"Gemini request failed: {exc}", provider=self.provider) from exc

        try:
            content = response.text or ""
        except ValueError as exc:
            # .text raises when the candidate was blocked or has no parts
            raise LLMError(f"Gemini returned no text: {exc}", provider=self.provider) from exc

        usage = {}
        if getattr(response, "usage_metadata", None):
            usage = {
                "prompt_tokens": response.usage_metadata.prompt_token_count,
                "completion_tokens": response.usage_metadata.candidates_token_count,
                "total_tokens": response.usage_metadata.total_token_count,
            }

        return LLMResponse(
            content=content,
            model=self.model,
            usage=usage,
            finish_reason=response.candidates[0].finish_reason.name if response.candidates else None,
            raw_response=response,
        )
