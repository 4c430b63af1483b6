"""
Base LLM
Provider-agnostic async completion interface
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from dataclasses import dataclass, field
from enum import Enum


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)  # prompt_tokens, completion_tokens, total_tokens
    finish_reason: Optional[str] = None
    raw_response: Optional[Any] = None


class BaseLLM(ABC):
    """
    Base class for LLM providers.

    Calls may take unbounded time; callers that need a deadline wrap
    ``acomplete`` with ``utils.deadline.with_deadline``.
    """

    def __init__(
        self,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 256,
        **kwargs,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.extra_config = kwargs

    @property
    @abstractmethod
    def provider(self) -> str:
        pass

    @abstractmethod
    async def acomplete(self, messages: List[Message], **kwargs) -> LLMResponse:
        """
        Single-shot completion.

        Args:
            messages: conversation messages
            **kwargs: per-call overrides (temperature, max_tokens)

        Returns:
            LLMResponse
        """
        pass

    async def agenerate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Prompt in, text out."""
        messages = []
        if system_prompt:
            messages.append(Message.system(system_prompt))
        messages.append(Message.user(prompt))

        response = await self.acomplete(messages)
        return response.content

    async def aclose(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model}, provider={self.provider})"
