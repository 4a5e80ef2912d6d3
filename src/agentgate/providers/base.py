"""
agentgate Model Provider Base

Abstract interface for model providers. The router picks one adapter
per call from the model id; every adapter turns a transcript into a
single assistant reply.

Key design decisions:
- Async-first (all adapters are async)
- No retry: an upstream failure is reported once, as a ProviderError
- Credentials are passed per call, never stored on the adapter
- Provider-agnostic result model (ChatResult)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel

from agentgate.core.models import ChatMessage


class ProviderKind(str, Enum):
    """Provider family a model id routes to."""
    GEMINI = "gemini"
    OPENROUTER = "openrouter"
    LOCAL = "local"


class ChatResult(BaseModel):
    """Outcome of one routed chat call.

    ``success`` is False exactly when ``error`` is set; ``content`` is
    then empty.
    """
    success: bool
    content: str = ""
    error: str | None = None
    error_type: str | None = None
    provider: ProviderKind
    model: str


class ProviderConfig(BaseModel):
    """Connection settings for a provider adapter."""
    base_url: str
    timeout_seconds: float = 120.0


class ProviderAdapter(ABC):
    """Abstract base class for provider adapters."""

    kind: ProviderKind

    def __init__(self, config: ProviderConfig):
        self._config = config

    @property
    def name(self) -> str:
        """Human-readable provider name."""
        return self.kind.value

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @abstractmethod
    async def complete(
        self,
        transcript: list[ChatMessage],
        *,
        model: str,
        api_key: str | None = None,
    ) -> str:
        """Send the transcript to the model and return the reply text.

        Raises:
            ProviderError: the upstream call failed or returned no content.
        """
        ...

    @abstractmethod
    async def list_models(self, api_key: str | None = None) -> list[str]:
        """Model ids this provider can serve.

        Raises:
            ProviderError: the listing request failed.
        """
        ...


def to_openai_messages(transcript: list[ChatMessage]) -> list[dict[str, str]]:
    """Render a transcript in the OpenAI chat-completions message format."""
    return [{"role": m.role.value, "content": m.content} for m in transcript]
