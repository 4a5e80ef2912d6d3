"""
agentgate OpenRouter Adapter

OpenRouter speaks the OpenAI chat-completions protocol, so this adapter
uses the openai SDK with ``base_url`` pointed at OpenRouter. Keys are
per user and per model, so a client is built for each call.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import openai
from openai import AsyncOpenAI

from agentgate.core.models import ChatMessage
from agentgate.exceptions import ProviderError
from agentgate.providers.base import (
    ProviderAdapter,
    ProviderConfig,
    ProviderKind,
    to_openai_messages,
)
from agentgate.providers.credentials import strip_openrouter_prefix


class OpenRouterAdapter(ProviderAdapter):
    """Hosted models from the OpenRouter catalog."""

    kind = ProviderKind.OPENROUTER

    def __init__(
        self,
        config: ProviderConfig,
        *,
        client_factory: Callable[[str], Any] | None = None,
    ):
        super().__init__(config)
        self._client_factory = client_factory or self._create_client

    def _create_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=api_key,
            base_url=self._config.base_url,
            timeout=self._config.timeout_seconds,
        )

    async def complete(
        self,
        transcript: list[ChatMessage],
        *,
        model: str,
        api_key: str | None = None,
    ) -> str:
        if not api_key:
            raise ProviderError(self.name, f"credential not provided for model {model}")

        client = self._client_factory(api_key)
        try:
            response = await client.chat.completions.create(
                model=strip_openrouter_prefix(model),
                messages=to_openai_messages(transcript),
            )
        except openai.OpenAIError as e:
            raise ProviderError(self.name, str(e)) from e

        choice = response.choices[0] if response.choices else None
        if choice is None or not choice.message.content:
            raise ProviderError(self.name, "empty response from model")
        return choice.message.content

    async def list_models(self, api_key: str | None = None) -> list[str]:
        # The catalog is open-ended; saved per-user keys define what is offered.
        return []
