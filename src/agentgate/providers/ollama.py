"""
agentgate Ollama Adapter

Talks to a local Ollama instance through its OpenAI-compatible endpoint
(``{ollama_url}/v1``). No API key needed. Model listing uses Ollama's
native ``/api/tags`` endpoint.

Default URL: http://localhost:11434 (OLLAMA_URL overrides it).
"""

from __future__ import annotations

from typing import Any

import httpx
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


class OllamaAdapter(ProviderAdapter):
    """Local Ollama provider using the OpenAI-compatible API."""

    kind = ProviderKind.LOCAL

    def __init__(
        self,
        config: ProviderConfig,
        *,
        client: Any = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config)
        self._base_url = config.base_url.rstrip("/")
        self._client = client or AsyncOpenAI(
            api_key="ollama",  # Ollama ignores the key but the SDK requires one
            base_url=f"{self._base_url}/v1",
            timeout=config.timeout_seconds,
        )
        self._http_client = http_client

    async def complete(
        self,
        transcript: list[ChatMessage],
        *,
        model: str,
        api_key: str | None = None,
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=to_openai_messages(transcript),
                stream=False,
            )
        except openai.OpenAIError as e:
            raise ProviderError(self.name, str(e)) from e

        choice = response.choices[0] if response.choices else None
        if choice is None or not choice.message.content:
            raise ProviderError(self.name, "empty response from model")
        return choice.message.content

    async def list_models(self, api_key: str | None = None) -> list[str]:
        url = f"{self._base_url}/api/tags"
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ProviderError(self.name, str(e)) from e

        return [m["name"] for m in response.json().get("models", []) if "name" in m]
