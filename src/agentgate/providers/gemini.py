"""
agentgate Gemini Adapter

Calls the Generative Language REST API directly with httpx:

    POST {base}/models/{model}:generateContent?key=...

Transcript roles are remapped for the wire format (``assistant`` becomes
``model``) and system messages move into ``systemInstruction``.
"""

from __future__ import annotations

from typing import Any

import httpx

from agentgate.core.models import ChatMessage, ChatRole
from agentgate.exceptions import ProviderError
from agentgate.providers.base import ProviderAdapter, ProviderConfig, ProviderKind

_MODEL_PREFIX = "models/"


def build_request_body(transcript: list[ChatMessage]) -> dict[str, Any]:
    """Convert a transcript to a generateContent request body."""
    contents: list[dict[str, Any]] = []
    system_parts: list[dict[str, str]] = []

    for message in transcript:
        if message.role == ChatRole.SYSTEM:
            system_parts.append({"text": message.content})
            continue
        role = "model" if message.role == ChatRole.ASSISTANT else "user"
        contents.append({"role": role, "parts": [{"text": message.content}]})

    body: dict[str, Any] = {"contents": contents}
    if system_parts:
        body["systemInstruction"] = {"parts": system_parts}
    return body


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return f"HTTP {response.status_code}"


class GeminiAdapter(ProviderAdapter):
    """Hosted Gemini models over plain HTTPS."""

    kind = ProviderKind.GEMINI

    def __init__(self, config: ProviderConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(config)
        self._base_url = config.base_url.rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._config.timeout_seconds, transport=self._transport)

    async def complete(
        self,
        transcript: list[ChatMessage],
        *,
        model: str,
        api_key: str | None = None,
    ) -> str:
        if not api_key:
            raise ProviderError(self.name, f"credential not provided for model {model}")

        url = f"{self._base_url}/models/{model}:generateContent"
        try:
            async with self._client() as client:
                response = await client.post(
                    url, params={"key": api_key}, json=build_request_body(transcript)
                )
        except httpx.HTTPError as e:
            raise ProviderError(self.name, str(e)) from e

        if response.is_error:
            raise ProviderError(self.name, _error_message(response))

        candidates = response.json().get("candidates") or []
        if not candidates:
            raise ProviderError(self.name, "empty response from model")
        parts = candidates[0].get("content", {}).get("parts", [])
        text = "".join(p.get("text", "") for p in parts)
        if not text:
            raise ProviderError(self.name, "empty response from model")
        return text

    async def list_models(self, api_key: str | None = None) -> list[str]:
        if not api_key:
            return []
        try:
            async with self._client() as client:
                response = await client.get(f"{self._base_url}/models", params={"key": api_key})
        except httpx.HTTPError as e:
            raise ProviderError(self.name, str(e)) from e

        if response.is_error:
            raise ProviderError(self.name, _error_message(response))

        names = []
        for entry in response.json().get("models", []):
            methods = entry.get("supportedGenerationMethods")
            if methods is not None and "generateContent" not in methods:
                continue
            name = entry.get("name", "")
            names.append(name[len(_MODEL_PREFIX):] if name.startswith(_MODEL_PREFIX) else name)
        return [n for n in names if n]
