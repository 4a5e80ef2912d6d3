"""
agentgate Provider Router

Routes a chat transcript to exactly one provider, chosen from the model
id alone:

1. ids starting with "gemini"  -> GEMINI
2. ids containing "/"          -> OPENROUTER (catalog ids, "vendor/model")
3. anything else               -> LOCAL (Ollama)

A hosted model with no resolvable credential fails before any network
call. There is no fallback to another provider and no retry.
"""

from __future__ import annotations

import time

from agentgate.config import GatewaySettings
from agentgate.core.models import ChatMessage
from agentgate.exceptions import AgentGateError
from agentgate.logging import get_logger
from agentgate.providers.base import ChatResult, ProviderAdapter, ProviderConfig, ProviderKind
from agentgate.providers.credentials import (
    UserCredentials,
    resolve_gemini_key,
    resolve_openrouter_key,
)
from agentgate.providers.gemini import GeminiAdapter
from agentgate.providers.ollama import OllamaAdapter
from agentgate.providers.openrouter import OpenRouterAdapter

logger = get_logger("agentgate.providers.router")


def classify_model(model_id: str) -> ProviderKind:
    """Pick the provider family for a model id."""
    if model_id.startswith("gemini"):
        return ProviderKind.GEMINI
    if "/" in model_id:
        return ProviderKind.OPENROUTER
    return ProviderKind.LOCAL


class ProviderRouter:
    """Dispatches chat calls to the Ollama, Gemini or OpenRouter adapter.

    Adapters default to ones built from ``settings``; tests and embedding
    applications may pass their own.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        *,
        local: ProviderAdapter | None = None,
        gemini: ProviderAdapter | None = None,
        openrouter: ProviderAdapter | None = None,
    ):
        self._settings = settings
        timeout = settings.request_timeout_seconds
        self._local = local or OllamaAdapter(
            ProviderConfig(base_url=settings.ollama_url, timeout_seconds=timeout)
        )
        self._gemini = gemini or GeminiAdapter(
            ProviderConfig(base_url=settings.gemini_base_url, timeout_seconds=timeout)
        )
        self._openrouter = openrouter or OpenRouterAdapter(
            ProviderConfig(base_url=settings.openrouter_base_url, timeout_seconds=timeout)
        )

    @property
    def default_model(self) -> str:
        return self._settings.default_model

    def adapter(self, kind: ProviderKind) -> ProviderAdapter:
        match kind:
            case ProviderKind.GEMINI:
                return self._gemini
            case ProviderKind.OPENROUTER:
                return self._openrouter
            case ProviderKind.LOCAL:
                return self._local
        raise ValueError(f"Unknown provider kind: {kind}")

    def _api_key(
        self,
        kind: ProviderKind,
        model_id: str,
        credentials: UserCredentials | None,
    ) -> str | None:
        match kind:
            case ProviderKind.GEMINI:
                return resolve_gemini_key(model_id, credentials, self._settings)
            case ProviderKind.OPENROUTER:
                return resolve_openrouter_key(model_id, credentials, self._settings)
            case ProviderKind.LOCAL:
                return None
        raise ValueError(f"Unknown provider kind: {kind}")

    async def route(
        self,
        transcript: list[ChatMessage],
        model_id: str | None = None,
        credentials: UserCredentials | None = None,
    ) -> ChatResult:
        """Send ``transcript`` to the provider serving ``model_id``.

        Never raises; failures come back as ``ChatResult(success=False)``.
        """
        model = model_id or self._settings.default_model
        kind = classify_model(model)
        start = time.monotonic()

        try:
            api_key = self._api_key(kind, model, credentials)
            content = await self.adapter(kind).complete(transcript, model=model, api_key=api_key)
        except AgentGateError as e:
            logger.warning(
                "Chat call failed: %s", e.message,
                extra={"provider": kind.value, "model": model, "error_type": e.error_type},
            )
            return ChatResult(
                success=False, error=e.message, error_type=e.error_type, provider=kind, model=model,
            )
        except Exception as e:
            logger.exception(
                "Unexpected provider failure",
                extra={"provider": kind.value, "model": model},
            )
            return ChatResult(
                success=False, error=str(e), error_type="ProviderError", provider=kind, model=model,
            )

        logger.info(
            "Chat call completed",
            extra={
                "provider": kind.value,
                "model": model,
                "duration_ms": round((time.monotonic() - start) * 1000, 2),
            },
        )
        return ChatResult(success=True, content=content, provider=kind, model=model)

    async def available_models(
        self,
        credentials: UserCredentials | None = None,
    ) -> dict[str, list[str]]:
        """Model ids per provider family.

        A family whose listing fails (Ollama unreachable, bad key) yields
        an empty list; the others are unaffected.
        """
        models: dict[str, list[str]] = {}

        try:
            models[ProviderKind.LOCAL.value] = await self._local.list_models()
        except AgentGateError as e:
            logger.warning("Model listing failed: %s", e.message, extra={"provider": "local"})
            models[ProviderKind.LOCAL.value] = []

        gemini_key = (credentials.gemini_api_key if credentials else None) or self._settings.gemini_api_key
        try:
            models[ProviderKind.GEMINI.value] = await self._gemini.list_models(gemini_key)
        except AgentGateError as e:
            logger.warning("Model listing failed: %s", e.message, extra={"provider": "gemini"})
            models[ProviderKind.GEMINI.value] = []

        saved = sorted(credentials.openrouter_api_keys) if credentials else []
        models[ProviderKind.OPENROUTER.value] = saved
        return models
