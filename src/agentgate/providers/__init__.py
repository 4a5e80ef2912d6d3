"""
agentgate Model Provider Abstraction

Three interchangeable providers behind one interface: a local Ollama
instance, hosted Gemini, and the hosted OpenRouter catalog. The
ProviderRouter picks one per call from the model id.

Usage:
    from agentgate.providers import ProviderRouter, UserCredentials

    router = ProviderRouter(settings)
    result = await router.route(transcript, "gemini-1.5-flash", UserCredentials(gemini_api_key=key))
"""

from agentgate.providers.base import ChatResult, ProviderAdapter, ProviderConfig, ProviderKind
from agentgate.providers.credentials import UserCredentials
from agentgate.providers.gemini import GeminiAdapter
from agentgate.providers.ollama import OllamaAdapter
from agentgate.providers.openrouter import OpenRouterAdapter
from agentgate.providers.router import ProviderRouter, classify_model

__all__ = [
    "ChatResult",
    "GeminiAdapter",
    "OllamaAdapter",
    "OpenRouterAdapter",
    "ProviderAdapter",
    "ProviderConfig",
    "ProviderKind",
    "ProviderRouter",
    "UserCredentials",
    "classify_model",
]
