"""Tests for the agentgate provider layer.

Covers:
- classify_model dispatch rules
- Credential resolution order
- ProviderRouter routing, failures and model listing
- Ollama / Gemini / OpenRouter adapters against mocked transports
"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from agentgate.config import GatewaySettings
from agentgate.core.models import ChatMessage, ChatRole
from agentgate.exceptions import CredentialMissingError, ProviderError
from agentgate.providers.base import ProviderConfig, ProviderKind
from agentgate.providers.credentials import (
    UserCredentials,
    resolve_gemini_key,
    resolve_openrouter_key,
    strip_openrouter_prefix,
)
from agentgate.providers.gemini import GeminiAdapter, build_request_body
from agentgate.providers.ollama import OllamaAdapter
from agentgate.providers.openrouter import OpenRouterAdapter
from agentgate.providers.router import ProviderRouter, classify_model


def _transcript(*pairs):
    return [ChatMessage(role=role, content=content) for role, content in pairs]


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


@pytest.fixture
def adapters(fake_adapter):
    return {
        "local": fake_adapter(ProviderKind.LOCAL, reply="from local"),
        "gemini": fake_adapter(ProviderKind.GEMINI, reply="from gemini"),
        "openrouter": fake_adapter(ProviderKind.OPENROUTER, reply="from openrouter"),
    }


def _router(adapters, **settings_kwargs):
    settings = GatewaySettings(**settings_kwargs)
    return ProviderRouter(settings, **adapters)


# ─── classify_model ────────────────────────────────────────


class TestClassifyModel:
    @pytest.mark.parametrize(
        "model_id,kind",
        [
            ("gemini-1.5-flash", ProviderKind.GEMINI),
            ("gemini-2.0-pro/exp", ProviderKind.GEMINI),
            ("mistralai/mistral-7b-instruct", ProviderKind.OPENROUTER),
            ("openrouter/anthropic/claude-3-haiku", ProviderKind.OPENROUTER),
            ("deepseek-r1:latest", ProviderKind.LOCAL),
            ("llama3.1", ProviderKind.LOCAL),
            ("Gemini-1.5", ProviderKind.LOCAL),
        ],
    )
    def test_rules(self, model_id, kind):
        assert classify_model(model_id) == kind


# ─── Credentials ───────────────────────────────────────────


class TestCredentials:
    def test_user_key_wins(self):
        settings = GatewaySettings(gemini_api_key="default")
        creds = UserCredentials(gemini_api_key="mine")
        assert resolve_gemini_key("gemini-pro", creds, settings) == "mine"

    def test_falls_back_to_settings(self):
        settings = GatewaySettings(gemini_api_key="default")
        assert resolve_gemini_key("gemini-pro", UserCredentials(), settings) == "default"
        assert resolve_gemini_key("gemini-pro", None, settings) == "default"

    def test_gemini_missing(self):
        with pytest.raises(CredentialMissingError, match="credential not provided for model gemini-pro"):
            resolve_gemini_key("gemini-pro", None, GatewaySettings())

    def test_openrouter_key_per_model(self):
        creds = UserCredentials(openrouter_api_keys={"mistralai/mistral-7b": "k1"})
        settings = GatewaySettings(openrouter_api_key="default")
        assert resolve_openrouter_key("mistralai/mistral-7b", creds, settings) == "k1"
        assert resolve_openrouter_key("openrouter/mistralai/mistral-7b", creds, settings) == "k1"
        assert resolve_openrouter_key("meta/llama", creds, settings) == "default"

    def test_openrouter_missing(self):
        creds = UserCredentials(openrouter_api_keys={"a/b": "k"})
        with pytest.raises(CredentialMissingError):
            resolve_openrouter_key("c/d", creds, GatewaySettings())

    def test_strip_prefix(self):
        assert strip_openrouter_prefix("openrouter/a/b") == "a/b"
        assert strip_openrouter_prefix("a/b") == "a/b"


# ─── ProviderRouter ────────────────────────────────────────


class TestProviderRouter:
    async def test_gemini_dispatch(self, adapters):
        router = _router(adapters)
        creds = UserCredentials(gemini_api_key="g-key")
        result = await router.route(_transcript((ChatRole.USER, "hi")), "gemini-1.5-flash", creds)

        assert result.success is True
        assert result.content == "from gemini"
        assert result.provider == ProviderKind.GEMINI
        assert adapters["gemini"].calls[0]["api_key"] == "g-key"
        assert adapters["local"].calls == []
        assert adapters["openrouter"].calls == []

    async def test_openrouter_dispatch(self, adapters):
        router = _router(adapters)
        creds = UserCredentials(openrouter_api_keys={"mistralai/mistral-7b": "or-key"})
        result = await router.route(_transcript((ChatRole.USER, "hi")), "mistralai/mistral-7b", creds)

        assert result.content == "from openrouter"
        assert adapters["openrouter"].calls[0]["api_key"] == "or-key"
        assert adapters["gemini"].calls == []

    async def test_local_dispatch(self, adapters):
        router = _router(adapters)
        result = await router.route(_transcript((ChatRole.USER, "hi")), "llama3.1")
        assert result.content == "from local"
        assert adapters["local"].calls[0]["api_key"] is None

    async def test_empty_model_uses_default(self, adapters):
        router = _router(adapters, default_model="qwen2:7b")
        result = await router.route(_transcript((ChatRole.USER, "hi")), "")
        assert result.model == "qwen2:7b"
        assert adapters["local"].calls[0]["model"] == "qwen2:7b"

    @pytest.mark.parametrize("model_id", ["gemini-1.5-flash", "mistralai/mistral-7b"])
    async def test_missing_credential_makes_no_call(self, adapters, model_id):
        router = _router(adapters)
        result = await router.route(_transcript((ChatRole.USER, "hi")), model_id, UserCredentials())

        assert result.success is False
        assert f"credential not provided for model {model_id}" in result.error
        assert result.error_type == "CredentialMissingError"
        assert all(a.calls == [] for a in adapters.values())

    async def test_upstream_error_reported_once(self, adapters, fake_adapter):
        adapters["local"] = fake_adapter(ProviderKind.LOCAL, exc=ProviderError("local", "model not found"))
        router = _router(adapters)
        result = await router.route(_transcript((ChatRole.USER, "hi")), "llama3.1")

        assert result.success is False
        assert "model not found" in result.error
        assert len(adapters["local"].calls) == 1

    async def test_unexpected_error_never_raises(self, adapters, fake_adapter):
        adapters["local"] = fake_adapter(ProviderKind.LOCAL, exc=RuntimeError("socket closed"))
        router = _router(adapters)
        result = await router.route(_transcript((ChatRole.USER, "hi")), "llama3.1")
        assert result.success is False
        assert result.error == "socket closed"

    async def test_available_models(self, adapters, fake_adapter):
        adapters["local"] = fake_adapter(ProviderKind.LOCAL, models=["llama3.1"])
        adapters["gemini"] = fake_adapter(ProviderKind.GEMINI, models=["gemini-1.5-flash"])
        router = _router(adapters)
        creds = UserCredentials(gemini_api_key="k", openrouter_api_keys={"b/x": "1", "a/y": "2"})

        models = await router.available_models(creds)
        assert models == {
            "local": ["llama3.1"],
            "gemini": ["gemini-1.5-flash"],
            "openrouter": ["a/y", "b/x"],
        }

    async def test_available_models_tolerates_failures(self, adapters, fake_adapter):
        adapters["local"] = fake_adapter(ProviderKind.LOCAL, exc=ProviderError("local", "refused"))
        router = _router(adapters)
        models = await router.available_models()
        assert models["local"] == []
        assert models["openrouter"] == []


# ─── Ollama ────────────────────────────────────────────────


class TestOllamaAdapter:
    def _adapter(self, client=None, http_client=None):
        return OllamaAdapter(
            ProviderConfig(base_url="http://ollama:11434"),
            client=client,
            http_client=http_client,
        )

    async def test_complete(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_completion("hello there"))
        adapter = self._adapter(client)

        reply = await adapter.complete(
            _transcript((ChatRole.SYSTEM, "be brief"), (ChatRole.USER, "hi")),
            model="llama3.1",
        )

        assert reply == "hello there"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "llama3.1"
        assert kwargs["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
        ]

    async def test_sdk_error_wrapped(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=httpx.Request("POST", "http://ollama"))
        )
        with pytest.raises(ProviderError, match="local"):
            await self._adapter(client).complete(_transcript((ChatRole.USER, "hi")), model="m")

    async def test_empty_response(self):
        client = MagicMock()
        empty = MagicMock()
        empty.choices = []
        client.chat.completions.create = AsyncMock(return_value=empty)
        with pytest.raises(ProviderError, match="empty response"):
            await self._adapter(client).complete(_transcript((ChatRole.USER, "hi")), model="m")

    async def test_blank_content_is_empty_response(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_completion(""))
        with pytest.raises(ProviderError, match="empty response"):
            await self._adapter(client).complete(_transcript((ChatRole.USER, "hi")), model="m")

    async def test_default_client_targets_v1(self):
        adapter = self._adapter()
        assert str(adapter._client.base_url).rstrip("/") == "http://ollama:11434/v1"

    async def test_list_models(self):
        def handler(request):
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": [{"name": "llama3.1"}, {"name": "deepseek-r1:latest"}]})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            models = await self._adapter(MagicMock(), http).list_models()
        assert models == ["llama3.1", "deepseek-r1:latest"]

    async def test_list_models_failure(self):
        def handler(request):
            return httpx.Response(500, json={"error": "down"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(ProviderError):
                await self._adapter(MagicMock(), http).list_models()


# ─── Gemini ────────────────────────────────────────────────


class TestGeminiAdapter:
    def test_request_body(self):
        body = build_request_body(_transcript(
            (ChatRole.SYSTEM, "be brief"),
            (ChatRole.USER, "hi"),
            (ChatRole.ASSISTANT, "hello"),
            (ChatRole.USER, "again"),
        ))
        assert body["systemInstruction"] == {"parts": [{"text": "be brief"}]}
        assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
        assert body["contents"][1]["parts"] == [{"text": "hello"}]

    def test_request_body_without_system(self):
        assert "systemInstruction" not in build_request_body(_transcript((ChatRole.USER, "hi")))

    async def test_complete(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["key"] = request.url.params["key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "candidates": [{"content": {"parts": [{"text": "Hi "}, {"text": "there"}]}}],
            })

        adapter = GeminiAdapter(
            ProviderConfig(base_url="https://gemini.test/v1beta"),
            transport=httpx.MockTransport(handler),
        )
        reply = await adapter.complete(_transcript((ChatRole.USER, "hi")), model="gemini-1.5-flash", api_key="g")

        assert reply == "Hi there"
        assert seen["path"] == "/v1beta/models/gemini-1.5-flash:generateContent"
        assert seen["key"] == "g"
        assert seen["body"]["contents"][0]["role"] == "user"

    async def test_upstream_error_message(self):
        def handler(request):
            return httpx.Response(400, json={"error": {"message": "API key not valid"}})

        adapter = GeminiAdapter(
            ProviderConfig(base_url="https://gemini.test/v1beta"),
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(ProviderError, match="API key not valid"):
            await adapter.complete(_transcript((ChatRole.USER, "hi")), model="gemini-pro", api_key="bad")

    async def test_no_key_no_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        adapter = GeminiAdapter(
            ProviderConfig(base_url="https://gemini.test/v1beta"),
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(ProviderError, match="credential not provided"):
            await adapter.complete(_transcript((ChatRole.USER, "hi")), model="gemini-pro")

    async def test_list_models(self):
        def handler(request):
            return httpx.Response(200, json={"models": [
                {"name": "models/gemini-1.5-flash", "supportedGenerationMethods": ["generateContent"]},
                {"name": "models/embedding-001", "supportedGenerationMethods": ["embedContent"]},
            ]})

        adapter = GeminiAdapter(
            ProviderConfig(base_url="https://gemini.test/v1beta"),
            transport=httpx.MockTransport(handler),
        )
        assert await adapter.list_models("k") == ["gemini-1.5-flash"]
        assert await adapter.list_models(None) == []


# ─── OpenRouter ────────────────────────────────────────────


class TestOpenRouterAdapter:
    async def test_complete_strips_prefix_and_uses_key(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_completion("routed"))
        keys = []

        def factory(api_key):
            keys.append(api_key)
            return client

        adapter = OpenRouterAdapter(
            ProviderConfig(base_url="https://openrouter.ai/api/v1"),
            client_factory=factory,
        )
        reply = await adapter.complete(
            _transcript((ChatRole.USER, "hi")),
            model="openrouter/mistralai/mistral-7b",
            api_key="or-key",
        )

        assert reply == "routed"
        assert keys == ["or-key"]
        assert client.chat.completions.create.call_args.kwargs["model"] == "mistralai/mistral-7b"

    async def test_default_client(self):
        adapter = OpenRouterAdapter(ProviderConfig(base_url="https://openrouter.ai/api/v1"))
        client = adapter._create_client("k")
        assert str(client.base_url).rstrip("/") == "https://openrouter.ai/api/v1"
        assert client.api_key == "k"

    async def test_sdk_error_wrapped(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=httpx.Request("POST", "https://openrouter.ai"))
        )
        adapter = OpenRouterAdapter(
            ProviderConfig(base_url="https://openrouter.ai/api/v1"),
            client_factory=lambda key: client,
        )
        with pytest.raises(ProviderError, match="openrouter"):
            await adapter.complete(_transcript((ChatRole.USER, "hi")), model="a/b", api_key="k")
