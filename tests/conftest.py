"""Shared test fixtures for the agentgate test suite."""

import pytest

from agentgate.config import GatewaySettings
from agentgate.providers.base import ProviderAdapter, ProviderConfig
from agentgate.tools.runner import CommandRunner, RunnerConfig
from agentgate.workspace.boundary import SandboxRoot


@pytest.fixture
def workspace(tmp_path):
    """An empty sandbox root."""
    return SandboxRoot.of(tmp_path / "workspace").ensure()


@pytest.fixture
def runner():
    return CommandRunner(RunnerConfig(timeout_ms=10_000))


@pytest.fixture
def scripts_dir(tmp_path):
    directory = tmp_path / "scripts"
    directory.mkdir()
    return directory


@pytest.fixture
def settings(tmp_path, scripts_dir):
    return GatewaySettings(
        data_dir=tmp_path / "data",
        scripts_dir=scripts_dir,
        command_timeout_ms=10_000,
        gemini_api_key=None,
        openrouter_api_key=None,
    )


class FakeAdapter(ProviderAdapter):
    """Provider adapter that records calls instead of using the network."""

    def __init__(self, kind, reply="ok", exc=None, models=None):
        super().__init__(ProviderConfig(base_url="http://fake"))
        self.kind = kind
        self.calls = []
        self._reply = reply
        self._exc = exc
        self._models = models or []

    async def complete(self, transcript, *, model, api_key=None):
        self.calls.append({"model": model, "api_key": api_key, "transcript": transcript})
        if self._exc is not None:
            raise self._exc
        return self._reply

    async def list_models(self, api_key=None):
        if self._exc is not None:
            raise self._exc
        return self._models


@pytest.fixture
def fake_adapter():
    return FakeAdapter
