"""
agentgate Configuration

Process-wide settings consumed by the gateway. Values come from the
environment once, at startup, via GatewaySettings.from_env(); the
resulting object is passed explicitly to everything that needs it.

Per-user API keys always take precedence over the keys held here
(see agentgate.providers.credentials).
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_SCRIPTS_DIR = Path(__file__).resolve().parent / "scripts"

_TRUTHY = {"1", "true", "yes", "on"}


class GatewaySettings(BaseModel):
    """Configuration for an AgentGateway instance."""

    # Model providers
    ollama_url: str = "http://localhost:11434"
    default_model: str = "deepseek-r1:latest"
    gemini_api_key: str | None = None
    openrouter_api_key: str | None = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    request_timeout_seconds: float = Field(default=120.0, gt=0.0)

    # Filesystem
    data_dir: Path = Field(default_factory=lambda: Path.cwd() / ".agentgate-workspaces")
    scripts_dir: Path = DEFAULT_SCRIPTS_DIR

    # Command execution
    command_timeout_ms: int = Field(default=30_000, ge=100, le=600_000)
    max_output_bytes: int = Field(default=1024 * 1024, ge=1024, le=64 * 1024 * 1024)
    python_interpreter: str = "python3"
    tesseract_cmd: str = "tesseract"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> GatewaySettings:
        """Build settings from environment variables.

        Unset variables keep the field defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        mapping = {
            "OLLAMA_URL": "ollama_url",
            "AGENTGATE_DEFAULT_MODEL": "default_model",
            "GEMINI_API_KEY": "gemini_api_key",
            "OPENROUTER_API_KEY": "openrouter_api_key",
            "AGENTGATE_GEMINI_BASE_URL": "gemini_base_url",
            "AGENTGATE_OPENROUTER_BASE_URL": "openrouter_base_url",
            "AGENTGATE_REQUEST_TIMEOUT": "request_timeout_seconds",
            "AGENTGATE_DATA_DIR": "data_dir",
            "AGENTGATE_SCRIPTS_DIR": "scripts_dir",
            "AGENTGATE_COMMAND_TIMEOUT_MS": "command_timeout_ms",
            "AGENTGATE_MAX_OUTPUT_BYTES": "max_output_bytes",
            "AGENTGATE_PYTHON": "python_interpreter",
            "AGENTGATE_TESSERACT_CMD": "tesseract_cmd",
            "AGENTGATE_LOG_LEVEL": "log_level",
        }
        for env_name, field_name in mapping.items():
            value = env.get(env_name)
            if value:
                values[field_name] = value

        if "AGENTGATE_LOG_JSON" in env:
            values["log_json"] = env["AGENTGATE_LOG_JSON"].strip().lower() in _TRUTHY

        return cls(**values)
