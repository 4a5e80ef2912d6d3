"""
agentgate Credential Resolution

Hosted providers need an API key. A key stored for the user wins; the
process-wide key from GatewaySettings is the fallback. Credentials are
resolved on every call and never cached.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from agentgate.config import GatewaySettings
from agentgate.exceptions import CredentialMissingError
from agentgate.providers.base import ProviderKind

OPENROUTER_PREFIX = "openrouter/"


class UserCredentials(BaseModel):
    """Per-user provider credentials supplied by the authentication layer.

    ``openrouter_api_keys`` maps a model id to the key saved for it.
    """
    gemini_api_key: str | None = None
    openrouter_api_keys: dict[str, str] = Field(default_factory=dict)
    current_model: str | None = None


def strip_openrouter_prefix(model_id: str) -> str:
    """Catalog id sent on the wire for an OpenRouter model."""
    if model_id.startswith(OPENROUTER_PREFIX):
        return model_id[len(OPENROUTER_PREFIX):]
    return model_id


def resolve_gemini_key(
    model_id: str,
    credentials: UserCredentials | None,
    settings: GatewaySettings,
) -> str:
    """User key first, then the configured default.

    Raises:
        CredentialMissingError: neither source has a key.
    """
    key = (credentials.gemini_api_key if credentials else None) or settings.gemini_api_key
    if not key:
        raise CredentialMissingError(ProviderKind.GEMINI.value, model_id)
    return key


def resolve_openrouter_key(
    model_id: str,
    credentials: UserCredentials | None,
    settings: GatewaySettings,
) -> str:
    """Key saved for this model (with or without the ``openrouter/`` prefix),
    then the configured default.

    Raises:
        CredentialMissingError: neither source has a key.
    """
    key = None
    if credentials is not None:
        saved = credentials.openrouter_api_keys
        key = saved.get(model_id) or saved.get(strip_openrouter_prefix(model_id))
    key = key or settings.openrouter_api_key
    if not key:
        raise CredentialMissingError(ProviderKind.OPENROUTER.value, model_id)
    return key
