"""
agentgate Core Models

Pydantic models shared across the gateway: chat transcripts, the
uniform result envelope returned by every gateway operation, and the
memory record handed to the caller after a call completes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChatRole(str, Enum):
    """Speaker of a transcript message."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """A single transcript entry."""
    role: ChatRole
    content: str
    timestamp: str = Field(default_factory=_utc_now_iso)


class Operation(str, Enum):
    """Gateway operations, as recorded in MemoryRecord.operation."""
    CHAT = "chat"
    TOOL = "tool"
    BASH = "bash"
    PYTHON = "python"


class GatewayResult(BaseModel):
    """Uniform envelope returned by every AgentGateway operation.

    Chat calls fill ``content``; tool and command calls fill ``output``.
    On failure ``error`` holds a renderable message and ``error_type``
    names the error class (ValidationError, AccessDeniedError, ...).
    """
    success: bool
    output: Any = None
    content: str | None = None
    error: str | None = None
    error_type: str | None = None
    model: str | None = None

    @classmethod
    def failure(cls, error: str, error_type: str, **kwargs: Any) -> GatewayResult:
        return cls(success=False, error=error, error_type=error_type, **kwargs)


class MemoryRecord(BaseModel):
    """Outcome record produced after a gateway call.

    The gateway never stores these; they are handed to a caller-supplied
    sink (the persistence layer).
    """
    operation: Operation
    input: str
    output: str
    model: str | None = None
    success: bool = True
    created_at: str = Field(default_factory=_utc_now_iso)
