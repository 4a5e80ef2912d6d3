"""
agentgate Custom Exceptions

Structured exception hierarchy for the gateway. All agentgate-specific
exceptions inherit from AgentGateError. The AgentGateway façade turns
every one of them into a failure envelope; they never reach the caller
of a gateway operation as raised exceptions.

Exception hierarchy:
    AgentGateError
    +-- ValidationError            (malformed tool arguments or names)
    +-- AccessDeniedError          (path escapes the sandbox root)
    +-- ExecutionError             (non-zero exit, timeout, output overflow)
    +-- ProviderError              (upstream model provider failure)
    |   +-- CredentialMissingError (no API key resolved for the model)
    +-- NotFoundError              (unknown tool, file or session)
    |   +-- ToolDisabledError      (tool exists but is switched off)
    +-- ConflictError              (rename/upload destination already exists)
"""

from __future__ import annotations


class AgentGateError(Exception):
    """Base exception for all agentgate errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def error_type(self) -> str:
        """Taxonomy name reported in failure envelopes."""
        return self.__class__.__name__


class ValidationError(AgentGateError):
    """Raised when tool arguments or request fields fail validation.

    No execution is attempted after a validation failure.
    """

    def __init__(self, message: str, errors: list[dict] | None = None, details: dict | None = None):
        super().__init__(message, details={"errors": errors or [], **(details or {})})
        self.errors = errors or []


class AccessDeniedError(AgentGateError):
    """Raised when a requested path resolves outside its sandbox root.

    Raised before any filesystem call is made for the path.
    """

    def __init__(self, requested_path: str, details: dict | None = None):
        super().__init__(
            f"Access denied: path '{requested_path}' is outside the allowed directory",
            details={"requested_path": requested_path, **(details or {})},
        )
        self.requested_path = requested_path


class ExecutionError(AgentGateError):
    """Raised when a command or tool handler fails to produce a valid result."""

    def __init__(
        self,
        message: str,
        *,
        timed_out: bool = False,
        output_exceeded: bool = False,
        details: dict | None = None,
    ):
        super().__init__(
            message,
            details={"timed_out": timed_out, "output_exceeded": output_exceeded, **(details or {})},
        )
        self.timed_out = timed_out
        self.output_exceeded = output_exceeded


class ProviderError(AgentGateError):
    """Base exception for model provider errors."""

    def __init__(self, provider_name: str, message: str, details: dict | None = None):
        super().__init__(
            f"Provider '{provider_name}' error: {message}",
            details={"provider_name": provider_name, **(details or {})},
        )
        self.provider_name = provider_name


class CredentialMissingError(ProviderError):
    """Raised when no API key resolves for a hosted model. No request is sent."""

    def __init__(self, provider_name: str, model: str):
        super().__init__(
            provider_name,
            f"credential not provided for model {model}",
            details={"model": model},
        )
        self.model = model


class NotFoundError(AgentGateError):
    """Raised for unknown tools, files or sessions."""

    def __init__(self, kind: str, name: str, details: dict | None = None):
        super().__init__(
            f"{kind} not found: {name}",
            details={"kind": kind, "name": name, **(details or {})},
        )
        self.kind = kind
        self.name = name


class ToolDisabledError(NotFoundError):
    """Raised when a registered tool has been disabled by an administrator."""

    def __init__(self, name: str):
        super().__init__("Tool", name)
        self.message = f"Tool is disabled: {name}"
        self.args = (self.message,)


class ConflictError(AgentGateError):
    """Raised when a rename or upload would overwrite an existing entry."""

    def __init__(self, path: str, details: dict | None = None):
        super().__init__(
            f"Destination already exists: {path}",
            details={"path": path, **(details or {})},
        )
        self.path = path
