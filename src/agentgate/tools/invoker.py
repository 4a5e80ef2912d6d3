"""
agentgate Tool Invoker

Runs one tool call through a fixed sequence:

1. Registry lookup: unknown tools fail before anything else happens
2. Enabled check: disabled tools are refused
3. Input validation against the tool's input schema; the handler never
   runs on invalid arguments
4. ExecutionContext construction and handler call (sync or async)
5. Output validation against the tool's declared output schema

Errors are raised from the agentgate taxonomy; the AgentGateway turns
them into failure envelopes.
"""

from __future__ import annotations

import asyncio
import inspect
import os
import time
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from agentgate.exceptions import AgentGateError, ExecutionError, ToolDisabledError, ValidationError
from agentgate.logging import get_logger
from agentgate.tools.models import ExecutionContext, ToolManifest
from agentgate.tools.registry import ToolRegistry
from agentgate.workspace.boundary import SandboxRoot

logger = get_logger("agentgate.tools.invoker")


def _error_list(exc: PydanticValidationError) -> list[dict[str, Any]]:
    return exc.errors(include_url=False, include_context=False, include_input=False)


def _describe(errors: list[dict[str, Any]]) -> str:
    parts = []
    for err in errors[:5]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


class ToolInvoker:
    """Validates and executes tool calls against a ToolRegistry."""

    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def invoke(
        self,
        name: str,
        args: Any,
        workspace_root: str | os.PathLike[str] | SandboxRoot,
    ) -> dict[str, Any]:
        """Invoke a tool and return its validated output as plain JSON data.

        Raises:
            NotFoundError: unknown tool.
            ToolDisabledError: tool is switched off.
            ValidationError: ``args`` do not satisfy the input schema.
            AccessDeniedError: the handler was asked to leave the workspace.
            ExecutionError: the handler failed or broke its output contract.
        """
        manifest = self._registry.find(name)
        if not manifest.enabled:
            raise ToolDisabledError(name)

        validated = self._validate_input(manifest, args)
        context = ExecutionContext(workspace_root=SandboxRoot.of(workspace_root))

        start = time.monotonic()
        try:
            raw = await self._call(manifest, validated, context)
        except AgentGateError:
            raise
        except Exception as e:
            logger.exception("Tool handler raised", extra={"tool_name": name})
            raise ExecutionError(f"Tool '{name}' failed: {type(e).__name__}: {e}") from e

        output = self._validate_output(manifest, raw)
        logger.info(
            "Tool executed",
            extra={"tool_name": name, "duration_ms": round((time.monotonic() - start) * 1000, 2)},
        )
        return output

    @staticmethod
    def _validate_input(manifest: ToolManifest, args: Any) -> BaseModel:
        if args is None:
            args = {}
        if not isinstance(args, dict):
            raise ValidationError(f"Arguments for '{manifest.name}' must be an object")
        try:
            return manifest.input_schema.model_validate(args)
        except PydanticValidationError as e:
            errors = _error_list(e)
            raise ValidationError(
                f"Invalid arguments for '{manifest.name}': {_describe(errors)}",
                errors=errors,
            ) from e

    @staticmethod
    async def _call(manifest: ToolManifest, args: BaseModel, context: ExecutionContext) -> Any:
        if inspect.iscoroutinefunction(manifest.handler):
            return await manifest.handler(args, context)
        result = await asyncio.to_thread(manifest.handler, args, context)
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    def _validate_output(manifest: ToolManifest, raw: Any) -> dict[str, Any]:
        try:
            validated = manifest.output_schema.model_validate(raw, strict=True)
        except PydanticValidationError as e:
            raise ExecutionError(
                f"Tool '{manifest.name}' returned output that violates its schema: "
                f"{_describe(_error_list(e))}",
            ) from e
        return validated.model_dump(mode="json")
