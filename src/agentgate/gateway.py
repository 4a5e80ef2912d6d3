"""
agentgate Gateway

The single façade a UI or HTTP layer talks to. Each operation follows
the same shape:

1. Validate the request
2. Execute it (provider call, tool handler, or child process)
3. Return a GatewayResult envelope; errors never escape as exceptions
4. Hand a MemoryRecord to the optional memory sink

Usage:
    from agentgate import create_gateway

    gateway = create_gateway()
    result = await gateway.chat("Summarize my notes", model="gemini-1.5-flash")
    listing = await gateway.invoke_tool("tree_simple", {"dir": "/"}, workspace_root)
"""

from __future__ import annotations

import asyncio
import inspect
import json
import os
from collections.abc import Awaitable, Callable
from typing import Any

from agentgate.config import GatewaySettings
from agentgate.core.models import ChatMessage, ChatRole, GatewayResult, MemoryRecord, Operation
from agentgate.exceptions import AgentGateError, NotFoundError, ValidationError
from agentgate.logging import configure_logging, get_logger
from agentgate.observability.tracing import get_tracer, init_tracing
from agentgate.providers.credentials import UserCredentials
from agentgate.providers.router import ProviderRouter
from agentgate.tools.builtin import register_all_builtins
from agentgate.tools.invoker import ToolInvoker
from agentgate.tools.models import ToolDescriptor
from agentgate.tools.registry import ToolRegistry
from agentgate.tools.runner import CommandResult, CommandRunner, RunnerConfig
from agentgate.workspace.boundary import SandboxRoot
from agentgate.workspace.layout import (
    create_workspace,
    delete_workspace,
    list_workspaces,
    open_workspace,
    user_home,
)

logger = get_logger("agentgate.gateway")

MemorySink = Callable[[MemoryRecord], Awaitable[None] | None]

INTERNAL_ERROR = "internal error"
_DEFAULT_WORKSPACE = "_shared"


class AgentGateway:
    """Entry point for chat, tool invocation and command execution."""

    def __init__(
        self,
        registry: ToolRegistry,
        runner: CommandRunner,
        router: ProviderRouter,
        settings: GatewaySettings,
        memory_sink: MemorySink | None = None,
    ):
        self._registry = registry
        self._invoker = ToolInvoker(registry)
        self._runner = runner
        self._router = router
        self._settings = settings
        self._memory_sink = memory_sink

    @property
    def settings(self) -> GatewaySettings:
        return self._settings

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def default_workspace(self) -> SandboxRoot:
        """Working directory for commands run without an explicit cwd."""
        return SandboxRoot.of(self._settings.data_dir / _DEFAULT_WORKSPACE).ensure()

    def user_root(self, email: str, workspace: str | None = None) -> SandboxRoot:
        """The sandbox a user's request runs in.

        Without ``workspace`` this is the user's home, created on first use.
        A named workspace must already exist (NotFoundError otherwise).
        """
        if workspace:
            return open_workspace(self._settings.data_dir, email, workspace)
        return user_home(self._settings.data_dir, email)

    def create_workspace(self, email: str, name: str) -> SandboxRoot:
        user_home(self._settings.data_dir, email)
        return create_workspace(self._settings.data_dir, email, name)

    def list_workspaces(self, email: str) -> list[str]:
        return list_workspaces(self._settings.data_dir, email)

    async def delete_workspace(self, email: str, name: str) -> None:
        await asyncio.to_thread(delete_workspace, self._settings.data_dir, email, name)
        logger.info("Workspace deleted", extra={"operation": "delete_workspace"})

    # ── Chat ─────────────────────────────────────────────────

    async def chat(
        self,
        message: str | list[ChatMessage],
        model: str | None = None,
        credentials: UserCredentials | None = None,
    ) -> GatewayResult:
        """Send a message (or a whole transcript) to the routed provider."""
        transcript = (
            [ChatMessage(role=ChatRole.USER, content=message)]
            if isinstance(message, str)
            else list(message)
        )
        model_id = model or (credentials.current_model if credentials else None) or self._settings.default_model
        last_user = next(
            (m.content for m in reversed(transcript) if m.role == ChatRole.USER), ""
        )

        tracer = get_tracer()
        with tracer.start_as_current_span("gateway.chat") as span:
            span.set_attribute("agentgate.model", model_id)
            span.set_attribute("agentgate.transcript_length", len(transcript))

            async def run() -> GatewayResult:
                if not transcript or not any(m.content.strip() for m in transcript):
                    raise ValidationError("message is required")
                routed = await self._router.route(transcript, model_id, credentials)
                span.set_attribute("agentgate.provider", routed.provider.value)
                if not routed.success:
                    return GatewayResult.failure(
                        routed.error or "provider error",
                        routed.error_type or "ProviderError",
                        model=routed.model,
                    )
                return GatewayResult(success=True, content=routed.content, model=routed.model)

            result = await self._guard(Operation.CHAT, run, model=model_id)
            span.set_attribute("agentgate.success", result.success)

        await self._record(Operation.CHAT, last_user, result.content or result.error or "", result)
        return result

    async def available_models(self, credentials: UserCredentials | None = None) -> GatewayResult:
        """Model ids per provider family (``local``, ``gemini``, ``openrouter``)."""

        async def run() -> GatewayResult:
            return GatewayResult(success=True, output=await self._router.available_models(credentials))

        return await self._guard(Operation.CHAT, run)

    # ── Tools ────────────────────────────────────────────────

    def list_tools(self) -> list[ToolDescriptor]:
        return self._registry.list()

    def set_tool_enabled(self, name: str, enabled: bool) -> GatewayResult:
        try:
            descriptor = self._registry.set_enabled(name, enabled)
        except NotFoundError as e:
            return GatewayResult.failure(e.message, e.error_type)
        return GatewayResult(success=True, output=descriptor.model_dump(mode="json"))

    async def invoke_tool(
        self,
        name: str,
        args: Any,
        workspace_root: str | os.PathLike[str] | SandboxRoot,
    ) -> GatewayResult:
        """Run a registered tool against a workspace root."""
        tracer = get_tracer()
        with tracer.start_as_current_span("gateway.invoke_tool") as span:
            span.set_attribute("agentgate.tool_name", name)

            async def run() -> GatewayResult:
                output = await self._invoker.invoke(name, args, workspace_root)
                return GatewayResult(success=True, output=output)

            result = await self._guard(Operation.TOOL, run, tool_name=name)
            span.set_attribute("agentgate.success", result.success)

        record_input = f"{name} {json.dumps(args, default=str)}"
        record_output = json.dumps(result.output, default=str) if result.success else result.error or ""
        await self._record(Operation.TOOL, record_input, record_output, result)
        return result

    # ── Commands ─────────────────────────────────────────────

    def _working_dir(self, cwd: str | os.PathLike[str] | SandboxRoot | None) -> SandboxRoot:
        if cwd is None:
            return self.default_workspace
        root = SandboxRoot.of(cwd)
        if not root.path.is_dir():
            raise NotFoundError("Directory", str(cwd))
        return root

    async def execute_bash(
        self,
        command: str,
        cwd: str | os.PathLike[str] | SandboxRoot | None = None,
    ) -> GatewayResult:
        """Run a shell command under the configured timeout and output bound."""
        tracer = get_tracer()
        with tracer.start_as_current_span("gateway.execute_bash") as span:

            async def run() -> GatewayResult:
                if not command or not command.strip():
                    raise ValidationError("command is required")
                workdir = self._working_dir(cwd)
                return _command_envelope(await self._runner.run_shell(command, workdir.path))

            result = await self._guard(Operation.BASH, run)
            span.set_attribute("agentgate.success", result.success)

        await self._record(Operation.BASH, command, result.output or result.error or "", result)
        return result

    async def execute_python(
        self,
        code: str,
        cwd: str | os.PathLike[str] | SandboxRoot | None = None,
    ) -> GatewayResult:
        """Run Python source through the configured interpreter."""
        tracer = get_tracer()
        with tracer.start_as_current_span("gateway.execute_python") as span:

            async def run() -> GatewayResult:
                if not code or not code.strip():
                    raise ValidationError("code is required")
                workdir = self._working_dir(cwd)
                return _command_envelope(await self._runner.run_interpreter(code, workdir.path))

            result = await self._guard(Operation.PYTHON, run)
            span.set_attribute("agentgate.success", result.success)

        await self._record(Operation.PYTHON, code, result.output or result.error or "", result)
        return result

    # ── Internals ────────────────────────────────────────────

    async def _guard(
        self,
        operation: Operation,
        run: Callable[[], Awaitable[GatewayResult]],
        *,
        model: str | None = None,
        tool_name: str | None = None,
    ) -> GatewayResult:
        """Turn every exception into a failure envelope."""
        try:
            return await run()
        except AgentGateError as e:
            logger.warning(
                "%s failed: %s", operation.value, e.message,
                extra={"operation": operation.value, "error_type": e.error_type, "tool_name": tool_name},
            )
            return GatewayResult.failure(e.message, e.error_type, model=model)
        except Exception:
            logger.exception(
                "Unexpected error in %s", operation.value,
                extra={"operation": operation.value, "tool_name": tool_name},
            )
            return GatewayResult.failure(INTERNAL_ERROR, "InternalError", model=model)

    async def _record(
        self,
        operation: Operation,
        input_text: str,
        output_text: str,
        result: GatewayResult,
    ) -> None:
        if self._memory_sink is None:
            return
        record = MemoryRecord(
            operation=operation,
            input=input_text,
            output=output_text,
            model=result.model,
            success=result.success,
        )
        try:
            outcome = self._memory_sink(record)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Memory sink failed", extra={"operation": operation.value})


def _command_envelope(result: CommandResult) -> GatewayResult:
    if result.success:
        return GatewayResult(success=True, output=result.output)
    return GatewayResult.failure(
        result.error or "command failed",
        "ExecutionError",
        output=result.output or None,
    )


def create_gateway(
    settings: GatewaySettings | None = None,
    *,
    memory_sink: MemorySink | None = None,
    router: ProviderRouter | None = None,
) -> AgentGateway:
    """Build a fully wired gateway from settings (default: the environment).

    Called once at startup; the result is passed to whatever serves it.
    """
    settings = settings or GatewaySettings.from_env()
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    init_tracing()

    runner = CommandRunner(
        RunnerConfig(
            timeout_ms=settings.command_timeout_ms,
            max_output_bytes=settings.max_output_bytes,
            python_interpreter=settings.python_interpreter,
        )
    )
    registry = ToolRegistry()
    register_all_builtins(
        registry,
        runner,
        scripts_dir=settings.scripts_dir,
        tesseract_cmd=settings.tesseract_cmd,
    )
    logger.info("Gateway ready with %d tools", len(registry))

    return AgentGateway(
        registry=registry,
        runner=runner,
        router=router or ProviderRouter(settings),
        settings=settings,
        memory_sink=memory_sink,
    )
