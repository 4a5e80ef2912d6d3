"""
agentgate Command Runner

Executes shell commands, interpreter scripts and plain argv commands as
child processes with enforced limits:

- Timeout enforcement: the process group is killed and reaped on expiry
- Output size limit: combined stdout+stderr is counted as it streams;
  crossing the limit kills the process instead of truncating
- Fresh process per call: no shared interpreter or shell state
- Interpreter code goes to a uniquely named temp file that is removed
  on every exit path

Path checks are the caller's job: ``cwd`` must already have passed the
Sandbox Boundary. No exception crosses this module for process failures;
every outcome is a CommandResult.

Note: this is NOT an OS-level sandbox. The child runs as the same user
with the same network and filesystem access as the gateway.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import signal
import tempfile
import time
from collections.abc import Awaitable, Callable, Sequence

from pydantic import BaseModel, Field

from agentgate.logging import get_logger

logger = get_logger("agentgate.tools.runner")

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MAX_OUTPUT_BYTES = 1024 * 1024

_READ_CHUNK = 64 * 1024
# Grace period for pipes to drain once the process group has been killed
_REAP_TIMEOUT_SECONDS = 5.0
_DIAGNOSTIC_CHARS = 2000


class RunnerConfig(BaseModel):
    """Limits and defaults for a CommandRunner."""

    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, ge=100, le=600_000)
    max_output_bytes: int = Field(default=DEFAULT_MAX_OUTPUT_BYTES, ge=1024, le=64 * 1024 * 1024)
    python_interpreter: str = "python3"
    require_cwd: bool = False
    env: dict[str, str] | None = None


class CommandResult(BaseModel):
    """Outcome of one child process."""

    success: bool
    output: str = ""
    error: str | None = None
    exit_code: int | None = None
    timed_out: bool = False
    output_exceeded: bool = False
    duration_ms: float = 0.0

    @classmethod
    def refused(cls, reason: str) -> CommandResult:
        return cls(success=False, error=reason)


def _tail(data: bytes | bytearray) -> str:
    text = bytes(data).decode("utf-8", errors="replace").strip()
    if len(text) > _DIAGNOSTIC_CHARS:
        text = "..." + text[-_DIAGNOSTIC_CHARS:]
    return text


class CommandRunner:
    """Runs child processes under timeout and output-size limits."""

    def __init__(self, config: RunnerConfig | None = None):
        self._config = config or RunnerConfig()

    @property
    def config(self) -> RunnerConfig:
        return self._config

    async def run_shell(
        self,
        command: str,
        cwd: str | os.PathLike[str] | None = None,
        *,
        timeout_ms: int | None = None,
        max_output_bytes: int | None = None,
    ) -> CommandResult:
        """Run a command string through the host shell."""
        if not command or not command.strip():
            return CommandResult.refused("command is required")

        async def spawn(workdir: str | None) -> asyncio.subprocess.Process:
            return await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=workdir,
                env=self._config.env,
                start_new_session=True,
            )

        return await self._run(spawn, cwd, timeout_ms, max_output_bytes, label="shell")

    async def run_exec(
        self,
        argv: Sequence[str],
        cwd: str | os.PathLike[str] | None = None,
        *,
        timeout_ms: int | None = None,
        max_output_bytes: int | None = None,
    ) -> CommandResult:
        """Run an executable directly with an argument list (no shell)."""
        if not argv:
            return CommandResult.refused("command is required")
        args = [os.fspath(a) for a in argv]

        async def spawn(workdir: str | None) -> asyncio.subprocess.Process:
            return await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=workdir,
                env=self._config.env,
                start_new_session=True,
            )

        return await self._run(spawn, cwd, timeout_ms, max_output_bytes, label=os.path.basename(args[0]))

    async def run_interpreter(
        self,
        code: str,
        cwd: str | os.PathLike[str] | None = None,
        *,
        interpreter: str | None = None,
        suffix: str = ".py",
        timeout_ms: int | None = None,
        max_output_bytes: int | None = None,
    ) -> CommandResult:
        """Write ``code`` to a temp file and run the interpreter on it.

        The temp file is removed whether the run succeeds, fails, times out
        or raises.
        """
        fd, tmp_path = tempfile.mkstemp(prefix="agentgate_", suffix=suffix)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(code)
            return await self.run_exec(
                [interpreter or self._config.python_interpreter, tmp_path],
                cwd,
                timeout_ms=timeout_ms,
                max_output_bytes=max_output_bytes,
            )
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)

    async def _run(
        self,
        spawn: Callable[[str | None], Awaitable[asyncio.subprocess.Process]],
        cwd: str | os.PathLike[str] | None,
        timeout_ms: int | None,
        max_output_bytes: int | None,
        *,
        label: str,
    ) -> CommandResult:
        if cwd is None and self._config.require_cwd:
            return CommandResult.refused("working directory is required")
        workdir = os.fspath(cwd) if cwd is not None else None
        if workdir is not None and not os.path.isdir(workdir):
            return CommandResult.refused("working directory does not exist")

        timeout = timeout_ms or self._config.timeout_ms
        limit = max_output_bytes or self._config.max_output_bytes

        start = time.monotonic()
        try:
            proc = await spawn(workdir)
        except OSError as e:
            return CommandResult.refused(f"failed to start process: {e}")

        result = await self._collect(proc, timeout, limit)
        result.duration_ms = round((time.monotonic() - start) * 1000, 2)

        logger.info(
            "Command finished",
            extra={
                "operation": label,
                "exit_code": result.exit_code,
                "duration_ms": result.duration_ms,
                "error_type": None if result.success else _failure_kind(result),
            },
        )
        return result

    async def _collect(
        self,
        proc: asyncio.subprocess.Process,
        timeout_ms: int,
        max_output_bytes: int,
    ) -> CommandResult:
        stdout = bytearray()
        stderr = bytearray()
        total = 0
        exceeded = asyncio.Event()

        async def pump(stream: asyncio.StreamReader | None, buf: bytearray) -> None:
            nonlocal total
            if stream is None:
                return
            while True:
                chunk = await stream.read(_READ_CHUNK)
                if not chunk:
                    return
                total += len(chunk)
                if total > max_output_bytes:
                    exceeded.set()
                    return
                buf.extend(chunk)

        async def drain() -> None:
            await asyncio.gather(pump(proc.stdout, stdout), pump(proc.stderr, stderr))
            await proc.wait()

        drain_task = asyncio.create_task(drain())
        overflow_task = asyncio.create_task(exceeded.wait())
        try:
            done, _ = await asyncio.wait(
                {drain_task, overflow_task},
                timeout=timeout_ms / 1000,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            overflow_task.cancel()

        if exceeded.is_set():
            await self._terminate(proc, drain_task)
            return CommandResult(
                success=False,
                error=f"Output exceeded {max_output_bytes} bytes; process terminated",
                exit_code=proc.returncode,
                output_exceeded=True,
            )

        if drain_task not in done:
            await self._terminate(proc, drain_task)
            diagnostic = _tail(stderr)
            message = f"Command timed out after {timeout_ms}ms"
            return CommandResult(
                success=False,
                output=_tail(stdout),
                error=f"{message}\n{diagnostic}" if diagnostic else message,
                exit_code=proc.returncode,
                timed_out=True,
            )

        drain_task.result()
        out_text = bytes(stdout).decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            err_text = bytes(stderr).decode("utf-8", errors="replace").strip()
            return CommandResult(
                success=False,
                output=out_text,
                error=err_text or f"Process exited with code {proc.returncode}",
                exit_code=proc.returncode,
            )

        return CommandResult(success=True, output=out_text, exit_code=0)

    @staticmethod
    async def _terminate(proc: asyncio.subprocess.Process, drain_task: asyncio.Task) -> None:
        """Kill the whole process group and reap it."""
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                if hasattr(os, "killpg"):
                    os.killpg(proc.pid, signal.SIGKILL)
                else:
                    proc.kill()
        try:
            await asyncio.wait_for(drain_task, timeout=_REAP_TIMEOUT_SECONDS)
        except asyncio.TimeoutError:
            # A descendant left the process group and still holds a pipe open
            drain_task.cancel()
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()


def _failure_kind(result: CommandResult) -> str:
    if result.timed_out:
        return "timeout"
    if result.output_exceeded:
        return "output_exceeded"
    return "nonzero_exit"
