"""Tests for the Command Runner.

Covers:
- Successful shell, exec and interpreter runs
- Timeout enforcement (process group killed and reaped)
- Output size bound
- Non-zero exit reporting
- Working directory checks
- Temp file cleanup for interpreter runs
"""

import os
import sys
import time

import pytest

from agentgate.tools.runner import CommandResult, CommandRunner, RunnerConfig


@pytest.fixture
def py_runner():
    return CommandRunner(RunnerConfig(timeout_ms=10_000, python_interpreter=sys.executable))


# ─── Success paths ─────────────────────────────────────────


class TestSuccess:
    async def test_shell_output_trimmed(self, runner):
        result = await runner.run_shell("echo hello")
        assert result.success is True
        assert result.output == "hello"
        assert result.exit_code == 0
        assert result.error is None

    async def test_shell_pipeline(self, runner):
        result = await runner.run_shell("printf 'b\\na\\n' | sort")
        assert result.output == "a\nb"

    async def test_exec_argv(self, runner):
        result = await runner.run_exec(["echo", "one two"])
        assert result.output == "one two"

    async def test_cwd_respected(self, runner, tmp_path):
        result = await runner.run_shell("pwd", tmp_path)
        assert os.path.realpath(result.output) == os.path.realpath(tmp_path)

    async def test_duration_recorded(self, runner):
        result = await runner.run_shell("true")
        assert result.duration_ms >= 0


# ─── Failure paths ─────────────────────────────────────────


class TestFailures:
    async def test_nonzero_exit_uses_stderr(self, runner):
        result = await runner.run_shell("echo oops >&2; exit 3")
        assert result.success is False
        assert result.exit_code == 3
        assert result.error == "oops"

    async def test_nonzero_exit_without_stderr(self, runner):
        result = await runner.run_shell("exit 4")
        assert result.success is False
        assert result.error == "Process exited with code 4"

    async def test_empty_command_refused(self, runner):
        result = await runner.run_shell("   ")
        assert result.success is False
        assert result.error == "command is required"

    async def test_missing_binary(self, runner):
        result = await runner.run_exec(["/nonexistent/agentgate-binary"])
        assert result.success is False
        assert result.error.startswith("failed to start process")

    async def test_missing_cwd(self, runner, tmp_path):
        result = await runner.run_shell("echo hi", tmp_path / "nope")
        assert result.success is False
        assert result.error == "working directory does not exist"

    async def test_require_cwd(self):
        strict = CommandRunner(RunnerConfig(require_cwd=True))
        result = await strict.run_shell("echo hi")
        assert result.success is False
        assert result.error == "working directory is required"

    def test_refused_helper(self):
        result = CommandResult.refused("nope")
        assert result.success is False
        assert result.exit_code is None


# ─── Limits ────────────────────────────────────────────────


class TestLimits:
    async def test_timeout_kills_process(self, runner):
        start = time.monotonic()
        result = await runner.run_shell("sleep 60", timeout_ms=500)
        elapsed = time.monotonic() - start

        assert result.success is False
        assert result.timed_out is True
        assert "timed out" in result.error
        assert elapsed < 10

    async def test_timeout_reaches_whole_pipeline(self, runner):
        start = time.monotonic()
        result = await runner.run_shell("sleep 60 | cat", timeout_ms=500)
        assert result.timed_out is True
        assert time.monotonic() - start < 10

    async def test_output_bound(self, runner):
        start = time.monotonic()
        result = await runner.run_shell("yes | head -c 10000000", max_output_bytes=4096)
        assert result.success is False
        assert result.output_exceeded is True
        assert "4096" in result.error
        assert time.monotonic() - start < 10

    async def test_stderr_counts_toward_bound(self, runner):
        result = await runner.run_shell("yes >&2", max_output_bytes=2048)
        assert result.output_exceeded is True

    async def test_within_bound_succeeds(self, runner):
        result = await runner.run_shell("head -c 1000 /dev/zero | tr '\\0' a", max_output_bytes=2048)
        assert result.success is True
        assert len(result.output) == 1000

    async def test_config_defaults_applied(self):
        tight = CommandRunner(RunnerConfig(timeout_ms=300))
        result = await tight.run_shell("sleep 30")
        assert result.timed_out is True


# ─── Interpreter ───────────────────────────────────────────


class TestInterpreter:
    async def test_runs_code(self, py_runner):
        result = await py_runner.run_interpreter("print(6 * 7)")
        assert result.success is True
        assert result.output == "42"

    async def test_temp_file_removed_after_success(self, py_runner):
        result = await py_runner.run_interpreter("print(__file__)")
        path = result.output
        assert os.path.basename(path).startswith("agentgate_")
        assert not os.path.exists(path)

    async def test_temp_file_removed_after_failure(self, py_runner):
        result = await py_runner.run_interpreter("import sys\nprint(__file__)\nsys.exit(2)")
        assert result.success is False
        assert result.exit_code == 2
        assert not os.path.exists(result.output)

    async def test_temp_file_removed_after_timeout(self, py_runner, tmp_path):
        marker = tmp_path / "path.txt"
        code = f"open({str(marker)!r}, 'w').write(__file__)\nimport time\ntime.sleep(60)\n"
        result = await py_runner.run_interpreter(code, timeout_ms=2000)
        assert result.timed_out is True
        assert not os.path.exists(marker.read_text())

    async def test_exception_reported(self, py_runner):
        result = await py_runner.run_interpreter("raise ValueError('bad value')")
        assert result.success is False
        assert "ValueError: bad value" in result.error
