"""Script tools: one tool per ``*.sh`` file in a scripts directory.

Discovery is an explicit startup step. ``discover_script_tools`` reads
the directory once and returns manifests; registering them is up to the
caller. Each script runs with the workspace root as its working
directory and the caller's ``args`` as its argument list.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from agentgate.exceptions import ExecutionError
from agentgate.logging import get_logger
from agentgate.tools.models import ExecutionContext, ToolManifest
from agentgate.tools.runner import CommandRunner

logger = get_logger("agentgate.tools.scripts")


class ScriptInput(BaseModel):
    args: list[str] = Field(default_factory=list, description="Arguments passed to the script")


class ScriptOutput(BaseModel):
    output: str


def _make_script_tool(script: Path, runner: CommandRunner) -> ToolManifest:
    async def _run_script(args: ScriptInput, context: ExecutionContext) -> dict[str, Any]:
        argv = [str(script)] if os.access(script, os.X_OK) else ["sh", str(script)]
        result = await runner.run_exec([*argv, *args.args], cwd=context.workspace_root.path)
        if not result.success:
            raise ExecutionError(
                f"Script '{script.name}' failed: {result.error}",
                timed_out=result.timed_out,
                output_exceeded=result.output_exceeded,
            )
        return {"output": result.output}

    return ToolManifest(
        name=script.stem,
        description=f"Run the {script.name} shell script.",
        input_schema=ScriptInput,
        output_schema=ScriptOutput,
        handler=_run_script,
        tags={"script", "shell"},
    )


def discover_script_tools(
    scripts_dir: str | os.PathLike[str],
    runner: CommandRunner,
    *,
    exclude: frozenset[str] = frozenset(),
) -> list[ToolManifest]:
    """Return one manifest per ``*.sh`` file directly inside ``scripts_dir``.

    A missing directory yields no tools.
    """
    directory = Path(scripts_dir)
    if not directory.is_dir():
        logger.warning("Scripts directory not found; no script tools registered")
        return []

    scripts = sorted(
        p for p in directory.glob("*.sh")
        if p.is_file() and p.name not in exclude
    )
    manifests = [_make_script_tool(p.resolve(), runner) for p in scripts]
    logger.info("Discovered %d script tools", len(manifests))
    return manifests
