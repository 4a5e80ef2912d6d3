"""
agentgate Built-in Tools

Tree introspection (three levels), Tesseract OCR, and the script tool
family discovered from a scripts directory.
"""

from __future__ import annotations

import os

from agentgate.tools.builtin.ocr import make_ocr_tool
from agentgate.tools.builtin.scripts import discover_script_tools
from agentgate.tools.builtin.tree import make_tree_tools
from agentgate.tools.models import ToolManifest
from agentgate.tools.registry import ToolRegistry
from agentgate.tools.runner import CommandRunner


def builtin_tools(
    runner: CommandRunner,
    *,
    scripts_dir: str | os.PathLike[str] | None = None,
    tesseract_cmd: str = "tesseract",
) -> list[ToolManifest]:
    """Assemble the static startup list of built-in tool manifests."""
    manifests = [make_ocr_tool(runner, tesseract_cmd), *make_tree_tools()]
    if scripts_dir is not None:
        manifests.extend(discover_script_tools(scripts_dir, runner))
    return manifests


def register_all_builtins(
    registry: ToolRegistry,
    runner: CommandRunner,
    *,
    scripts_dir: str | os.PathLike[str] | None = None,
    tesseract_cmd: str = "tesseract",
) -> None:
    """Register all built-in tools with the given registry."""
    registry.register_all(
        builtin_tools(runner, scripts_dir=scripts_dir, tesseract_cmd=tesseract_cmd)
    )
