"""
agentgate Tool Execution System

Every tool call goes through the same pipeline:

    find -> enabled check -> input schema -> ExecutionContext -> handler -> output schema

Components:
- ToolManifest / ToolDescriptor: a named, schema-typed capability and its public view
- ToolRegistry: startup-populated, name-keyed collection of manifests
- ToolInvoker: the validate-execute-validate pipeline
- CommandRunner: bounded child-process execution (shell, interpreter, argv)
- Built-in tools: tree_simple/extended/full, tesseract_ocr, discovered scripts
"""

from agentgate.tools.invoker import ToolInvoker
from agentgate.tools.models import ExecutionContext, ToolDescriptor, ToolManifest
from agentgate.tools.registry import ToolRegistry
from agentgate.tools.runner import CommandResult, CommandRunner, RunnerConfig

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ExecutionContext",
    "RunnerConfig",
    "ToolDescriptor",
    "ToolInvoker",
    "ToolManifest",
    "ToolRegistry",
]
