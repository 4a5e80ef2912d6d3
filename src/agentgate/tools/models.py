"""
agentgate Tool System Models

A tool is a ToolManifest: a name, pydantic input/output schemas and a
handler. Handlers receive the validated input model and a per-call
ExecutionContext, and return something the output schema accepts.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agentgate.workspace.boundary import SandboxRoot


class ExecutionContext(BaseModel):
    """Per-call bundle handed to a tool handler.

    Built only after the tool is found and its arguments validated.
    Handlers must not keep a reference to it after they return.
    """
    model_config = ConfigDict(frozen=True)

    workspace_root: SandboxRoot


class ToolManifest(BaseModel):
    """A named, schema-typed capability.

    ``enabled`` is the only field changed after registration, and only
    through ToolRegistry.set_enabled.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    name: str = Field(min_length=1)
    description: str
    input_schema: type[BaseModel]
    output_schema: type[BaseModel]
    handler: Callable[..., Any]
    tags: frozenset[str] = Field(default_factory=frozenset)
    enabled: bool = True

    def descriptor(self) -> ToolDescriptor:
        """Public view of this manifest: no handler, schemas as JSON Schema."""
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema.model_json_schema(),
            output_schema=self.output_schema.model_json_schema(),
            tags=sorted(self.tags),
            enabled=self.enabled,
        )


class ToolDescriptor(BaseModel):
    """What ToolRegistry.list() exposes to callers."""
    name: str
    description: str
    input_schema: dict[str, Any] = Field(default_factory=dict)
    output_schema: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    enabled: bool = True
