"""
agentgate Tool Registry

In-memory registry of every tool the gateway can invoke. Tools are
registered once at startup from an explicit list; nothing is discovered
or registered as a side effect of a call. After startup the only write
is the administrative enabled/disabled toggle.
"""

from __future__ import annotations

from collections.abc import Iterable

from agentgate.exceptions import NotFoundError
from agentgate.logging import get_logger
from agentgate.tools.models import ToolDescriptor, ToolManifest

logger = get_logger("agentgate.tools.registry")


class ToolRegistry:
    """Name-keyed collection of ToolManifests."""

    def __init__(self, manifests: Iterable[ToolManifest] | None = None) -> None:
        self._tools: dict[str, ToolManifest] = {}
        for manifest in manifests or ():
            self.register(manifest)

    def register(self, manifest: ToolManifest) -> None:
        """Register a tool.

        Raises ValueError if a tool with the same name already exists.
        """
        if manifest.name in self._tools:
            raise ValueError(f"Tool '{manifest.name}' is already registered")
        self._tools[manifest.name] = manifest

    def register_all(self, manifests: Iterable[ToolManifest]) -> None:
        for manifest in manifests:
            self.register(manifest)

    def find(self, name: str) -> ToolManifest:
        """Exact, case-sensitive lookup.

        Raises:
            NotFoundError: no tool is registered under ``name``.
        """
        manifest = self._tools.get(name)
        if manifest is None:
            raise NotFoundError("Tool", name)
        return manifest

    def list(self) -> list[ToolDescriptor]:
        """Descriptors for all registered tools, in registration order."""
        return [m.descriptor() for m in self._tools.values()]

    def set_enabled(self, name: str, enabled: bool) -> ToolDescriptor:
        """Administrative toggle for a tool's ``enabled`` flag."""
        manifest = self.find(name)
        manifest.enabled = enabled
        logger.info(
            "Tool %s", "enabled" if enabled else "disabled",
            extra={"tool_name": name},
        )
        return manifest.descriptor()

    @property
    def names(self) -> list[str]:
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
