"""
agentgate Sandbox Boundary

Resolves user-supplied paths against a fixed root directory and rejects
any resolution that escapes it. This is the leaf dependency of every
filesystem-touching component: the file manager, the directory-tree
tools, OCR, and working-directory checks for command execution.

Resolution is purely lexical. The requested path is joined to the root
and normalized with os.path.normpath; containment is a string-prefix
test on the normalized result. A rejected path never reaches the
filesystem.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from agentgate.exceptions import AccessDeniedError

_LEADING_SEPARATORS = ("/", os.sep)


def _normalize_root(path: str | os.PathLike[str]) -> str:
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def _containment_prefix(root: str) -> str:
    return root if root.endswith(os.sep) else root + os.sep


def resolve(
    root: str | os.PathLike[str],
    requested_path: str,
    *,
    allow_root: bool = False,
) -> Path:
    """Resolve ``requested_path`` inside ``root``.

    A single leading separator is stripped, so "/docs" means "docs under
    the root" rather than a host-absolute path. The result must be a
    strict descendant of the root; with ``allow_root=True`` the root
    itself is accepted too (used for listings and base directories).

    Raises:
        AccessDeniedError: the normalized path is outside the root.
    """
    root_str = _normalize_root(root)
    raw = os.fspath(requested_path) if requested_path is not None else ""

    if "\x00" in raw:
        raise AccessDeniedError(raw)

    relative = raw[1:] if raw.startswith(_LEADING_SEPARATORS) else raw
    candidate = os.path.normpath(os.path.join(root_str, relative))

    if candidate == root_str:
        if allow_root:
            return Path(candidate)
        raise AccessDeniedError(raw)

    if candidate.startswith(_containment_prefix(root_str)):
        return Path(candidate)

    raise AccessDeniedError(raw)


class SandboxRoot(BaseModel):
    """An absolute directory that bounds every filesystem operation.

    Fixed at construction and never mutated. Each FileManager (and each
    ExecutionContext built from it) owns exactly one.
    """

    model_config = ConfigDict(frozen=True)

    path: Path

    @field_validator("path", mode="before")
    @classmethod
    def _normalize(cls, value: str | os.PathLike[str]) -> Path:
        normalized = _normalize_root(value)
        if normalized == os.path.abspath(os.sep):
            raise ValueError("The filesystem root cannot be used as a sandbox root")
        return Path(normalized)

    @classmethod
    def of(cls, path: str | os.PathLike[str] | SandboxRoot) -> SandboxRoot:
        """Coerce a path (or an existing SandboxRoot) into a SandboxRoot."""
        if isinstance(path, SandboxRoot):
            return path
        return cls(path=path)

    def resolve(self, requested_path: str, *, allow_root: bool = False) -> Path:
        """Resolve a user path against this root (see module-level resolve)."""
        return resolve(self.path, requested_path, allow_root=allow_root)

    def contains(self, path: str | os.PathLike[str]) -> bool:
        """True if an absolute host path lies at or below this root."""
        candidate = os.path.normpath(os.path.abspath(os.fspath(path)))
        root_str = str(self.path)
        return candidate == root_str or candidate.startswith(_containment_prefix(root_str))

    def relative(self, path: str | os.PathLike[str]) -> str:
        """Render a host path as a root-relative POSIX path for callers.

        Callers never see raw host paths; "." denotes the root itself.
        """
        if not self.contains(path):
            raise AccessDeniedError(os.fspath(path))
        rel = os.path.relpath(os.path.normpath(os.path.abspath(os.fspath(path))), self.path)
        return rel.replace(os.sep, "/")

    def ensure(self) -> SandboxRoot:
        """Create the root directory if it does not exist yet."""
        self.path.mkdir(parents=True, exist_ok=True)
        return self

    def __str__(self) -> str:
        return str(self.path)
