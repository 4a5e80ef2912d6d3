"""
Per-user workspace layout.

Each user gets a base directory under the gateway's data directory:

    <data_dir>/<sanitized email>/home          - personal file area
    <data_dir>/<sanitized email>/workspaces/*  - named workspaces

Sanitized names are themselves resolved through the Sandbox Boundary, so
a crafted email or workspace name cannot step outside ``data_dir``.
"""

from __future__ import annotations

import os
import re
import shutil

from agentgate.exceptions import NotFoundError, ValidationError
from agentgate.workspace.boundary import SandboxRoot

_EMAIL_UNSAFE = re.compile(r"[^a-zA-Z0-9@.\-]")
_WORKSPACE_UNSAFE = re.compile(r"[^a-zA-Z0-9\-_]")


def sanitize_email(email: str) -> str:
    cleaned = _EMAIL_UNSAFE.sub("_", email.strip())
    if not cleaned.strip("."):
        raise ValidationError("email cannot be used as a directory name")
    return cleaned


def sanitize_workspace_name(name: str) -> str:
    cleaned = _WORKSPACE_UNSAFE.sub("_", name.strip())
    if not cleaned:
        raise ValidationError("workspace name must not be empty")
    return cleaned


def user_base_dir(data_dir: str | os.PathLike[str], email: str) -> SandboxRoot:
    """Return (without creating) the base directory for a user."""
    data_root = SandboxRoot.of(data_dir)
    return SandboxRoot.of(data_root.resolve(sanitize_email(email)))


def user_home(data_dir: str | os.PathLike[str], email: str) -> SandboxRoot:
    """Return the user's home sandbox, creating it and the workspaces dir."""
    base = user_base_dir(data_dir, email)
    base.ensure()
    base.resolve("workspaces").mkdir(exist_ok=True)
    return SandboxRoot.of(base.resolve("home")).ensure()


def create_workspace(
    data_dir: str | os.PathLike[str],
    email: str,
    workspace_name: str,
) -> SandboxRoot:
    """Create (if needed) and return a named workspace root for a user."""
    base = user_base_dir(data_dir, email)
    workspaces = SandboxRoot.of(base.resolve("workspaces")).ensure()
    return SandboxRoot.of(workspaces.resolve(sanitize_workspace_name(workspace_name))).ensure()


def _workspaces_dir(data_dir: str | os.PathLike[str], email: str) -> SandboxRoot:
    return SandboxRoot.of(user_base_dir(data_dir, email).resolve("workspaces"))


def list_workspaces(data_dir: str | os.PathLike[str], email: str) -> list[str]:
    """Names of a user's workspaces, sorted. Missing layout means none."""
    workspaces = _workspaces_dir(data_dir, email).path
    if not workspaces.is_dir():
        return []
    return sorted(p.name for p in workspaces.iterdir() if p.is_dir() and not p.is_symlink())


def open_workspace(
    data_dir: str | os.PathLike[str],
    email: str,
    workspace_name: str,
) -> SandboxRoot:
    """Return an existing workspace root.

    Raises:
        NotFoundError: the user has no workspace of that name.
    """
    name = sanitize_workspace_name(workspace_name)
    root = SandboxRoot.of(_workspaces_dir(data_dir, email).resolve(name))
    if not root.path.is_dir():
        raise NotFoundError("Workspace", workspace_name)
    return root


def delete_workspace(
    data_dir: str | os.PathLike[str],
    email: str,
    workspace_name: str,
) -> None:
    """Remove a workspace directory and everything in it."""
    root = open_workspace(data_dir, email, workspace_name)
    shutil.rmtree(root.path)
