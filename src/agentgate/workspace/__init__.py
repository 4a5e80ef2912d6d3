"""
agentgate Workspace Confinement

Everything that touches the host filesystem on a user's behalf goes
through a SandboxRoot:

- resolve / SandboxRoot: lexical containment check (the Sandbox Boundary)
- FileManager: list, create, rename, delete, download, upload
- layout: per-user home and workspace directories
"""

from agentgate.workspace.boundary import SandboxRoot, resolve
from agentgate.workspace.files import FileEntry, FileManager
from agentgate.workspace.layout import (
    create_workspace,
    delete_workspace,
    list_workspaces,
    open_workspace,
    user_home,
)

__all__ = [
    "FileEntry",
    "FileManager",
    "SandboxRoot",
    "create_workspace",
    "delete_workspace",
    "list_workspaces",
    "open_workspace",
    "resolve",
    "user_home",
]
