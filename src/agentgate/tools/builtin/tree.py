"""Directory-tree introspection tools, three fidelity levels.

- tree_simple:   name, type
- tree_extended: + size, mode (octal), prot (ls-style permissions)
- tree_full:     + owner, group, mtime, directory disk usage,
                 directories-first ordering and a trailing report node

Output follows the shape of ``tree -J -L 1``: a top directory node with
one level of ``contents``. The top node is named by its root-relative
path so host paths never leave the gateway.
"""

from __future__ import annotations

import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from agentgate.exceptions import NotFoundError
from agentgate.tools.models import ExecutionContext, ToolManifest


class TreeInput(BaseModel):
    dir: str = Field(description="Directory to list, relative to the workspace root")


class TreeOutput(BaseModel):
    tree: list[dict[str, Any]]


def _entry_type(entry: os.DirEntry) -> str:
    if entry.is_symlink():
        return "link"
    if entry.is_dir(follow_symlinks=False):
        return "directory"
    return "file"


def _owner(path: Path, uid: int) -> str:
    try:
        return path.owner()
    except (KeyError, NotImplementedError, FileNotFoundError):
        return str(uid)


def _group(path: Path, gid: int) -> str:
    try:
        return path.group()
    except (KeyError, NotImplementedError, FileNotFoundError):
        return str(gid)


def _disk_usage(path: Path) -> int:
    """Total bytes below ``path`` (the directory entry itself included)."""
    total = path.lstat().st_size
    for dirpath, dirnames, filenames in os.walk(path):
        for name in dirnames + filenames:
            try:
                total += os.lstat(os.path.join(dirpath, name)).st_size
            except FileNotFoundError:
                continue
    return total


def _scan(target: Path) -> list[os.DirEntry]:
    with os.scandir(target) as it:
        return list(it)


def _resolve_dir(dir_arg: str, context: ExecutionContext) -> Path:
    target = context.workspace_root.resolve(dir_arg, allow_root=True)
    if not target.is_dir():
        raise NotFoundError("Directory", dir_arg)
    return target


def _top_node(target: Path, context: ExecutionContext, contents: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "type": "directory",
        "name": context.workspace_root.relative(target),
        "contents": contents,
    }


def _tree_simple(args: TreeInput, context: ExecutionContext) -> dict[str, Any]:
    target = _resolve_dir(args.dir, context)
    entries = sorted(_scan(target), key=lambda e: e.name)
    contents = [{"name": e.name, "type": _entry_type(e)} for e in entries]
    return {"tree": [_top_node(target, context, contents)]}


def _extended_node(entry: os.DirEntry) -> dict[str, Any]:
    st = entry.stat(follow_symlinks=False)
    return {
        "name": entry.name,
        "type": _entry_type(entry),
        "size": st.st_size,
        "mode": f"{stat.S_IMODE(st.st_mode):04o}",
        "prot": stat.filemode(st.st_mode),
    }


def _tree_extended(args: TreeInput, context: ExecutionContext) -> dict[str, Any]:
    target = _resolve_dir(args.dir, context)
    entries = sorted(_scan(target), key=lambda e: e.name)
    contents = [_extended_node(e) for e in entries]
    return {"tree": [_top_node(target, context, contents)]}


def _tree_full(args: TreeInput, context: ExecutionContext) -> dict[str, Any]:
    target = _resolve_dir(args.dir, context)
    entries = sorted(
        _scan(target),
        key=lambda e: (_entry_type(e) != "directory", e.name),
    )

    contents: list[dict[str, Any]] = []
    directories = files = 0
    total_size = 0
    for entry in entries:
        node = _extended_node(entry)
        path = Path(entry.path)
        st = entry.stat(follow_symlinks=False)
        node["user"] = _owner(path, st.st_uid)
        node["group"] = _group(path, st.st_gid)
        node["time"] = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat()
        if node["type"] == "directory":
            directories += 1
            node["size"] = _disk_usage(path)
        else:
            files += 1
        total_size += node["size"]
        contents.append(node)

    top = _top_node(target, context, contents)
    top["size"] = target.lstat().st_size + total_size
    report = {"type": "report", "size": top["size"], "directories": directories, "files": files}
    return {"tree": [top, report]}


def make_tree_tools() -> list[ToolManifest]:
    """Fresh tree_simple / tree_extended / tree_full manifests."""
    return [
        ToolManifest(
            name="tree_simple",
            description="List files and directories (simple mode: name and type only).",
            input_schema=TreeInput,
            output_schema=TreeOutput,
            handler=_tree_simple,
            tags={"filesystem", "tree"},
        ),
        ToolManifest(
            name="tree_extended",
            description="List files and directories (extended mode: names, types, sizes, permissions).",
            input_schema=TreeInput,
            output_schema=TreeOutput,
            handler=_tree_extended,
            tags={"filesystem", "tree"},
        ),
        ToolManifest(
            name="tree_full",
            description=(
                "List files and directories (full mode: all available metadata, "
                "directory disk usage, directories first, totals)."
            ),
            input_schema=TreeInput,
            output_schema=TreeOutput,
            handler=_tree_full,
            tags={"filesystem", "tree"},
        ),
    ]
