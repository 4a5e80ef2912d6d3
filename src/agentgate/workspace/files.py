"""
agentgate Workspace File Manager

Directory listing, folder creation, rename, delete, text reads, download
and upload
for a single sandbox root. Every operation resolves its target through
the Sandbox Boundary before touching the filesystem; none has a bypass.

Blocking filesystem calls run in a worker thread (asyncio.to_thread) so
the event loop only suspends at I/O boundaries.

Operations are not transactional. A concurrent rename and delete of the
same entry race at the OS level and whichever call lands last wins.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Literal

from pydantic import BaseModel

from agentgate.exceptions import ConflictError, NotFoundError, ValidationError
from agentgate.logging import get_logger
from agentgate.workspace.boundary import SandboxRoot

logger = get_logger("agentgate.workspace.files")

_UPLOAD_CHUNK = 1024 * 1024


class FileEntry(BaseModel):
    """One directory entry. Directories carry no size or timestamp."""
    name: str
    type: Literal["file", "directory"]
    size: int | None = None
    last_modified: str | None = None


def _check_component(name: str, field: str = "name") -> str:
    """Reject anything that is not a single, plain path component."""
    if not isinstance(name, str) or not name or name in (".", ".."):
        raise ValidationError(f"'{field}' must be a single file or folder name")
    if "/" in name or "\\" in name or os.sep in name or "\x00" in name:
        raise ValidationError(f"'{field}' must not contain path separators")
    return name


def _join(base_path: str | None, name: str) -> str:
    return os.path.join(base_path or "/", name)


class FileManager:
    """Filesystem operations confined to one SandboxRoot."""

    def __init__(self, root: str | os.PathLike[str] | SandboxRoot):
        self._root = SandboxRoot.of(root).ensure()

    @property
    def root(self) -> SandboxRoot:
        return self._root

    async def list_directory(self, dir_path: str = "/") -> list[FileEntry]:
        """List the entries of a directory inside the root."""
        safe_path = self._root.resolve(dir_path, allow_root=True)
        return await asyncio.to_thread(self._list_sync, safe_path, dir_path)

    def _list_sync(self, safe_path: Path, dir_path: str) -> list[FileEntry]:
        if not safe_path.is_dir():
            raise NotFoundError("Directory", dir_path)

        entries: list[FileEntry] = []
        with os.scandir(safe_path) as it:
            for entry in it:
                # Links are listed, not followed
                if entry.is_dir(follow_symlinks=False):
                    entries.append(FileEntry(name=entry.name, type="directory"))
                    continue
                stats = entry.stat(follow_symlinks=False)
                entries.append(FileEntry(
                    name=entry.name,
                    type="file",
                    size=stats.st_size,
                    last_modified=datetime.fromtimestamp(
                        stats.st_mtime, tz=timezone.utc
                    ).isoformat(),
                ))
        entries.sort(key=lambda e: e.name)
        return entries

    async def create_folder(self, folder_name: str, base_path: str = "/") -> str:
        """Create a folder under ``base_path``. Returns its root-relative path."""
        _check_component(folder_name)
        safe_path = self._root.resolve(_join(base_path, folder_name))
        await asyncio.to_thread(safe_path.mkdir, parents=True, exist_ok=True)
        logger.info("Folder created", extra={"operation": "create_folder"})
        return self._root.relative(safe_path)

    async def delete_item(self, item_name: str, base_path: str = "/") -> str:
        """Delete a file, or a directory with all of its descendants."""
        _check_component(item_name)
        safe_path = self._root.resolve(_join(base_path, item_name))
        await asyncio.to_thread(self._delete_sync, safe_path, item_name)
        logger.info("Item deleted", extra={"operation": "delete_item"})
        return self._root.relative(safe_path)

    @staticmethod
    def _delete_sync(safe_path: Path, item_name: str) -> None:
        if not os.path.lexists(safe_path):
            raise NotFoundError("File", item_name)
        if safe_path.is_dir() and not safe_path.is_symlink():
            shutil.rmtree(safe_path)
        else:
            safe_path.unlink()

    async def rename_item(self, old_name: str, new_name: str, base_path: str = "/") -> str:
        """Rename an entry within ``base_path``.

        Fails with ConflictError if ``new_name`` already exists; nothing is
        ever overwritten.
        """
        _check_component(old_name, "oldName")
        _check_component(new_name, "newName")
        old_path = self._root.resolve(_join(base_path, old_name))
        new_path = self._root.resolve(_join(base_path, new_name))
        await asyncio.to_thread(self._rename_sync, old_path, new_path, old_name, new_name)
        logger.info("Item renamed", extra={"operation": "rename_item"})
        return self._root.relative(new_path)

    @staticmethod
    def _rename_sync(old_path: Path, new_path: Path, old_name: str, new_name: str) -> None:
        if not os.path.lexists(old_path):
            raise NotFoundError("File", old_name)
        if os.path.lexists(new_path):
            raise ConflictError(new_name)
        os.rename(old_path, new_path)

    def get_download_path(self, file_name: str, base_path: str = "/") -> Path:
        """Resolve a downloadable file. The path is for server-side use only."""
        _check_component(file_name)
        safe_path = self._root.resolve(_join(base_path, file_name))
        if not safe_path.is_file():
            raise NotFoundError("File", file_name)
        return safe_path

    async def read_bytes(self, file_name: str, base_path: str = "/") -> bytes:
        """Return the raw contents of a file for download."""
        safe_path = self.get_download_path(file_name, base_path)
        return await asyncio.to_thread(safe_path.read_bytes)

    async def read_text(self, file_name: str, base_path: str = "/") -> str:
        """Return a file's contents as text. Undecodable bytes are replaced."""
        safe_path = self.get_download_path(file_name, base_path)
        return await asyncio.to_thread(safe_path.read_text, encoding="utf-8", errors="replace")

    async def save_upload(
        self,
        filename: str,
        data: bytes | BinaryIO,
        destination_path: str = "/",
    ) -> str:
        """Write an uploaded file straight into its validated destination.

        The destination directory must already exist. An existing file of
        the same name is a ConflictError. Returns the root-relative path.
        """
        _check_component(filename, "filename")
        dest_dir = self._root.resolve(destination_path or "/", allow_root=True)
        target = self._root.resolve(_join(destination_path, filename))
        await asyncio.to_thread(self._write_upload_sync, dest_dir, target, data, destination_path)
        logger.info("File uploaded", extra={"operation": "upload"})
        return self._root.relative(target)

    @staticmethod
    def _write_upload_sync(
        dest_dir: Path,
        target: Path,
        data: bytes | BinaryIO,
        destination_path: str,
    ) -> None:
        if not dest_dir.is_dir():
            raise NotFoundError("Directory", destination_path)
        try:
            # "x" mode makes the collision check and the create one atomic step
            with open(target, "xb") as fh:
                if isinstance(data, (bytes, bytearray, memoryview)):
                    fh.write(data)
                else:
                    shutil.copyfileobj(data, fh, _UPLOAD_CHUNK)
        except FileExistsError as e:
            raise ConflictError(target.name) from e
