"""File-level views over the package checkout and the patch repository."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Dict, List

from ..errors import OverlayError
from .vcs import GitRepository

LOGGER = logging.getLogger(__name__)

__all__ = ["DestinationTree", "PatchTree", "TreePathError"]


class TreePathError(OverlayError):
    """Raised when a tree-relative path is absolute or escapes the tree root."""


def _relative(path: str | PurePosixPath) -> PurePosixPath:
    relative = PurePosixPath(path)
    if relative.is_absolute():
        raise TreePathError(f"Absolute paths are not permitted: {relative}")
    if any(part == ".." for part in relative.parts):
        raise TreePathError(f"Path escaping detected: {relative}")
    if relative.parts and relative.parts[0] == ".git":
        raise TreePathError("Paths may not target the .git directory.")
    return relative


class PatchTree:
    """Read-only view of a checked-out patch repository."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()

    def _path(self, path: str | PurePosixPath) -> Path:
        return self.root / _relative(path)

    def is_dir(self, path: str | PurePosixPath) -> bool:
        return self._path(path).is_dir()

    def read_bytes(self, path: str | PurePosixPath) -> bytes:
        return self._path(path).read_bytes()

    def list_dir(self, path: str | PurePosixPath) -> List[str]:
        """Return the names of regular files directly under ``path``, sorted."""

        directory = self._path(path)
        return sorted(entry.name for entry in directory.iterdir() if entry.is_file())


class DestinationTree:
    """Mutable package checkout whose index tracks every overlay mutation.

    Content operations act on the work tree; ``stage_add`` and
    ``stage_remove`` update the git index of the same repository.
    """

    def __init__(self, repo: GitRepository) -> None:
        self.repo = repo

    @classmethod
    def open(cls, root: Path | str) -> "DestinationTree":
        return cls(GitRepository(root))

    @property
    def root(self) -> Path:
        return self.repo.root

    def _path(self, path: str | PurePosixPath) -> Path:
        return self.root / _relative(path)

    def exists(self, path: str | PurePosixPath) -> bool:
        return self._path(path).is_file()

    def read_bytes(self, path: str | PurePosixPath) -> bytes:
        return self._path(path).read_bytes()

    def write_bytes(self, path: str | PurePosixPath, content: bytes) -> None:
        target = self._path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def remove(self, path: str | PurePosixPath) -> bool:
        """Delete ``path`` from the work tree; a missing path is a no-op."""

        target = self._path(path)
        if not target.is_file() and not target.is_symlink():
            return False
        target.unlink()
        LOGGER.debug("Removed %s from %s", path, self.root)
        return True

    def stage_add(self, path: str | PurePosixPath) -> None:
        self.repo.add(_relative(path).as_posix())

    def stage_remove(self, path: str | PurePosixPath, *, missing_ok: bool = False) -> None:
        self.repo.remove_cached(_relative(path).as_posix(), missing_ok=missing_ok)

    def is_tracked(self, path: str | PurePosixPath) -> bool:
        return self.repo.is_tracked(_relative(path).as_posix())

    def staged_changes(self) -> Dict[str, str]:
        return self.repo.staged_changes()
