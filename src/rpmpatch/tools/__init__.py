"""git, worktree and diff helpers used by the overlay engine."""

from .patch import FileChange, FileChangeKind, PatchDocument, PatchError, apply_hunks, parse_patch
from .vcs import GitError, GitRepository
from .worktree import DestinationTree, PatchTree, TreePathError

__all__ = [
    "DestinationTree",
    "FileChange",
    "FileChangeKind",
    "GitError",
    "GitRepository",
    "PatchDocument",
    "PatchError",
    "PatchTree",
    "TreePathError",
    "apply_hunks",
    "parse_patch",
]
