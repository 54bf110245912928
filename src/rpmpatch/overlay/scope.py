"""Overlay scopes and marker-directory lookup inside a patch tree."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from ..tools.worktree import PatchTree

COMMON_SCOPE = "common"
DEFAULT_COMMON_REF = "master"


@dataclass(slots=True, frozen=True)
class PatchScope:
    """One overlay layer and the patch-repository branch it is read from."""

    name: str
    ref: str

    @classmethod
    def common(cls, ref: str = DEFAULT_COMMON_REF) -> "PatchScope":
        return cls(name=COMMON_SCOPE, ref=ref)

    @classmethod
    def branch(cls, ref: str) -> "PatchScope":
        return cls(name=ref, ref=ref)

    @property
    def is_common(self) -> bool:
        return self.name == COMMON_SCOPE


@dataclass(slots=True, frozen=True)
class OverlayLayout:
    """Conventional directory names inside a patch repository."""

    marker: str = "ROCKY"
    patch_dir: str = "SRPM"
    directive_dir: str = "CFG"

    @property
    def patch_path(self) -> PurePosixPath:
        return PurePosixPath(self.marker) / self.patch_dir

    @property
    def directive_path(self) -> PurePosixPath:
        return PurePosixPath(self.marker) / self.directive_dir


class ScopeLocator:
    """Answer presence questions about the currently checked-out patch tree."""

    def __init__(self, patch_tree: PatchTree, layout: OverlayLayout | None = None) -> None:
        self.patch_tree = patch_tree
        self.layout = layout or OverlayLayout()

    def has_marker(self) -> bool:
        return self.patch_tree.is_dir(self.layout.marker)

    def has_patches(self) -> bool:
        return self.patch_tree.is_dir(self.layout.patch_path)

    def has_directives(self) -> bool:
        return self.patch_tree.is_dir(self.layout.directive_path)


__all__ = [
    "COMMON_SCOPE",
    "DEFAULT_COMMON_REF",
    "OverlayLayout",
    "PatchScope",
    "ScopeLocator",
]
