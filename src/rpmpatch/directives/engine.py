"""Directive engines that mutate the package checkout."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Protocol

from ..overlay.paths import DEFAULT_SOURCES_DIR, identity_path
from ..overlay.patches import apply_patch_document, check_patch_document
from ..telemetry import OverlayObserver, log_event
from ..tools.patch import PatchError, parse_patch
from ..tools.worktree import DestinationTree, PatchTree, TreePathError
from .schema import (
    AddDirective,
    DeleteDirective,
    DirectiveDocument,
    DirectiveError,
    PatchDirective,
    ReplaceDirective,
)

LOGGER = logging.getLogger(__name__)


class DirectiveEngine(Protocol):
    def apply(
        self,
        document: DirectiveDocument,
        patch_tree: PatchTree,
        destination: DestinationTree,
    ) -> None: ...


@dataclass(slots=True)
class DefaultDirectiveEngine:
    """Apply replace, delete, add and patch directives in that order.

    Patch-tree paths (``with_file``, ``add.file``, ``patch.file``) are relative
    to the scope marker directory; checkout paths are relative to its root.
    """

    marker: str = "ROCKY"
    sources_dir: str = DEFAULT_SOURCES_DIR
    observer: OverlayObserver = log_event

    def apply(
        self,
        document: DirectiveDocument,
        patch_tree: PatchTree,
        destination: DestinationTree,
    ) -> None:
        try:
            for replace in document.replace:
                self._replace(replace, patch_tree, destination)
            for delete in document.delete:
                self._delete(delete, destination)
            for add in document.add:
                self._add(add, patch_tree, destination)
            for patch in document.patch:
                self._patch(patch, patch_tree, destination)
        except TreePathError as error:
            raise DirectiveError(str(error)) from error

    def _patch_tree_path(self, path: str) -> PurePosixPath:
        return PurePosixPath(self.marker) / path

    def _read_patch_file(self, patch_tree: PatchTree, path: str) -> bytes:
        relative = self._patch_tree_path(path)
        try:
            return patch_tree.read_bytes(relative)
        except OSError as error:
            raise DirectiveError(
                f"could not read {relative.as_posix()} from patch tree: {error}",
                details={"path": relative.as_posix()},
            ) from error

    def _replace(self, directive: ReplaceDirective, patch_tree: PatchTree, destination: DestinationTree) -> None:
        if not destination.exists(directive.file):
            raise DirectiveError(
                f"replace target {directive.file} does not exist",
                details={"path": directive.file},
            )
        if directive.with_file is not None:
            content = self._read_patch_file(patch_tree, directive.with_file)
        else:
            content = (directive.with_inline or "").encode("utf-8")
        destination.write_bytes(directive.file, content)
        destination.stage_add(directive.file)
        self.observer("stage.add", path=directive.file)

    def _delete(self, directive: DeleteDirective, destination: DestinationTree) -> None:
        if not destination.exists(directive.file):
            raise DirectiveError(
                f"delete target {directive.file} does not exist",
                details={"path": directive.file},
            )
        destination.remove(directive.file)
        destination.stage_remove(directive.file)
        self.observer("stage.remove", path=directive.file)

    def _add(self, directive: AddDirective, patch_tree: PatchTree, destination: DestinationTree) -> None:
        content = self._read_patch_file(patch_tree, directive.file)
        name = directive.name or PurePosixPath(directive.file).name
        target = PurePosixPath(self.sources_dir) / name
        destination.write_bytes(target, content)
        destination.stage_add(target)
        self.observer("stage.add", path=target)

    def _patch(self, directive: PatchDirective, patch_tree: PatchTree, destination: DestinationTree) -> None:
        raw = self._read_patch_file(patch_tree, directive.file)
        try:
            document = parse_patch(raw, source=directive.file)
            check_patch_document(document, destination, resolve=identity_path)
            apply_patch_document(document, destination, resolve=identity_path, observer=self.observer)
        except PatchError as error:
            if directive.strict:
                raise DirectiveError(
                    f"patch directive {directive.file} failed: {error}",
                    details={"path": directive.file, **error.details},
                ) from error
            LOGGER.warning("Skipping non-strict patch directive %s: %s", directive.file, error)


__all__ = ["DefaultDirectiveEngine", "DirectiveEngine"]
