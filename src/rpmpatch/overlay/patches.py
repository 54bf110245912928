"""Application of unified-diff patch files onto the package checkout."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Callable, List

from ..telemetry import OverlayObserver, log_event
from ..tools.patch import FileChange, FileChangeKind, PatchDocument, PatchError, apply_hunks, parse_patch
from ..tools.worktree import DestinationTree, PatchTree
from .paths import PathResolver

LOGGER = logging.getLogger(__name__)

PathMapper = Callable[[PurePosixPath | None], PurePosixPath | None]

DEFAULT_PATCH_SUFFIX = ".patch"


def _read_subject(destination: DestinationTree, path: PurePosixPath) -> bytes:
    try:
        return destination.read_bytes(path)
    except OSError as error:
        raise PatchError(
            f"could not open patch subject {path.as_posix()}: {error}",
            details={"path": path.as_posix()},
        ) from error


def _modify_subject(
    change: FileChange,
    destination: DestinationTree,
    old_target: PurePosixPath | None,
    new_target: PurePosixPath | None,
) -> PurePosixPath:
    # A pure rename has nothing at the new location yet; read the old one.
    assert new_target is not None
    if change.is_rename and old_target is not None and not destination.exists(new_target):
        return old_target
    return new_target


def _modified_content(
    change: FileChange,
    destination: DestinationTree,
    old_target: PurePosixPath | None,
    new_target: PurePosixPath | None,
) -> bytes:
    subject = _modify_subject(change, destination, old_target, new_target)
    return apply_hunks(_read_subject(destination, subject), change.hunks, path=subject.as_posix())


def check_patch_document(
    document: PatchDocument,
    destination: DestinationTree,
    *,
    resolve: PathMapper,
) -> None:
    """Raise :class:`PatchError` if any record would fail, without mutating anything."""

    for change in document:
        if change.kind is FileChangeKind.MODIFY:
            _modified_content(change, destination, resolve(change.old_path), resolve(change.new_path))
        elif change.kind is FileChangeKind.CREATE:
            apply_hunks(b"", change.hunks, path=str(change.new_path))


def apply_file_change(
    change: FileChange,
    destination: DestinationTree,
    *,
    resolve: PathMapper,
    observer: OverlayObserver = log_event,
) -> None:
    """Apply one file record of a patch and stage the outcome."""

    old_target = resolve(change.old_path)
    new_target = resolve(change.new_path)

    content: bytes | None = None
    if change.kind is FileChangeKind.MODIFY:
        content = _modified_content(change, destination, old_target, new_target)

    renamed_tracked = change.is_rename and old_target is not None and destination.is_tracked(old_target)

    for target in (old_target, new_target):
        if target is not None:
            destination.remove(target)

    if change.kind is FileChangeKind.CREATE:
        assert new_target is not None
        content = apply_hunks(b"", change.hunks, path=new_target.as_posix())
        destination.write_bytes(new_target, content)
        destination.stage_add(new_target)
        observer("stage.add", path=new_target)
    elif change.kind is FileChangeKind.MODIFY:
        assert new_target is not None and content is not None
        destination.write_bytes(new_target, content)
        destination.stage_add(new_target)
        observer("stage.add", path=new_target)
        if renamed_tracked:
            destination.stage_remove(old_target)
            observer("stage.remove", path=old_target)
    else:
        assert old_target is not None
        destination.stage_remove(old_target)
        observer("stage.remove", path=old_target)


def apply_patch_document(
    document: PatchDocument,
    destination: DestinationTree,
    *,
    resolve: PathMapper,
    observer: OverlayObserver = log_event,
) -> None:
    for change in document:
        apply_file_change(change, destination, resolve=resolve, observer=observer)


@dataclass(slots=True)
class PatchSetProcessor:
    """Apply every patch file of a scope directory in lexicographic order.

    Each applied patch file is copied into the destination tree at the same
    relative path and staged, recording which patches went into the commit.
    """

    resolver: PathResolver = field(default_factory=PathResolver)
    patch_dir: str = "ROCKY/SRPM"
    suffix: str = DEFAULT_PATCH_SUFFIX
    observer: OverlayObserver = log_event

    def patch_files(self, patch_tree: PatchTree) -> List[PurePosixPath]:
        directory = PurePosixPath(self.patch_dir)
        return [directory / name for name in patch_tree.list_dir(directory) if name.endswith(self.suffix)]

    def process(self, patch_tree: PatchTree, destination: DestinationTree) -> List[str]:
        applied: List[str] = []
        for relative in self.patch_files(patch_tree):
            self.observer("patch.apply", patch=relative)
            raw = patch_tree.read_bytes(relative)
            document = parse_patch(raw, source=relative.as_posix())
            apply_patch_document(document, destination, resolve=self.resolver.resolve, observer=self.observer)

            destination.write_bytes(relative, raw)
            destination.stage_add(relative)
            self.observer("stage.add", path=relative)
            applied.append(relative.as_posix())
        LOGGER.debug("Applied %d patch file(s) from %s", len(applied), self.patch_dir)
        return applied


__all__ = [
    "DEFAULT_PATCH_SUFFIX",
    "PatchSetProcessor",
    "apply_file_change",
    "check_patch_document",
    "apply_patch_document",
]
