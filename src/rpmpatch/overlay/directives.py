"""Dispatch of directive files to a directive engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List

from ..directives.engine import DefaultDirectiveEngine, DirectiveEngine
from ..directives.schema import decode_directive
from ..telemetry import OverlayObserver, log_event
from ..tools.worktree import DestinationTree, PatchTree

DEFAULT_DIRECTIVE_SUFFIX = ".cfg"


@dataclass(slots=True)
class DirectiveProcessor:
    """Decode each directive file of a scope directory and hand it to the engine."""

    engine: DirectiveEngine = field(default_factory=DefaultDirectiveEngine)
    directive_dir: str = "ROCKY/CFG"
    suffix: str = DEFAULT_DIRECTIVE_SUFFIX
    observer: OverlayObserver = log_event

    def directive_files(self, patch_tree: PatchTree) -> List[PurePosixPath]:
        directory = PurePosixPath(self.directive_dir)
        return [directory / name for name in patch_tree.list_dir(directory) if name.endswith(self.suffix)]

    def process(self, patch_tree: PatchTree, destination: DestinationTree) -> List[str]:
        applied: List[str] = []
        for relative in self.directive_files(patch_tree):
            self.observer("directive.apply", directive=relative)
            document = decode_directive(patch_tree.read_bytes(relative), source=relative.as_posix())
            self.engine.apply(document, patch_tree, destination)
            applied.append(relative.as_posix())
        return applied


__all__ = ["DEFAULT_DIRECTIVE_SUFFIX", "DirectiveProcessor"]
