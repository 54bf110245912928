"""Mapping of declared diff paths onto the package checkout layout."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

DEFAULT_SPECS_DIR = "SPECS"
DEFAULT_SOURCES_DIR = "SOURCES"


@dataclass(slots=True, frozen=True)
class PathResolver:
    """Place declared paths under ``SOURCES`` unless they already live in ``SPECS``."""

    specs_dir: str = DEFAULT_SPECS_DIR
    sources_dir: str = DEFAULT_SOURCES_DIR

    def resolve(self, declared: PurePosixPath | str | None) -> PurePosixPath | None:
        if declared is None:
            return None
        path = PurePosixPath(declared)
        if path.parts and path.parts[0] == self.specs_dir:
            return path
        return PurePosixPath(self.sources_dir) / path


def identity_path(declared: PurePosixPath | str | None) -> PurePosixPath | None:
    return None if declared is None else PurePosixPath(declared)


__all__ = ["DEFAULT_SOURCES_DIR", "DEFAULT_SPECS_DIR", "PathResolver", "identity_path"]
