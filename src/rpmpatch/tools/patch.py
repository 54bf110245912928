"""Unified diff parsing and in-memory hunk application."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Iterable, Sequence, Tuple

from unidiff import PatchSet
from unidiff.constants import LINE_TYPE_NO_NEWLINE
from unidiff.errors import UnidiffParseError

from ..errors import OverlayError

LOGGER = logging.getLogger(__name__)

DEV_NULL = "/dev/null"
# Every byte maps to one code point, so hunk text round-trips to the original bytes.
PATCH_ENCODING = "latin-1"


class PatchError(OverlayError):
    """Raised when a patch cannot be parsed or does not apply cleanly."""


class FileChangeKind(str, Enum):
    """Operation described by one file section of a diff."""

    MODIFY = "modify"
    CREATE = "create"
    DELETE = "delete"


@dataclass(slots=True, frozen=True)
class HunkLine:
    kind: str  # " ", "+" or "-"
    text: bytes


@dataclass(slots=True, frozen=True)
class Hunk:
    """Contiguous block of line changes."""

    source_start: int
    source_length: int
    target_start: int
    target_length: int
    lines: Tuple[HunkLine, ...]

    @property
    def old_lines(self) -> list[bytes]:
        return [line.text for line in self.lines if line.kind in {" ", "-"}]

    @property
    def new_lines(self) -> list[bytes]:
        return [line.text for line in self.lines if line.kind in {" ", "+"}]


@dataclass(slots=True, frozen=True)
class FileChange:
    """Single file record of a patch with a determinate operation kind."""

    old_path: PurePosixPath | None
    new_path: PurePosixPath | None
    kind: FileChangeKind
    hunks: Tuple[Hunk, ...] = ()

    @property
    def is_rename(self) -> bool:
        return (
            self.kind is FileChangeKind.MODIFY
            and self.old_path is not None
            and self.new_path is not None
            and self.old_path != self.new_path
        )


@dataclass(slots=True, frozen=True)
class PatchDocument:
    """Parsed unified diff: an ordered sequence of file changes."""

    changes: Tuple[FileChange, ...]
    source: str | None = None

    def __iter__(self):
        return iter(self.changes)

    def __len__(self) -> int:
        return len(self.changes)


def _normalise_diff_path(entry: str | None, *, encoding: str = PATCH_ENCODING) -> PurePosixPath | None:
    """Translate diff header operands into tree-relative paths."""
    if entry is None:
        return None
    entry = entry.encode(encoding).decode("utf-8", errors="surrogateescape")
    entry = entry.strip()
    if entry == DEV_NULL or not entry:
        return None
    if entry.startswith("a/") or entry.startswith("b/"):
        entry = entry[2:]
    if not entry:
        return None
    return PurePosixPath(entry)


def _convert_hunk(raw_hunk: Iterable, *, encoding: str) -> Hunk:
    lines: list[HunkLine] = []
    for raw_line in raw_hunk:
        if raw_line.line_type == LINE_TYPE_NO_NEWLINE:
            if lines:
                previous = lines[-1]
                text = previous.text
                if text.endswith(b"\r\n"):
                    text = text[:-2]
                elif text.endswith(b"\n"):
                    text = text[:-1]
                lines[-1] = HunkLine(kind=previous.kind, text=text)
            continue
        lines.append(HunkLine(kind=raw_line.line_type, text=raw_line.value.encode(encoding)))
    return Hunk(
        source_start=raw_hunk.source_start,
        source_length=raw_hunk.source_length,
        target_start=raw_hunk.target_start,
        target_length=raw_hunk.target_length,
        lines=tuple(lines),
    )


def parse_patch(data: bytes, *, source: str | None = None, encoding: str = PATCH_ENCODING) -> PatchDocument:
    """Parse ``data`` into a :class:`PatchDocument`.

    Raises :class:`PatchError` when the diff is malformed or describes no
    file changes at all.
    """

    label = source or "<patch>"
    try:
        patch_set = PatchSet(io.BytesIO(data), encoding=encoding)
    except (UnidiffParseError, UnicodeDecodeError) as error:
        raise PatchError(f"could not parse patch file {label}: {error}", details={"patch": label}) from error

    changes: list[FileChange] = []
    for patched_file in patch_set:
        old_path = _normalise_diff_path(patched_file.source_file, encoding=encoding)
        new_path = _normalise_diff_path(patched_file.target_file, encoding=encoding)
        if patched_file.is_added_file or old_path is None:
            kind = FileChangeKind.CREATE
        elif patched_file.is_removed_file or new_path is None:
            kind = FileChangeKind.DELETE
        else:
            kind = FileChangeKind.MODIFY

        if kind is FileChangeKind.CREATE and new_path is None:
            raise PatchError(f"new file without a target path in {label}", details={"patch": label})
        if kind is FileChangeKind.DELETE and old_path is None:
            raise PatchError(f"deleted file without a source path in {label}", details={"patch": label})

        hunks = tuple(_convert_hunk(raw_hunk, encoding=encoding) for raw_hunk in patched_file)
        changes.append(FileChange(old_path=old_path, new_path=new_path, kind=kind, hunks=hunks))

    if not changes:
        raise PatchError(f"patch file {label} contains no file changes", details={"patch": label})

    LOGGER.debug("Parsed %d file change(s) from %s", len(changes), label)
    return PatchDocument(changes=tuple(changes), source=source)


def _locate_block(
    lines: Sequence[bytes],
    block: Sequence[bytes],
    expected: int,
    lower_bound: int,
) -> int | None:
    """Find ``block`` in ``lines`` at or nearest to ``expected``."""

    upper_bound = len(lines) - len(block)
    if upper_bound < lower_bound:
        return None
    expected = min(max(expected, lower_bound), upper_bound)
    if not block:
        return expected

    width = len(block)
    distance = 0
    while True:
        candidates = [expected - distance, expected + distance] if distance else [expected]
        in_range = False
        for position in candidates:
            if lower_bound <= position <= upper_bound:
                in_range = True
                if list(lines[position : position + width]) == list(block):
                    return position
        if not in_range:
            return None
        distance += 1


def apply_hunks(base: bytes, hunks: Sequence[Hunk], *, path: str | None = None) -> bytes:
    """Apply ``hunks`` to ``base`` and return the post-patch content.

    Context and removed lines must match exactly. A hunk may land away from
    its declared position (the nearest exact match wins) but never before the
    end of the previous hunk.
    """

    lines = base.splitlines(keepends=True)
    output: list[bytes] = []
    cursor = 0
    drift = 0
    location = path or "<unknown>"

    for number, hunk in enumerate(hunks, start=1):
        old_block = hunk.old_lines
        nominal = hunk.source_start - 1 if hunk.source_length else hunk.source_start
        position = _locate_block(lines, old_block, nominal + drift, cursor)
        if position is None:
            raise PatchError(
                f"hunk #{number} does not apply to {location} at line {hunk.source_start}",
                details={"path": location, "hunk": number, "line": hunk.source_start},
            )
        if position != nominal + drift:
            LOGGER.debug("Hunk #%d for %s applied with offset %d", number, location, position - nominal)
        output.extend(lines[cursor:position])
        output.extend(hunk.new_lines)
        cursor = position + len(old_block)
        drift = position - nominal

    output.extend(lines[cursor:])
    return b"".join(output)


__all__ = [
    "FileChange",
    "FileChangeKind",
    "Hunk",
    "HunkLine",
    "PatchDocument",
    "PatchError",
    "apply_hunks",
    "parse_patch",
]
