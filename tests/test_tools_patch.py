from __future__ import annotations

from pathlib import PurePosixPath

import pytest

from conftest import CREATE_NEW_PATCH, DELETE_BAR_PATCH, FOO_C, MODIFY_FOO_PATCH, RENAME_BAR_PATCH, dedent
from rpmpatch.tools.patch import FileChangeKind, PatchError, apply_hunks, parse_patch


def test_parse_patch_assigns_kinds_and_strips_prefixes() -> None:
    document = parse_patch(
        (MODIFY_FOO_PATCH + CREATE_NEW_PATCH + DELETE_BAR_PATCH).encode("utf-8"),
        source="ROCKY/SRPM/all.patch",
    )

    kinds = [(change.kind, change.old_path, change.new_path) for change in document]
    assert kinds == [
        (FileChangeKind.MODIFY, PurePosixPath("foo.c"), PurePosixPath("foo.c")),
        (FileChangeKind.CREATE, None, PurePosixPath("new.c")),
        (FileChangeKind.DELETE, PurePosixPath("bar.c"), None),
    ]
    assert document.source == "ROCKY/SRPM/all.patch"


def test_parse_patch_detects_rename_without_hunks() -> None:
    document = parse_patch(RENAME_BAR_PATCH.encode("utf-8"))

    (change,) = document.changes
    assert change.kind is FileChangeKind.MODIFY
    assert change.is_rename
    assert change.old_path == PurePosixPath("bar.c")
    assert change.new_path == PurePosixPath("baz.c")
    assert change.hunks == ()


def test_parse_patch_rejects_truncated_hunk() -> None:
    broken = dedent(
        """
        --- a/foo.c
        +++ b/foo.c
        @@ -1,3 +1,3 @@
         line1
        -line2
        """
    )

    with pytest.raises(PatchError, match="could not parse"):
        parse_patch(broken.encode("utf-8"), source="broken.patch")


def test_parse_patch_rejects_text_without_changes() -> None:
    with pytest.raises(PatchError, match="no file changes"):
        parse_patch(b"just some notes\n", source="notes.patch")


def test_parse_patch_keeps_non_utf8_bytes_and_utf8_names() -> None:
    data = "--- a/caf\u00e9.c\n+++ b/caf\u00e9.c\n@@ -1 +1 @@\n".encode("utf-8") + b"-\xe9\n+\xe8\n"

    (change,) = parse_patch(data).changes

    assert change.new_path == PurePosixPath("caf\u00e9.c")
    assert apply_hunks(b"\xe9\n", change.hunks) == b"\xe8\n"


def test_apply_hunks_modifies_lines() -> None:
    (change,) = parse_patch(MODIFY_FOO_PATCH.encode("utf-8")).changes

    result = apply_hunks(FOO_C.encode("utf-8"), change.hunks)

    assert result == b"line1\nline2\nLINE3\nLINE4\nLINE5\nline6\n"


def test_apply_hunks_tolerates_offset() -> None:
    (change,) = parse_patch(MODIFY_FOO_PATCH.encode("utf-8")).changes
    shifted = ("header1\nheader2\n" + FOO_C).encode("utf-8")

    result = apply_hunks(shifted, change.hunks)

    assert result == b"header1\nheader2\nline1\nline2\nLINE3\nLINE4\nLINE5\nline6\n"


def test_apply_hunks_rejects_mismatched_context() -> None:
    (change,) = parse_patch(MODIFY_FOO_PATCH.encode("utf-8")).changes

    with pytest.raises(PatchError, match="does not apply") as excinfo:
        apply_hunks(b"something\nelse\nentirely\n", change.hunks, path="SOURCES/foo.c")

    assert excinfo.value.details["path"] == "SOURCES/foo.c"
    assert excinfo.value.details["hunk"] == 1


def test_apply_hunks_against_empty_base_creates_content() -> None:
    (change,) = parse_patch(CREATE_NEW_PATCH.encode("utf-8")).changes

    assert apply_hunks(b"", change.hunks) == b"hello\nworld\n"


def test_apply_hunks_honours_missing_trailing_newline() -> None:
    patch = dedent(
        """
        --- a/f.txt
        +++ b/f.txt
        @@ -1,2 +1,2 @@
         a
        -b
        \\ No newline at end of file
        +c
        \\ No newline at end of file
        """
    )
    (change,) = parse_patch(patch.encode("utf-8")).changes

    assert apply_hunks(b"a\nb", change.hunks) == b"a\nc"


def test_apply_hunks_applies_multiple_hunks_in_order() -> None:
    patch = dedent(
        """
        --- a/foo.c
        +++ b/foo.c
        @@ -1,2 +1,3 @@
         line1
        +inserted
         line2
        @@ -5,2 +6,2 @@
         line5
        -line6
        +LAST
        """
    )
    (change,) = parse_patch(patch.encode("utf-8")).changes

    result = apply_hunks(FOO_C.encode("utf-8"), change.hunks)

    assert result == b"line1\ninserted\nline2\nline3\nline4\nline5\nLAST\n"
