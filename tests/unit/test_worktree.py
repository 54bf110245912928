from __future__ import annotations

from pathlib import Path

import pytest

from rpmpatch.tools.vcs import GitError, GitRepository
from rpmpatch.tools.worktree import DestinationTree, PatchTree, TreePathError


def test_destination_tree_writes_removes_and_stages(tmp_path: Path) -> None:
    tree = DestinationTree(GitRepository.initialise(tmp_path / "repo"))

    tree.write_bytes("SOURCES/nested/a.c", b"int a;\n")
    tree.stage_add("SOURCES/nested/a.c")

    assert tree.exists("SOURCES/nested/a.c")
    assert tree.is_tracked("SOURCES/nested/a.c")
    assert tree.staged_changes() == {"SOURCES/nested/a.c": "A"}

    assert tree.remove("SOURCES/nested/a.c") is True
    assert tree.remove("SOURCES/nested/a.c") is False
    tree.stage_remove("SOURCES/nested/a.c")
    assert tree.staged_changes() == {}


@pytest.mark.parametrize("path", ["/etc/passwd", "../escape", "SOURCES/../../escape", ".git/config"])
def test_tree_paths_may_not_escape(tmp_path: Path, path: str) -> None:
    tree = DestinationTree(GitRepository.initialise(tmp_path / "repo"))

    with pytest.raises(TreePathError):
        tree.write_bytes(path, b"x")


def test_patch_tree_lists_files_sorted(tmp_path: Path) -> None:
    directory = tmp_path / "ROCKY" / "SRPM"
    directory.mkdir(parents=True)
    for name in ("b.patch", "a.patch", "c.txt"):
        (directory / name).write_text(name, encoding="utf-8")
    (directory / "subdir").mkdir()

    tree = PatchTree(tmp_path)

    assert tree.list_dir("ROCKY/SRPM") == ["a.patch", "b.patch", "c.txt"]
    assert tree.read_bytes("ROCKY/SRPM/a.patch") == b"a.patch"
    assert tree.is_dir("ROCKY")


def test_opening_non_repository_fails(tmp_path: Path) -> None:
    with pytest.raises(GitError, match="Not a git repository"):
        DestinationTree.open(tmp_path)
