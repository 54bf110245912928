from __future__ import annotations

import subprocess
import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from rpmpatch.tools.vcs import GitRepository  # noqa: E402
from rpmpatch.tools.worktree import DestinationTree  # noqa: E402

FOO_C = "line1\nline2\nline3\nline4\nline5\nline6\n"
BAR_C = "bar1\nbar2\n"
FOO_SPEC = "Name: foo\nVersion: 1.0\nRelease: 1%{?dist}\n"


def run_git(cwd: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)


def dedent(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


@dataclass(slots=True)
class PackageCheckout:
    """Committed package checkout used as the overlay destination."""

    repo: GitRepository
    tree: DestinationTree

    @property
    def root(self) -> Path:
        return self.repo.root

    def read(self, path: str) -> str:
        return (self.root / path).read_text(encoding="utf-8")

    def snapshot(self) -> dict[str, bytes]:
        return {
            path.relative_to(self.root).as_posix(): path.read_bytes()
            for path in sorted(self.root.rglob("*"))
            if path.is_file() and ".git" not in path.relative_to(self.root).parts
        }


@pytest.fixture()
def checkout(tmp_path: Path) -> PackageCheckout:
    """Create a committed package checkout with SPECS/ and SOURCES/."""

    root = tmp_path / "checkout"
    repo = GitRepository.initialise(root)
    (root / "SPECS").mkdir()
    (root / "SOURCES").mkdir()
    (root / "SPECS" / "foo.spec").write_text(FOO_SPEC, encoding="utf-8")
    (root / "SOURCES" / "foo.c").write_text(FOO_C, encoding="utf-8")
    (root / "SOURCES" / "bar.c").write_text(BAR_C, encoding="utf-8")
    (root / "SOURCES" / "unused.tar.gz").write_bytes(b"\x1f\x8b\x08\x00archive")
    repo.git("add", "--all")
    repo.git("commit", "--quiet", "-m", "Import foo")
    return PackageCheckout(repo=repo, tree=DestinationTree(repo))


def make_patch_repo(root: Path, branches: Mapping[str, Mapping[str, str | bytes]]) -> Path:
    """Create a repository whose branches hold independent patch trees."""

    root.mkdir(parents=True)
    run_git(root, "init", "--quiet")
    run_git(root, "config", "user.email", "overlay@example.com")
    run_git(root, "config", "user.name", "Patch Overlay")
    for branch, files in branches.items():
        run_git(root, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
        run_git(root, "rm", "-r", "-f", "-q", "--ignore-unmatch", "--", ".")
        for relative, content in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content, encoding="utf-8")
        run_git(root, "add", "--all")
        run_git(root, "commit", "--quiet", "--allow-empty", "-m", f"{branch} patches")
    return root


def write_tree(root: Path, files: Mapping[str, str]) -> Path:
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


MODIFY_FOO_PATCH = dedent(
    """
    diff --git a/foo.c b/foo.c
    index 1111111..2222222 100644
    --- a/foo.c
    +++ b/foo.c
    @@ -2,5 +2,5 @@
     line2
    -line3
    -line4
    -line5
    +LINE3
    +LINE4
    +LINE5
     line6
    """
)

RENAME_BAR_PATCH = dedent(
    """
    diff --git a/bar.c b/baz.c
    similarity index 100%
    rename from bar.c
    rename to baz.c
    """
)

CREATE_NEW_PATCH = dedent(
    """
    diff --git a/new.c b/new.c
    new file mode 100644
    index 0000000..3333333
    --- /dev/null
    +++ b/new.c
    @@ -0,0 +1,2 @@
    +hello
    +world
    """
)

DELETE_BAR_PATCH = dedent(
    """
    diff --git a/bar.c b/bar.c
    deleted file mode 100644
    index 4444444..0000000
    --- a/bar.c
    +++ /dev/null
    @@ -1,2 +0,0 @@
    -bar1
    -bar2
    """
)
