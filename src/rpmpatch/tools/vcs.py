"""Minimal git helpers
The helpers below provide just enough structure to fetch a patch
repository, check out its branches, and keep the index of a package
checkout in step with overlay mutations.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

import subprocess


class GitError(RuntimeError):
    """Raised when a git command fails or the repository cannot be used."""


REMOTE_NAME = "origin"
FETCH_REFSPEC = "+refs/heads/*:refs/remotes/origin/*"


def _run(args: Sequence[str], *, cwd: Path, check: bool = True) -> subprocess.CompletedProcess[str]:
    command = ["git", *args]
    process = subprocess.run(
        command,
        cwd=cwd,
        capture_output=True,
        text=False,
        check=False,
    )
    stdout = process.stdout.decode("utf-8", errors="replace") if process.stdout else ""
    stderr = process.stderr.decode("utf-8", errors="replace") if process.stderr else ""
    result = subprocess.CompletedProcess(process.args, process.returncode, stdout, stderr)
    if check and result.returncode != 0:
        message = result.stderr.strip() or result.stdout.strip() or "unknown git error"
        raise GitError(f"git {' '.join(args)} failed: {message}")
    return result


class GitRepository:
    """Lightweight wrapper around ``git`` commands."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()
        if not (self.root / ".git").exists():
            raise GitError(f"Not a git repository: {self.root}")

    @classmethod
    def initialise(cls, root: Path | str) -> "GitRepository":
        """Initialise an empty git repository at ``root`` (no commits)."""

        path = Path(root).resolve()
        path.mkdir(parents=True, exist_ok=True)
        _run(["init", "--quiet"], cwd=path)

        def _ensure_config(key: str, value: str) -> None:
            probe = _run(["config", "--get", key], cwd=path, check=False)
            if probe.returncode != 0 or not probe.stdout.strip():
                _run(["config", key, value], cwd=path)

        _ensure_config("user.email", "overlay@example.com")
        _ensure_config("user.name", "Patch Overlay")
        return cls(path)

    # ------------------------------------------------------------------ git IO
    def git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        """Execute ``git`` with ``args`` relative to the repository root."""

        return _run(list(args), cwd=self.root, check=check)

    # -------------------------------------------------------------- remotes
    def add_remote(self, url: str, *, name: str = REMOTE_NAME) -> None:
        """Register ``url`` as remote ``name`` fetching every branch."""

        self.git("remote", "add", name, url)

    def fetch(self, *, remote: str = REMOTE_NAME) -> None:
        """Fetch all branches of ``remote`` into remote-tracking refs."""

        self.git("fetch", "--quiet", remote, FETCH_REFSPEC)

    def has_ref(self, ref: str) -> bool:
        result = self.git("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}", check=False)
        return result.returncode == 0

    def checkout_remote_branch(self, branch: str, *, remote: str = REMOTE_NAME) -> None:
        """Force a detached checkout of ``remote/branch``.

        Raises :class:`GitError` when the branch does not exist on the remote.
        """

        ref = f"refs/remotes/{remote}/{branch}"
        if not self.has_ref(ref):
            raise GitError(f"Reference not found: {ref}")
        self.git("checkout", "--quiet", "--force", "--detach", ref)
        self.git("clean", "-fdq")

    # ------------------------------------------------------------------ index
    def add(self, *paths: str) -> None:
        """Stage ``paths`` (additions and modifications)."""

        self.git("add", "--", *paths)

    def remove_cached(self, *paths: str, missing_ok: bool = False) -> None:
        """Stage removal of ``paths`` without touching the work tree."""

        args: List[str] = ["rm", "--cached", "--quiet"]
        if missing_ok:
            args.append("--ignore-unmatch")
        args.extend(["--", *paths])
        self.git(*args)

    def is_tracked(self, path: str) -> bool:
        result = self.git("ls-files", "--error-unmatch", "--", path, check=False)
        return result.returncode == 0

    def staged_changes(self) -> Dict[str, str]:
        """Return staged paths mapped to their status letter (``A``, ``M``, ``D``)."""

        result = self.git("diff", "--cached", "--name-status", "--no-renames", "-z")
        fields = [entry for entry in result.stdout.split("\0") if entry]
        changes: Dict[str, str] = {}
        for status, path in zip(fields[0::2], fields[1::2]):
            changes[path] = status[:1]
        return changes

    # ------------------------------------------------------------- commits
    def current_head(self) -> str | None:
        result = self.git("rev-parse", "--verify", "HEAD", check=False)
        if result.returncode != 0:
            return None
        head = result.stdout.strip()
        return head or None

    def commit_staged(self, message: str) -> str | None:
        """Commit the current index.

        Returns the new commit SHA, or ``None`` when nothing was staged.
        """

        commit = self.git("commit", "--quiet", "-m", message, check=False)
        if commit.returncode != 0:
            output = commit.stderr.strip() or commit.stdout.strip() or ""
            if "nothing to commit" in output.lower() or "nothing added to commit" in output.lower():
                return None
            raise GitError(f"git commit failed: {output}")
        return self.current_head()


__all__ = ["FETCH_REFSPEC", "GitError", "GitRepository", "REMOTE_NAME"]
