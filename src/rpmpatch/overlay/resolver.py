"""Two-scope overlay resolution.

The common scope (the ``master`` branch of the patch repository) is applied
first, then the branch-specific scope named after the package push branch.
Both write through the same destination tree, so on colliding paths the
branch scope wins. A missing repository, branch or marker directory is not an
error; any other failure aborts the whole resolution.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from ..directives.engine import DefaultDirectiveEngine, DirectiveEngine
from ..errors import OverlayError
from ..telemetry import OverlayObserver, log_event
from ..tools.vcs import GitError, GitRepository
from ..tools.worktree import DestinationTree, PatchTree
from .directives import DirectiveProcessor
from .paths import PathResolver
from .patches import PatchSetProcessor
from .scope import DEFAULT_COMMON_REF, OverlayLayout, PatchScope, ScopeLocator

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class OverlayResult:
    """Summary of one overlay invocation."""

    fetched: bool = False
    scopes: List[str] = field(default_factory=list)
    patches: List[str] = field(default_factory=list)
    directives: List[str] = field(default_factory=list)

    @property
    def applied(self) -> bool:
        return bool(self.patches or self.directives)


def patch_repository_url(upstream_prefix: str, package: str) -> str:
    return f"{upstream_prefix.rstrip('/')}/patch/{package}.git"


def fetch_patch_repository(
    url: str,
    workdir: Path | str,
    *,
    observer: OverlayObserver = log_event,
) -> GitRepository | None:
    """Fetch every branch of ``url`` into a fresh repository under ``workdir``.

    Returns ``None`` when the repository cannot be fetched, which means the
    package has no patches configured.
    """

    repo = GitRepository.initialise(workdir)
    repo.add_remote(url)
    try:
        repo.fetch()
    except GitError as error:
        observer("overlay.fetch", url=url, found=False, reason=str(error))
        return None
    observer("overlay.fetch", url=url, found=True)
    return repo


class OverlayResolver:
    """Apply the common and branch-specific scopes of a patch repository."""

    def __init__(
        self,
        destination: DestinationTree,
        *,
        layout: OverlayLayout | None = None,
        resolver: PathResolver | None = None,
        engine: DirectiveEngine | None = None,
        common_ref: str = DEFAULT_COMMON_REF,
        observer: OverlayObserver = log_event,
    ) -> None:
        self.destination = destination
        self.layout = layout or OverlayLayout()
        self.common_ref = common_ref
        self.observer = observer
        self.patches = PatchSetProcessor(
            resolver=resolver or PathResolver(),
            patch_dir=self.layout.patch_path.as_posix(),
            observer=observer,
        )
        self.directives = DirectiveProcessor(
            engine=engine or DefaultDirectiveEngine(marker=self.layout.marker, observer=observer),
            directive_dir=self.layout.directive_path.as_posix(),
            observer=observer,
        )

    def scopes(self, push_branch: str) -> List[PatchScope]:
        scopes = [PatchScope.common(self.common_ref)]
        if push_branch != self.common_ref:
            scopes.append(PatchScope.branch(push_branch))
        return scopes

    def run(self, url: str, push_branch: str) -> OverlayResult:
        """Fetch the patch repository at ``url`` and resolve it."""

        with tempfile.TemporaryDirectory(prefix="rpmpatch-") as workdir:
            repo = fetch_patch_repository(url, Path(workdir) / "patch", observer=self.observer)
            if repo is None:
                return OverlayResult()
            return self.resolve(repo, push_branch)

    def resolve(self, patch_repo: GitRepository, push_branch: str) -> OverlayResult:
        result = OverlayResult(fetched=True)
        for scope in self.scopes(push_branch):
            try:
                patch_repo.checkout_remote_branch(scope.ref)
            except GitError as error:
                self.observer("overlay.scope_missing", scope=scope.name, ref=scope.ref, reason=str(error))
                continue
            self.apply_tree(PatchTree(patch_repo.root), scope, result)
        return result

    def apply_tree(
        self,
        patch_tree: PatchTree,
        scope: PatchScope,
        result: OverlayResult | None = None,
    ) -> OverlayResult:
        """Apply the patches then the directives of one checked-out scope."""

        result = result if result is not None else OverlayResult()
        locator = ScopeLocator(patch_tree, self.layout)
        if not locator.has_marker():
            self.observer("overlay.scope_missing", scope=scope.name, ref=scope.ref, reason="no marker directory")
            return result

        self.observer("overlay.scope_start", scope=scope.name, ref=scope.ref)
        try:
            if locator.has_patches():
                result.patches.extend(self.patches.process(patch_tree, self.destination))
            if locator.has_directives():
                result.directives.extend(self.directives.process(patch_tree, self.destination))
        except (OverlayError, GitError, OSError) as error:
            self.observer("overlay.error", scope=scope.name, ref=scope.ref, error=str(error))
            raise
        result.scopes.append(scope.name)
        self.observer("overlay.scope_end", scope=scope.name, ref=scope.ref)
        return result


__all__ = [
    "OverlayResolver",
    "OverlayResult",
    "fetch_patch_repository",
    "patch_repository_url",
]
