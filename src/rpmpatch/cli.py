"""CLI commands for overlaying patch repositories onto package checkouts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import DEFAULT_CONFIG_NAME, ConfigError, OverlaySettings
from .directives.engine import DefaultDirectiveEngine
from .errors import OverlayError
from .overlay.paths import PathResolver
from .overlay.resolver import OverlayResolver, OverlayResult, patch_repository_url
from .overlay.scope import OverlayLayout, PatchScope
from .tools.vcs import GitError
from .tools.worktree import DestinationTree, PatchTree

APP_HELP = "Overlay patch repositories onto package source checkouts."

app = typer.Typer(help=APP_HELP)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_settings(config: str) -> OverlaySettings:
    config_path = Path(config)
    if not config_path.exists():
        return OverlaySettings()
    try:
        return OverlaySettings.from_file(config_path)
    except ConfigError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error


def _build_resolver(settings: OverlaySettings, destination: DestinationTree) -> OverlayResolver:
    layout = OverlayLayout(marker=settings.marker)
    return OverlayResolver(
        destination,
        layout=layout,
        resolver=PathResolver(specs_dir=settings.specs_dir, sources_dir=settings.sources_dir),
        engine=DefaultDirectiveEngine(marker=settings.marker, sources_dir=settings.sources_dir),
        common_ref=settings.common_ref,
    )


def _open_destination(worktree: Path) -> DestinationTree:
    try:
        return DestinationTree.open(worktree)
    except GitError as error:
        typer.echo(f"Cannot use worktree: {error}")
        raise typer.Exit(code=1) from error


def _render_result(result: OverlayResult) -> None:
    if not result.fetched and not result.scopes:
        typer.echo("No patch repository found; nothing applied.")
        return
    typer.echo(f"Scopes applied: {', '.join(result.scopes) or 'none'}")
    for patch in result.patches:
        typer.echo(f"- patch {patch}")
    for directive in result.directives:
        typer.echo(f"- directive {directive}")


@app.command()
def apply(
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help="Path to the overlay configuration file.",
    ),
    worktree: Optional[Path] = typer.Option(None, "--worktree", "-w", help="Package checkout to mutate."),
    package: Optional[str] = typer.Option(None, "--package", help="Package name."),
    push_branch: Optional[str] = typer.Option(None, "--push-branch", help="Branch-specific patch scope."),
    upstream_prefix: Optional[str] = typer.Option(None, "--upstream-prefix", help="Patch repository URL prefix."),
    commit: Optional[bool] = typer.Option(None, "--commit/--no-commit", help="Commit the staged result."),
) -> None:
    """Fetch the package's patch repository and apply both scopes."""
    settings = _load_settings(config)
    if worktree is not None:
        settings.worktree = worktree
    if package is not None:
        settings.package = package
    if push_branch is not None:
        settings.push_branch = push_branch
    if upstream_prefix is not None:
        settings.upstream_prefix = upstream_prefix
    if commit is not None:
        settings.commit = commit

    if not settings.package or not settings.push_branch or not settings.upstream_prefix:
        raise typer.BadParameter("package, push branch and upstream prefix are required.")

    destination = _open_destination(settings.worktree)
    resolver = _build_resolver(settings, destination)
    url = patch_repository_url(settings.upstream_prefix, settings.package)
    try:
        result = resolver.run(url, settings.push_branch)
    except (OverlayError, GitError, OSError) as error:
        typer.echo(f"Overlay failed: {error}")
        raise typer.Exit(code=1) from error

    _render_result(result)
    if settings.commit and result.applied:
        sha = destination.repo.commit_staged(settings.commit_message)
        if sha:
            typer.echo(f"Committed {sha[:7]}.")


@app.command("apply-local")
def apply_local(
    patch_tree: Path = typer.Argument(..., help="Checked-out patch tree containing the marker directory."),
    worktree: Path = typer.Option(Path("."), "--worktree", "-w", help="Package checkout to mutate."),
    config: str = typer.Option(
        DEFAULT_CONFIG_NAME,
        "--config",
        "-c",
        help="Path to the overlay configuration file.",
    ),
) -> None:
    """Apply a single local patch tree without fetching anything."""
    settings = _load_settings(config)
    if not patch_tree.is_dir():
        raise typer.BadParameter(f"Patch tree not found: {patch_tree}")

    destination = _open_destination(worktree)
    resolver = _build_resolver(settings, destination)
    scope = PatchScope(name="local", ref=patch_tree.as_posix())
    try:
        result = resolver.apply_tree(PatchTree(patch_tree), scope)
    except (OverlayError, GitError, OSError) as error:
        typer.echo(f"Overlay failed: {error}")
        raise typer.Exit(code=1) from error
    result.fetched = True
    _render_result(result)


@app.command()
def staged(
    worktree: Path = typer.Option(Path("."), "--worktree", "-w", help="Package checkout to inspect."),
) -> None:
    """Show the staging index of the package checkout."""
    destination = _open_destination(worktree)
    changes = destination.staged_changes()
    if not changes:
        typer.echo("Nothing staged.")
        return
    for path, status in sorted(changes.items()):
        typer.echo(f"{status} {path}")


if __name__ == "__main__":
    app()
