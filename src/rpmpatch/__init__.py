"""Patch and directive overlay engine for package source checkouts."""

from .errors import OverlayError
from .overlay.resolver import OverlayResolver, OverlayResult
from .tools.worktree import DestinationTree, PatchTree

__all__ = [
    "DestinationTree",
    "OverlayError",
    "OverlayResolver",
    "OverlayResult",
    "PatchTree",
]
