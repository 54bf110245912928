"""Exception hierarchy shared by the overlay components."""

from __future__ import annotations

from typing import Any, Mapping


class OverlayError(RuntimeError):
    """Raised when an overlay step fails and the invocation must stop."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


__all__ = ["OverlayError"]
