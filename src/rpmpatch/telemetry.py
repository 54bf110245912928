"""Overlay event observers.

Components never log overlay progress directly; they report events to an
``observer`` callable. The default observer renders each event as a compact
JSON line on the ``rpmpatch.telemetry`` logger.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Any, Callable, Mapping, Protocol

TELEMETRY_LOGGER = logging.getLogger("rpmpatch.telemetry")


class OverlayObserver(Protocol):
    def __call__(self, event: str, **fields: Any) -> None: ...


def _serialise_event_value(value: Any) -> Any:
    """Convert telemetry payload values into JSON-friendly representations."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, PurePath):
        return value.as_posix()
    if isinstance(value, (list, tuple, set)):
        return [_serialise_event_value(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _serialise_event_value(child) for key, child in value.items()}
    return str(value)


def log_event(event: str, **fields: Any) -> None:
    """Log a structured overlay event."""
    payload = {"event": event, "timestamp": datetime.now(timezone.utc).isoformat()}
    for key, value in fields.items():
        payload[key] = _serialise_event_value(value)
    message = json.dumps(payload, separators=(",", ":"), ensure_ascii=True)
    level = logging.ERROR if event.endswith(".error") else logging.INFO
    TELEMETRY_LOGGER.log(level, message)


class RecordingObserver:
    """Observer that keeps every event in memory, then forwards it."""

    def __init__(self, forward: Callable[..., None] | None = log_event) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self._forward = forward

    def __call__(self, event: str, **fields: Any) -> None:
        self.events.append((event, dict(fields)))
        if self._forward is not None:
            self._forward(event, **fields)

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


__all__ = ["OverlayObserver", "RecordingObserver", "TELEMETRY_LOGGER", "log_event"]
