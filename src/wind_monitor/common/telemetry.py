from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List

from ..logger.app_logger import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class TelemetryEvent:
    """A pipeline or transport event; ``kind`` is a dotted name such as ``http.retry``."""

    kind: str
    payload: dict[str, Any]


class TelemetryService:
    """Fan events out to any number of sinks."""

    def __init__(self) -> None:
        self._sinks: List[Callable[[TelemetryEvent], None]] = []

    def add_sink(self, sink: Callable[[TelemetryEvent], None]) -> None:
        self._sinks.append(sink)

    def emit(self, event: TelemetryEvent) -> None:
        for sink in list(self._sinks):
            sink(event)

    def emit_event(self, kind: str, **payload: Any) -> None:
        self.emit(TelemetryEvent(kind=kind, payload=payload))


def log_sink(event: TelemetryEvent) -> None:
    """Sink that writes every event to the debug log."""
    logger.debug("telemetry %s %s", event.kind, event.payload)
