"""Progress event sinks.

The extraction engine reports progress through an injected
``ProgressSink`` rather than a bare callback so tests can substitute a
recording sink.  Events are delivered synchronously, in order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from .models import ProgressEvent, ProgressEventType

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressSink(Protocol):
    """Receiver of ``ProgressEvent`` items."""

    def on_event(self, event: ProgressEvent) -> None: ...


class NullProgressSink:
    """Sink that discards every event."""

    def on_event(self, event: ProgressEvent) -> None:
        return None


class CallbackProgressSink:
    """Adapt a plain callable to the ``ProgressSink`` interface."""

    def __init__(self, callback: Callable[[ProgressEvent], None]) -> None:
        self._callback = callback

    def on_event(self, event: ProgressEvent) -> None:
        self._callback(event)


class RecordingProgressSink:
    """Sink that keeps every event in memory, in arrival order."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def on_event(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: ProgressEventType) -> list[ProgressEvent]:
        """Return recorded events of *event_type*."""
        return [e for e in self.events if e.type == event_type]


_FILE_LABELS: dict[ProgressEventType, str] = {
    ProgressEventType.FILE_ADDED: "A",
    ProgressEventType.FILE_MODIFIED: "M",
    ProgressEventType.FILE_DELETED: "D",
    ProgressEventType.FILE_SKIPPED: "=",
}


def format_event(event: ProgressEvent) -> str:
    """Render an event as a single human-readable line."""
    match event.type:
        case ProgressEventType.PACKAGE_START:
            return f"{event.package_name}@{event.package_version}: extracting"
        case ProgressEventType.PACKAGE_END:
            return f"{event.package_name}@{event.package_version}: done"
        case _:
            return f"  {_FILE_LABELS[event.type]} {event.file}"


class StreamProgressSink:
    """Write each event as a line to a text stream (CLI output).

    Args:
        stream: Writable text stream (typically ``sys.stderr``).
        show_skipped: Whether unchanged files are printed.
    """

    def __init__(self, stream, show_skipped: bool = False) -> None:
        self._stream = stream
        self._show_skipped = show_skipped

    def on_event(self, event: ProgressEvent) -> None:
        if (
            event.type == ProgressEventType.FILE_SKIPPED
            and not self._show_skipped
        ):
            return
        self._stream.write(format_event(event) + "\n")


def as_sink(
    value: ProgressSink | Callable[[ProgressEvent], None] | None,
) -> ProgressSink:
    """Coerce a sink, a callable or ``None`` into a ``ProgressSink``."""
    if value is None:
        return NullProgressSink()
    if isinstance(value, ProgressSink):
        return value
    if callable(value):
        return CallbackProgressSink(value)
    raise TypeError(
        f"on_progress must be a ProgressSink or callable, got {type(value).__name__}"
    )
