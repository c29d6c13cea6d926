"""Progress callback system for git-explain.

Long-running operations (the per-file analysis fan-out, configuration
changes) report what they are doing through a callback so the CLI can drive
a spinner while library callers stay free to ignore it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class ProgressEventType(Enum):
    """Types of progress events that can be emitted."""

    STARTED = "started"
    FILE_ANALYZED = "file_analyzed"
    FILE_FAILED = "file_failed"
    COMPLETED = "completed"
    INFO = "info"


@dataclass
class ProgressEvent:
    """A progress event.

    Attributes:
        event_type: The type of progress event
        message: Human-readable description
        path: File the event is about, if any
        current: Number of files finished so far
        total: Number of files dispatched
    """

    event_type: ProgressEventType
    message: str
    path: str | None = None
    current: int | None = None
    total: int | None = None

    @property
    def progress_percentage(self) -> float | None:
        """Calculate progress percentage if current and total are available."""
        if self.current is not None and self.total:
            return (self.current / self.total) * 100
        return None


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressNotifier:
    """Helper for emitting progress events to an optional callback."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self.callback = callback

    def notify(self, event: ProgressEvent) -> None:
        if self.callback:
            self.callback(event)

    def started(self, message: str, total: int | None = None) -> None:
        self.notify(
            ProgressEvent(ProgressEventType.STARTED, message, current=0, total=total)
        )

    def file_finished(
        self, path: str, current: int, total: int, failed: bool = False
    ) -> None:
        """Report that the analysis of one file finished.

        Args:
            path: File that finished
            current: Files finished so far, including this one
            total: Files dispatched in the batch
            failed: Whether the analysis raised
        """
        event_type = (
            ProgressEventType.FILE_FAILED if failed else ProgressEventType.FILE_ANALYZED
        )
        verb = "Failed" if failed else "Analyzed"
        self.notify(
            ProgressEvent(
                event_type,
                f"{verb} {path} ({current}/{total})",
                path=path,
                current=current,
                total=total,
            )
        )

    def completed(self, message: str) -> None:
        self.notify(ProgressEvent(ProgressEventType.COMPLETED, message))

    def info(self, message: str) -> None:
        self.notify(ProgressEvent(ProgressEventType.INFO, message))
