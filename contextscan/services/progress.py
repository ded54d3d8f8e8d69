"""Progress reporting for scans.

Intermediate updates are best effort: an update is dropped when another
worker holds the throttle lock or the minimum interval has not elapsed. The
final update of a stage is always delivered.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from rich.progress import Progress, TaskID

from contextscan.core.utils import display_name


@dataclass(frozen=True)
class ScanProgress:
    """Payload of a progress event."""

    progress: float
    current_path: str

    def to_dict(self) -> dict[str, float | str]:
        return {"progress": self.progress, "current_path": self.current_path}


ProgressCallback = Callable[[ScanProgress], None]


class ProgressReporter:
    """Throttled, fire-and-forget progress emitter shared by worker threads."""

    def __init__(
        self,
        callback: ProgressCallback | None = None,
        min_interval: float = 0.05,
        progress: Progress | None = None,
    ):
        """Initialize the reporter.

        Args:
            callback: Receives each delivered ScanProgress event
            min_interval: Minimum seconds between intermediate events
            progress: Optional Rich Progress instance mirrored with each event
        """
        self._callback = callback
        self._min_interval = min_interval
        self._throttle = threading.Lock()
        self._last_emit = 0.0
        self.progress = progress
        self._task: TaskID | None = None
        self.delivered = 0
        self.dropped = 0

    def start_stage(self, description: str, total: int | None) -> None:
        """Begin a new Rich task for the next stage, if a display is attached."""
        if self.progress is not None:
            self._task = self.progress.add_task(description, total=total)

    def report_status(self, path: Path, suffix: str, count: int, total: int) -> None:
        """Emit an unthrottled status event such as the enumeration banner."""
        percentage = (count / total) * 100.0 if total > 0 else 0.0
        self._deliver(ScanProgress(percentage, f"{display_name(path)}{suffix}"))

    def report_item(self, path: Path, count: int, total: int) -> None:
        """Report that ``count`` of ``total`` items have been processed.

        The last item (``count == total``) is always delivered.
        """
        percentage = (count / total) * 100.0 if total > 0 else 100.0
        event = ScanProgress(percentage, display_name(path))

        if count >= total:
            self._deliver(event, completed=count)
        else:
            self._try_deliver(event, completed=count)

    def report_enumeration(self, path: Path) -> None:
        """Throttled update while the candidate list is still being built."""
        self._try_deliver(ScanProgress(0.0, display_name(path)))

    def _try_deliver(self, event: ScanProgress, completed: int | None = None) -> None:
        if not self._throttle.acquire(blocking=False):
            self.dropped += 1
            return
        try:
            now = time.monotonic()
            if now - self._last_emit < self._min_interval:
                self.dropped += 1
                return
            self._last_emit = now
            self._deliver(event, completed=completed)
        finally:
            self._throttle.release()

    def _deliver(self, event: ScanProgress, completed: int | None = None) -> None:
        self.delivered += 1
        if self.progress is not None and self._task is not None and completed is not None:
            self.progress.update(self._task, completed=completed)
        if self._callback is None:
            return
        try:
            self._callback(event)
        except Exception as e:
            logger.warning(f"Failed to emit scan progress event: {e}")
