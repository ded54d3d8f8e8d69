"""Cooperative cancellation for scans."""

import threading


class CancellationToken:
    """Shared cancellation flag polled by the traverser and every stats worker.

    Cancellation is never pushed: holders check ``is_cancelled`` at their own
    poll points, so in-flight I/O finishes before the request takes effect.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
