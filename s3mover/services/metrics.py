"""In-process counters for transported objects."""

import threading
from typing import Any


class Metrics:
    """Object counters shared by the upload workers and the stats endpoint.

    ``uploaded`` and ``errored`` are cumulative since process start.
    ``queued`` is a gauge: candidates of the current (or most recent)
    dispatch cycle that have not completed yet.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._uploaded = 0
        self._errored = 0
        self._queued = 0

    def put_object(self, success: bool) -> None:
        """Record the outcome of one upload job."""
        with self._lock:
            if success:
                self._uploaded += 1
            else:
                self._errored += 1

    def set_queued(self, n: int) -> None:
        """Overwrite the queued gauge."""
        with self._lock:
            self._queued = n

    def complete_queued(self) -> None:
        """Mark one queued job as finished."""
        with self._lock:
            if self._queued > 0:
                self._queued -= 1

    @property
    def uploaded(self) -> int:
        with self._lock:
            return self._uploaded

    @property
    def errored(self) -> int:
        with self._lock:
            return self._errored

    @property
    def queued(self) -> int:
        with self._lock:
            return self._queued

    def snapshot(self) -> dict[str, Any]:
        """Return the counters in the stats endpoint's JSON shape."""
        with self._lock:
            return {
                "objects": {
                    "uploaded": self._uploaded,
                    "errored": self._errored,
                    "queued": self._queued,
                }
            }
