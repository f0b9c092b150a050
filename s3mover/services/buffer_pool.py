"""Reusable in-memory buffers for gzip compression."""

import io
import threading
from collections.abc import Generator
from contextlib import contextmanager


class BufferPool:
    """Thread-safe pool of ``io.BytesIO`` buffers.

    A buffer is owned exclusively by one caller between checkout and return.
    Idle buffers beyond ``max_idle`` are dropped instead of being retained.
    """

    def __init__(self, max_idle: int = 16) -> None:
        self.max_idle = max_idle
        self._idle: list[io.BytesIO] = []
        self._lock = threading.Lock()

    def get(self) -> io.BytesIO:
        """Take an empty buffer from the pool, allocating one if none is idle."""
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return io.BytesIO()

    def put(self, buf: io.BytesIO) -> None:
        """Reset a buffer and hand it back to the pool."""
        buf.seek(0)
        buf.truncate()
        with self._lock:
            if len(self._idle) < self.max_idle:
                self._idle.append(buf)

    @contextmanager
    def checkout(self) -> Generator[io.BytesIO, None, None]:
        """Borrow a buffer for the duration of a ``with`` block."""
        buf = self.get()
        try:
            yield buf
        finally:
            self.put(buf)

    @property
    def idle_count(self) -> int:
        """Number of buffers currently waiting in the pool."""
        with self._lock:
            return len(self._idle)
