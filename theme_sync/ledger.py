"""Thread-safe record of in-flight change notifications."""

from __future__ import annotations

import os
import threading


def _normalize(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


class EventLedger:
    """Counts raw change notifications per path until they are flushed."""

    def __init__(self) -> None:
        self._counts = {}  # type: dict[str, int]
        self._lock = threading.Lock()

    def record(self, path: str) -> int:
        """Record one notification for *path*; return its running count."""
        key = _normalize(path)
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + 1
            return self._counts[key]

    def count(self) -> int:
        """Return the number of distinct paths in flight."""
        with self._lock:
            return len(self._counts)

    def total(self) -> int:
        """Return the number of notifications in flight."""
        with self._lock:
            return sum(self._counts.values())

    def occurrences(self, path: str) -> int:
        with self._lock:
            return self._counts.get(_normalize(path), 0)

    def discard(self, path: str) -> int:
        """Forget *path*; return how many notifications it had."""
        with self._lock:
            return self._counts.pop(_normalize(path), 0)

    def clear(self) -> None:
        with self._lock:
            self._counts.clear()

    def snapshot(self) -> dict[str, int]:
        """Return a copy of the per-path counts."""
        with self._lock:
            return dict(self._counts)

    def __len__(self) -> int:
        return self.count()
