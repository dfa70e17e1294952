from __future__ import annotations

import threading


class RequestCounter:
    """Per-process, monotonically increasing request number used to correlate log lines.

    Owned by the application instance (`app.state.request_counter`). Sync handlers may
    run in a thread pool, so increments are guarded by a lock.
    """

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        return self._value
