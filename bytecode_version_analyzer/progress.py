"""
Progress tracking and timing helpers.
"""

import threading
import time
from typing import Callable, Optional

from .logging_config import get_logger

logger = get_logger('progress')


class ProgressTracker:
    """
    Periodically reports progress from a background daemon thread.

    The tracker samples ``current()`` (and ``total()`` if given) every
    ``interval`` seconds and passes them to ``notify``. Use it as a context
    manager so the thread is stopped on every exit path.
    """

    def __init__(self, interval: float, current: Callable[[], int],
                 notify: Callable[[int, int], None], total: Optional[Callable[[], int]] = None,
                 name: str = "Progress Tracker"):
        self.interval = interval
        self.current = current
        self.total = total
        self.notify = notify
        self.name = name
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> 'ProgressTracker':
        if self._thread is not None or self.interval <= 0:
            return self

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        return self

    def stop(self) -> 'ProgressTracker':
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        return self

    def _run(self):
        while not self._stop_event.wait(self.interval):
            try:
                current = self.current() if self.current is not None else -1
                total = self.total() if self.total is not None else -1
                self.notify(current, total)
            except Exception as e:
                logger.error(f"progress tracker callback failed: {e}")
                return

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def __repr__(self) -> str:
        return f"ProgressTracker(interval={self.interval}, running={self.running})"


class Timing:
    """Wall clock stopwatch, usable as a context manager."""

    def __init__(self):
        self.start_time: Optional[float] = None
        self.finish_time: Optional[float] = None

    def start(self) -> 'Timing':
        self.start_time = time.perf_counter()
        self.finish_time = None
        return self

    def stop(self) -> 'Timing':
        self.finish_time = time.perf_counter()
        return self

    @property
    def elapsed(self) -> float:
        """Elapsed seconds; measured up to now while still running."""
        if self.start_time is None:
            return 0.0
        end = self.finish_time if self.finish_time is not None else time.perf_counter()
        return end - self.start_time

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed * 1000)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def __str__(self) -> str:
        return f"{self.elapsed_ms}ms"
