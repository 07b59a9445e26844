"""A cancellable one-shot timer that runs a task on a background thread."""

from __future__ import annotations

import threading
from typing import Callable, Optional


class OneShotTimer:
    """Run a task once after a delay unless stopped first.

    Only one countdown can be pending at a time. ``stop`` cancels a pending
    countdown and waits until the worker thread has finished.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._running = False
        self._stop_requested = False
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        """True while a countdown or its task is in progress."""
        with self._cond:
            return self._running

    def start_once(self, timeout_ms: float, task: Callable[[], None]) -> bool:
        """Run ``task`` after ``timeout_ms`` milliseconds.

        Returns False and does nothing if the timer is already running.
        """
        with self._cond:
            if self._running:
                return False
            self._running = True
            self._stop_requested = False
            thread = threading.Thread(
                target=self._run,
                args=(max(timeout_ms, 0) / 1000.0, task),
                name="one-shot-timer",
                daemon=True,
            )
            self._thread = thread
        thread.start()
        return True

    def _run(self, timeout: float, task: Callable[[], None]) -> None:
        with self._cond:
            stopped = self._cond.wait_for(lambda: self._stop_requested, timeout)
        try:
            if not stopped:
                task()
        finally:
            with self._cond:
                self._running = False
                self._cond.notify_all()

    def stop(self) -> None:
        """Cancel a pending countdown and wait for the worker to finish."""
        with self._cond:
            if not self._running or self._stop_requested:
                return
            self._stop_requested = True
            self._cond.notify_all()
            if threading.current_thread() is self._thread:
                # Called from inside the task: the worker ends right after it.
                return
            self._cond.wait_for(lambda: not self._running)
            self._stop_requested = False

    def __enter__(self) -> "OneShotTimer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()