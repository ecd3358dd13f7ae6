"""
Trailing-edge debouncer for search input.
"""

import threading
from typing import Any, Callable

TimerFactory = Callable[[float, Callable[[], Any]], Any]


def _thread_timer(delay: float, fn: Callable[[], Any]) -> threading.Timer:
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    return timer


class Debouncer:
    """
    Runs only the last call made within ``delay_ms``.

    Each ``call`` cancels the pending one and schedules a new timer. The
    timer factory must return an object with ``start()`` and ``cancel()``.
    """

    def __init__(self, delay_ms: int, timer_factory: TimerFactory = _thread_timer):
        self.delay = delay_ms / 1000
        self._timer_factory = timer_factory
        self._timer = None
        self._lock = threading.Lock()

    def call(self, fn: Callable[..., Any], *args, **kwargs) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()

            def fire():
                try:
                    fn(*args, **kwargs)
                finally:
                    with self._lock:
                        if self._timer is timer:
                            self._timer = None

            timer = self._timer_factory(self.delay, fire)
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def pending(self) -> bool:
        return self._timer is not None
