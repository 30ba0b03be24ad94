"""
Live Refresh Driver

One repeating timer per view. Every tick reads a fresh `now` from the
clock and hands it to the consumer, which recomputes everything from
scratch. Cancel the driver when the view is torn down.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from config import Config
from core.process.clock import plant_now

logger = logging.getLogger(__name__)


def cadence_for(
    is_active: bool,
    active_seconds: Optional[float] = None,
    idle_seconds: Optional[float] = None
) -> float:
    """Refresh interval: fast while a cycle is open, slow otherwise"""
    if is_active:
        return active_seconds if active_seconds is not None else Config.ACTIVE_REFRESH_SECONDS
    return idle_seconds if idle_seconds is not None else Config.IDLE_REFRESH_SECONDS


class RefreshDriver:
    """
    Ticks `on_tick(now)` on a fixed cadence from a single timer thread.

    Example:
        >>> with RefreshDriver(render, interval_seconds=1.0) as driver:
        ...     driver.start()
        ...     wait_for_view_close()
    """

    def __init__(
        self,
        on_tick: Callable[[datetime], None],
        clock: Callable[[], datetime] = plant_now,
        interval_seconds: float = 1.0,
        name: str = "refresh-driver"
    ):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.on_tick = on_tick
        self.clock = clock
        self.name = name
        self._interval = interval_seconds
        self._cancelled = threading.Event()
        self._interval_changed = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.tick_count = 0

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def set_interval(self, seconds: float):
        """Switch cadence; takes effect immediately"""
        if seconds <= 0:
            raise ValueError(f"interval must be positive, got {seconds}")
        if seconds != self._interval:
            logger.debug(f"{self.name}: interval {self._interval}s -> {seconds}s")
            self._interval = seconds
            self._interval_changed.set()

    def tick(self) -> datetime:
        """Run one tick synchronously and return the `now` it used"""
        now = self.clock()
        self.tick_count += 1
        try:
            self.on_tick(now)
        except Exception as e:
            logger.error(f"{self.name}: tick failed: {e}", exc_info=True)
        return now

    def start(self):
        """Start the timer thread (first tick fires immediately)"""
        if self.running:
            return
        if self._cancelled.is_set():
            raise RuntimeError(f"{self.name} was cancelled and cannot be restarted")

        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info(f"{self.name} started ({self._interval}s cadence)")

    def cancel(self, timeout: Optional[float] = 5.0):
        """Stop the timer and wait for the thread to exit"""
        self._cancelled.set()
        self._interval_changed.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info(f"{self.name} cancelled after {self.tick_count} ticks")

    def _run(self):
        while not self._cancelled.is_set():
            self.tick()
            self._interval_changed.clear()
            if self._cancelled.is_set():
                break
            # Wakes early on cancel or cadence change
            self._interval_changed.wait(self._interval)

    def __enter__(self) -> 'RefreshDriver':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel()
