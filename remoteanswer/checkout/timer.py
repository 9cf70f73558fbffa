"""
Repeating timers for the checkout simulation.

Timers are driven on the caller's thread. A handle returned by
`schedule_repeating` can be cancelled; once cancelled its callback never
fires again.
"""

import logging
import time
from typing import Callable, List

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellation handle for a repeating timer."""

    def __init__(self, interval_ms: int, callback: Callable[[], None]):
        self.interval_ms = interval_ms
        self.callback = callback
        self.cancelled = False
        self.fired = 0

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> bool:
        """Invoke the callback unless cancelled. Returns True if it ran."""
        if self.cancelled:
            return False
        self.fired += 1
        self.callback()
        return True


class ManualScheduler:
    """
    Scheduler advanced explicitly by the caller.

    Each `advance()` counts as one elapsed interval for every live timer.
    """

    def __init__(self):
        self._handles: List[TimerHandle] = []

    def schedule_repeating(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(interval_ms, callback)
        self._handles.append(handle)
        return handle

    @property
    def active(self) -> List[TimerHandle]:
        return [h for h in self._handles if not h.cancelled]

    def advance(self, ticks: int = 1) -> int:
        """
        Fire live timers `ticks` times.

        Returns:
            Number of callbacks that ran
        """
        ran = 0
        for _ in range(ticks):
            # Snapshot so timers cancelled mid-tick are skipped
            for handle in list(self.active):
                if handle.fire():
                    ran += 1
            self._handles = self.active
        return ran


class BlockingScheduler(ManualScheduler):
    """
    Scheduler that sleeps between ticks on the calling thread.

    Used by the CLI, where there is no event loop to return to.
    """

    def __init__(self, sleep: Callable[[float], None] = time.sleep):
        super().__init__()
        self.sleep = sleep

    def run_until_idle(self, max_ticks: int = 10000) -> int:
        """
        Tick until every timer is cancelled.

        Args:
            max_ticks: Safety cap on the number of ticks

        Returns:
            Number of ticks performed
        """
        ticks = 0
        while self.active and ticks < max_ticks:
            interval_ms = min(h.interval_ms for h in self.active)
            self.sleep(interval_ms / 1000.0)
            self.advance()
            ticks += 1

        if self.active:
            logger.warning(f"Stopped after {ticks} ticks with timers still running")
        return ticks
