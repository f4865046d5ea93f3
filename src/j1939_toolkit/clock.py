"""Time sources used by the bus and the step controllers."""

import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional

# Longest uninterrupted sleep; cancellation is checked at least this often
PAUSE_QUANTUM = 0.1


class TimeSource(ABC):
    """Abstract clock with a cancellable pause."""

    @abstractmethod
    def now(self) -> float:
        """Monotonic time in seconds."""
        pass

    @abstractmethod
    def wall_time(self) -> datetime:
        """Wall clock time used for report time stamps."""
        pass

    @abstractmethod
    def pause_for(self, seconds: float, is_cancelled: Optional[Callable[[], bool]] = None) -> bool:
        """
        Suspend the caller.

        Args:
            seconds: How long to pause
            is_cancelled: Polled while pausing; a True result ends the pause early

        Returns:
            True if the full duration elapsed, False if cancelled
        """
        pass

    def format_time(self) -> str:
        """Time stamp in the report format (HH:MM:SS.mmmm)."""
        stamp = self.wall_time()
        return stamp.strftime("%H:%M:%S.") + f"{stamp.microsecond // 100:04d}"


class SystemClock(TimeSource):
    """Real time, backed by time.monotonic and time.sleep."""

    def now(self) -> float:
        return time.monotonic()

    def wall_time(self) -> datetime:
        return datetime.now()

    def pause_for(self, seconds: float, is_cancelled: Optional[Callable[[], bool]] = None) -> bool:
        deadline = self.now() + seconds
        while True:
            if is_cancelled and is_cancelled():
                return False
            remaining = deadline - self.now()
            if remaining <= 0:
                return True
            time.sleep(min(remaining, PAUSE_QUANTUM))


class VirtualClock(TimeSource):
    """
    Deterministic clock for tests.

    Time only moves when something pauses or calls advance().
    """

    def __init__(self, start: float = 0.0, wall_start: Optional[datetime] = None):
        self._now = start
        self._wall_start = wall_start or datetime(2021, 1, 1, 10, 15, 30)
        self._start = start
        self.pauses: list = []

    def now(self) -> float:
        return self._now

    def wall_time(self) -> datetime:
        return self._wall_start + timedelta(seconds=self._now - self._start)

    def advance(self, seconds: float) -> None:
        """Move time forward without pausing."""
        self._now += seconds

    def pause_for(self, seconds: float, is_cancelled: Optional[Callable[[], bool]] = None) -> bool:
        self.pauses.append(seconds)
        remaining = seconds
        while remaining > 0:
            if is_cancelled and is_cancelled():
                return False
            step = min(remaining, PAUSE_QUANTUM)
            self._now += step
            remaining -= step
        return not (is_cancelled and is_cancelled())
