"""Client-side match countdown.

The countdown is never a local running timer: every reading is recomputed
from the shared end instant (``started_at + duration``) against the current
time, corrected by the offset between this device and the server clock.
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime, timedelta

from mathduel.models.time_stamp_mixin import as_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_RESYNC_TOLERANCE = timedelta(milliseconds=500)


class MatchClock:
    def __init__(
        self,
        tolerance: timedelta = DEFAULT_RESYNC_TOLERANCE,
        now: Callable[[], datetime] = utc_now,
    ):
        self.tolerance = tolerance
        self._now = now
        self.end_at: datetime | None = None
        self.duration_sec: int | None = None
        self.anchored = False
        self.offset = timedelta(0)

    def calibrate(self, server_time: datetime) -> None:
        self.offset = as_utc(server_time) - self._now()

    def server_now(self) -> datetime:
        return self._now() + self.offset

    def observe(
        self,
        started_at: datetime | None,
        duration_sec: int,
        server_time: datetime | None = None,
    ) -> bool:
        """Fold one room observation into the clock.

        Returns True when the held end instant changed.
        """
        if server_time is not None:
            self.calibrate(server_time)
        self.duration_sec = duration_sec
        duration = timedelta(seconds=duration_sec)

        if started_at is None:
            if self.end_at is not None:
                return False
            logger.debug("Room is in progress without a start time; starting now")
            self.end_at = self.server_now() + duration
            return True

        candidate = as_utc(started_at) + duration
        if (
            self.end_at is None
            or not self.anchored
            or abs(candidate - self.end_at) > self.tolerance
        ):
            self.end_at = candidate
            self.anchored = True
            return True
        return False

    def remaining(self) -> float:
        if self.end_at is None:
            return float(self.duration_sec or 0)
        left = (self.end_at - self.server_now()).total_seconds()
        return max(left, 0.0)

    def remaining_seconds(self) -> int:
        return math.ceil(self.remaining())

    @property
    def expired(self) -> bool:
        return self.end_at is not None and self.remaining() <= 0

    def progress(self) -> float:
        if not self.duration_sec:
            return 0.0
        return min(max(1 - self.remaining() / self.duration_sec, 0.0), 1.0)

    def display(self) -> str:
        seconds = self.remaining_seconds()
        return f"{seconds // 60}:{seconds % 60:02d}"
