"""
Epoch arithmetic. An epoch is the integer index of a fixed-length window of
wall-clock time; every window boundary decision in the service goes through here.
"""
from datetime import datetime, timezone
from typing import Optional

from core.config import settings


class EpochClock:
    def __init__(self, window_seconds: Optional[int] = None, offset_seconds: Optional[int] = None):
        self.window_seconds = window_seconds if window_seconds is not None else settings.EPOCH_SECONDS
        self.offset_seconds = offset_seconds if offset_seconds is not None else settings.EPOCH_OFFSET_SECONDS
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

    @staticmethod
    def _as_utc(now: datetime) -> datetime:
        # Naive datetimes are treated as UTC
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc)

    def current_epoch(self, now: datetime) -> int:
        """Window index containing `now`. Non-decreasing in `now`."""
        seconds = int(self._as_utc(now).timestamp()) + self.offset_seconds
        return seconds // self.window_seconds

    def epoch_start(self, epoch: int) -> datetime:
        return datetime.fromtimestamp(epoch * self.window_seconds - self.offset_seconds, tz=timezone.utc)

    def next_epoch_start(self, now: datetime) -> datetime:
        """Instant at which a participant who finished this window gets new questions."""
        return self.epoch_start(self.current_epoch(now) + 1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
