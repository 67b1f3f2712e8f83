"""Clock implementations"""
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from domain.clock import Clock, MANILA, to_manila


class SystemClock(Clock):
    """Wall-clock time in the configured timezone (Asia/Manila by default)"""

    def __init__(self, timezone: str = "Asia/Manila"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz).astimezone(MANILA)


class FixedClock(Clock):
    """Manually driven clock for tests and replays"""

    def __init__(self, now: datetime):
        self._now = to_manila(now)

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = to_manila(now)

    def advance(self, delta: timedelta) -> datetime:
        self._now = self._now + delta
        return self._now
