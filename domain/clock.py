"""Domain time source port and Asia/Manila normalization"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

MANILA = ZoneInfo("Asia/Manila")

# Extended end time of an approved continuous extension with nothing booked after it.
OPEN_ENDED = datetime(9999, 12, 31, tzinfo=MANILA)


def to_manila(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a timestamp to Asia/Manila; naive values are read as Manila local time."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=MANILA)
    return value.astimezone(MANILA)


def manila_now() -> datetime:
    return datetime.now(MANILA)


class Clock(ABC):
    """Supplies the current time, injectable for testing"""

    @abstractmethod
    def now(self) -> datetime:
        """Current Asia/Manila time"""
        pass
