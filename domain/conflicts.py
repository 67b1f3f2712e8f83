"""Room schedule conflict detection"""
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from domain.clock import to_manila
from domain.entities import Reservation
from domain.enums import ReservationStatus
from domain.repositories import ReservationRepository

BLOCKING_STATUSES = (ReservationStatus.APPROVED, ReservationStatus.ONGOING)


def next_conflict_start(
    reservations: Iterable[Reservation],
    after_time: datetime,
    exclude_id: Optional[UUID] = None
) -> Optional[datetime]:
    """Earliest start of a blocking booking that begins at or after ``after_time``"""
    after_time = to_manila(after_time)
    starts = [
        r.start_datetime
        for r in reservations
        if r.status in BLOCKING_STATUSES
        and r.reservation_id != exclude_id
        and r.start_datetime >= after_time
    ]
    return min(starts) if starts else None


class ConflictChecker:
    """Finds the next booking that would collide with an extension"""

    def __init__(self, repository: ReservationRepository):
        self.repository = repository

    async def find_next_conflict(
        self,
        room_id: str,
        after_time: datetime,
        exclude_id: Optional[UUID] = None
    ) -> Optional[datetime]:
        bookings = await self.repository.list_by_room(room_id, BLOCKING_STATUSES)
        return next_conflict_start(bookings, after_time, exclude_id)
