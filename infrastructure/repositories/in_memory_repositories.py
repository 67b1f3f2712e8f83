"""In-Memory Repository Implementations"""
import asyncio
from typing import Iterable, Optional, List, Dict
from uuid import UUID

from domain.repositories import ReservationRepository
from domain.entities import Reservation
from domain.enums import ReservationStatus
from domain.errors import ConflictingUpdate, NotFound, RoomBusy


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository.

    Stored reservations are copies, so callers never share mutable state, and
    ``save`` is a compare-and-set on ``version`` performed under a lock.
    """

    def __init__(self):
        self._storage: Dict[UUID, Reservation] = {}
        self._lock = asyncio.Lock()

    async def add(self, reservation: Reservation) -> Reservation:
        """Save a new reservation to memory"""
        async with self._lock:
            self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
        return reservation

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        stored = self._storage.get(reservation_id)
        return stored.model_copy(deep=True) if stored else None

    async def list_by_room(
        self,
        room_id: str,
        statuses: Optional[Iterable[ReservationStatus]] = None
    ) -> List[Reservation]:
        """Reservations of one room ordered by start time"""
        wanted = set(statuses) if statuses is not None else None
        found = [
            r for r in self._storage.values()
            if r.room_id == room_id and (wanted is None or r.status in wanted)
        ]
        return [r.model_copy(deep=True) for r in sorted(found, key=lambda r: r.start_datetime)]

    async def find_by_statuses(self, statuses: Iterable[ReservationStatus]) -> List[Reservation]:
        """Reservations in any of the given statuses"""
        wanted = set(statuses)
        return [r.model_copy(deep=True) for r in self._storage.values() if r.status in wanted]

    async def find_by_user_id(self, user_id: str) -> List[Reservation]:
        """Find reservations by main reserver"""
        return [r.model_copy(deep=True) for r in self._storage.values() if r.user_id == user_id]

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return [r.model_copy(deep=True) for r in self._storage.values()]

    async def save(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Replace the stored reservation if nobody changed it in the meantime"""
        async with self._lock:
            stored = self._storage.get(reservation.reservation_id)
            if stored is None:
                raise NotFound(reservation.reservation_id)
            if stored.version != expected_version:
                raise ConflictingUpdate(reservation.reservation_id, expected_version, stored.version)

            if reservation.status == ReservationStatus.ONGOING and stored.status != ReservationStatus.ONGOING:
                for other in self._storage.values():
                    if (
                        other.room_id == reservation.room_id
                        and other.reservation_id != reservation.reservation_id
                        and other.status == ReservationStatus.ONGOING
                    ):
                        raise RoomBusy(reservation.room_id)

            self._storage[reservation.reservation_id] = reservation.model_copy(deep=True)
        return reservation
