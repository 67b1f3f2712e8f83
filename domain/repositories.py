"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Iterable, Optional, List
from uuid import UUID

from domain.entities import Reservation
from domain.enums import ReservationStatus


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def add(self, reservation: Reservation) -> Reservation:
        """Store a new reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def list_by_room(
        self,
        room_id: str,
        statuses: Optional[Iterable[ReservationStatus]] = None
    ) -> List[Reservation]:
        """Reservations of one room, optionally filtered by status"""
        pass

    @abstractmethod
    async def find_by_statuses(self, statuses: Iterable[ReservationStatus]) -> List[Reservation]:
        """Reservations in any of the given statuses"""
        pass

    @abstractmethod
    async def find_by_user_id(self, user_id: str) -> List[Reservation]:
        """Reservations made by a main reserver"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def save(self, reservation: Reservation, expected_version: int) -> Reservation:
        """Conditionally replace a stored reservation.

        Raises ``ConflictingUpdate`` when the stored version is not
        ``expected_version`` and ``RoomBusy`` when saving an Ongoing
        reservation while another one of the same room is Ongoing.
        """
        pass
