"""Domain Publisher Interface"""
from abc import ABC, abstractmethod

from domain.events import ReservationEvent


class EventPublisher(ABC):
    """Notification collaborator with an explicit connection lifecycle"""

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying channel"""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the underlying channel"""
        pass

    @abstractmethod
    async def publish(self, event: ReservationEvent) -> None:
        """Deliver an event; callers treat failures as non-fatal"""
        pass
