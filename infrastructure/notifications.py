"""Event Publisher Implementations"""
import logging
from typing import List
from uuid import UUID

from domain.events import ReservationEvent
from domain.publishers import EventPublisher

logger = logging.getLogger("audit.events")


class PublisherNotConnected(RuntimeError):
    pass


class InMemoryEventPublisher(EventPublisher):
    """Keeps published events in memory"""

    def __init__(self):
        self.connected = False
        self.events: List[ReservationEvent] = []

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def publish(self, event: ReservationEvent) -> None:
        if not self.connected:
            raise PublisherNotConnected("Publisher is not connected")
        self.events.append(event)

    def events_for(self, reservation_id: UUID) -> List[ReservationEvent]:
        return [e for e in self.events if e.reservation_id == reservation_id]


class LoggingEventPublisher(EventPublisher):
    """Writes events to the audit.events logger"""

    def __init__(self):
        self.connected = False

    async def connect(self) -> None:
        self.connected = True
        logger.info("event publisher connected")

    async def disconnect(self) -> None:
        self.connected = False
        logger.info("event publisher disconnected")

    async def publish(self, event: ReservationEvent) -> None:
        if not self.connected:
            raise PublisherNotConnected("Publisher is not connected")
        logger.info(
            "%s | reservation=%s | status=%s | actor=%s:%s | at=%s",
            event.event_type.value,
            event.reservation_id,
            event.status.value,
            event.actor.role.value,
            event.actor.user_id,
            event.timestamp.isoformat(),
        )
