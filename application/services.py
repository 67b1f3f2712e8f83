"""Application Services - Business use cases"""
import logging
from datetime import datetime
from typing import Awaitable, Callable, Iterable, List, Optional
from uuid import UUID

from pydantic import ValidationError

from domain.clock import Clock
from domain.conflicts import ConflictChecker
from domain.entities import Reservation
from domain.enums import ExtensionDecision, ExtensionType, ReservationAction, ReservationStatus
from domain.errors import InvalidReservation, NotFound, ReservationError
from domain.events import ReservationEvent
from domain.extension import ExtensionProtocol
from domain.publishers import EventPublisher
from domain.repositories import ReservationRepository
from domain.results import ActionResult
from domain.state_machine import ReservationStateMachine
from domain.value_objects import Actor, Participant, SYSTEM_ACTOR, TimeWindow

logger = logging.getLogger(__name__)

Decision = Callable[[Reservation, datetime], Awaitable[ActionResult]]


def _validation_message(exc: ValueError) -> str:
    if isinstance(exc, ValidationError):
        errors = exc.errors()
        if errors:
            return str(errors[0].get("msg", exc))
    return str(exc)


class ReservationService:
    """Service for Reservation lifecycle use cases.

    Each action loads the reservation, lets the state machine or the extension
    protocol decide, saves the outcome conditioned on the loaded version and
    publishes an event. Business-rule violations come back as failed
    ``ActionResult`` objects, never as exceptions.
    """

    def __init__(self,
                 repository: ReservationRepository,
                 publisher: EventPublisher,
                 clock: Clock,
                 state_machine: Optional[ReservationStateMachine] = None,
                 extension_protocol: Optional[ExtensionProtocol] = None):
        self.repository = repository
        self.publisher = publisher
        self.clock = clock
        self.state_machine = state_machine or ReservationStateMachine()
        self.extension_protocol = extension_protocol or ExtensionProtocol(ConflictChecker(repository))

    # ==================== CREATION ====================
    async def create_reservation(
        self,
        actor: Actor,
        room_id: str,
        room_name: str,
        location: str,
        purpose: str,
        start_datetime: datetime,
        end_datetime: datetime,
        num_users: int,
        participants: Optional[List[Participant]] = None
    ) -> ActionResult:
        """Create a Pending reservation for ``actor``"""
        now = self.clock.now()
        try:
            window = TimeWindow(start=start_datetime, end=end_datetime)
            reservation = Reservation.create(
                user_id=actor.user_id,
                room_id=room_id,
                room_name=room_name,
                location=location,
                purpose=purpose,
                window=window,
                num_users=num_users,
                participants=participants,
                now=now
            )
        except ReservationError as e:
            logger.warning("create rejected for user %s: %s", actor.user_id, e.message)
            return ActionResult.failure(e)
        except ValueError as e:
            error = InvalidReservation(_validation_message(e))
            logger.warning("create rejected for user %s: %s", actor.user_id, error.message)
            return ActionResult.failure(error)

        saved = await self.repository.add(reservation)
        logger.info("reservation %s created for room %s by %s", saved.reservation_id, saved.room_id, actor.user_id)
        await self._notify(ReservationAction.CREATE, saved, actor, now)
        return ActionResult.success(saved)

    # ==================== QUERIES ====================
    async def get_reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        """Get reservation by ID"""
        return await self.repository.find_by_id(reservation_id)

    async def get_all_reservations(self) -> List[Reservation]:
        """Get all reservations"""
        return await self.repository.find_all()

    async def get_reservations_by_user(self, user_id: str) -> List[Reservation]:
        """Get all reservations made by a main reserver"""
        return await self.repository.find_by_user_id(user_id)

    async def get_room_schedule(
        self,
        room_id: str,
        statuses: Optional[Iterable[ReservationStatus]] = None
    ) -> List[Reservation]:
        """Get a room's reservations ordered by start time"""
        return await self.repository.list_by_room(room_id, statuses)

    async def available_actions(self, reservation_id: UUID, actor: Actor) -> Optional[List[ReservationAction]]:
        """Actions ``actor`` may take on the reservation at the current time"""
        reservation = await self.repository.find_by_id(reservation_id)
        if reservation is None:
            return None
        now = self.clock.now()
        return (
            self.state_machine.allowed_actions(reservation, actor, now)
            + self.extension_protocol.allowed_actions(reservation, actor)
        )

    # ==================== LIFECYCLE ACTIONS ====================
    async def approve(self, reservation_id: UUID, actor: Actor) -> ActionResult:
        return await self._transition(reservation_id, actor, ReservationAction.APPROVE)

    async def reject(self, reservation_id: UUID, actor: Actor) -> ActionResult:
        return await self._transition(reservation_id, actor, ReservationAction.REJECT)

    async def start(self, reservation_id: UUID, actor: Actor) -> ActionResult:
        return await self._transition(reservation_id, actor, ReservationAction.START)

    async def end_early(self, reservation_id: UUID, actor: Actor) -> ActionResult:
        return await self._transition(reservation_id, actor, ReservationAction.END_EARLY)

    async def cancel(self, reservation_id: UUID, actor: Actor) -> ActionResult:
        return await self._transition(reservation_id, actor, ReservationAction.CANCEL)

    async def complete(self, reservation_id: UUID, actor: Actor = SYSTEM_ACTOR) -> ActionResult:
        """Close an Ongoing reservation whose end time has been reached"""
        return await self._transition(reservation_id, actor, ReservationAction.COMPLETE)

    async def expire(self, reservation_id: UUID, actor: Actor = SYSTEM_ACTOR) -> ActionResult:
        """Expire a Pending/Approved reservation that was never started"""
        return await self._transition(reservation_id, actor, ReservationAction.EXPIRE)

    # ==================== EXTENSION ACTIONS ====================
    async def request_extension(
        self,
        reservation_id: UUID,
        actor: Actor,
        reason: Optional[str] = None,
        extension_type: ExtensionType = ExtensionType.CONTINUOUS,
        minutes: Optional[int] = None
    ) -> ActionResult:
        """Ask for more time; ``conflict_time`` on the result carries the cap, if any"""
        async def decide(reservation: Reservation, now: datetime) -> ActionResult:
            return await self.extension_protocol.request_extension(
                reservation, actor, reason, now, extension_type=extension_type, minutes=minutes
            )

        return await self._execute(reservation_id, actor, ReservationAction.REQUEST_EXTENSION, decide)

    async def resolve_extension(
        self,
        reservation_id: UUID,
        actor: Actor,
        decision: ExtensionDecision
    ) -> ActionResult:
        action = (
            ReservationAction.APPROVE_EXTENSION
            if decision == ExtensionDecision.APPROVE
            else ReservationAction.REJECT_EXTENSION
        )

        async def decide(reservation: Reservation, now: datetime) -> ActionResult:
            return await self.extension_protocol.resolve_extension(reservation, actor, decision, now)

        return await self._execute(reservation_id, actor, action, decide)

    async def approve_extension(self, reservation_id: UUID, actor: Actor) -> ActionResult:
        return await self.resolve_extension(reservation_id, actor, ExtensionDecision.APPROVE)

    async def reject_extension(self, reservation_id: UUID, actor: Actor) -> ActionResult:
        return await self.resolve_extension(reservation_id, actor, ExtensionDecision.REJECT)

    # ==================== HELPERS ====================
    async def _transition(self, reservation_id: UUID, actor: Actor, action: ReservationAction) -> ActionResult:
        async def decide(reservation: Reservation, now: datetime) -> ActionResult:
            return self.state_machine.apply(reservation, action, actor, now)

        return await self._execute(reservation_id, actor, action, decide)

    async def _execute(
        self,
        reservation_id: UUID,
        actor: Actor,
        action: ReservationAction,
        decide: Decision
    ) -> ActionResult:
        reservation = await self.repository.find_by_id(reservation_id)
        if reservation is None:
            logger.warning("%s rejected: reservation %s not found", action.value, reservation_id)
            return ActionResult.failure(NotFound(reservation_id))

        now = self.clock.now()
        result = await decide(reservation, now)
        if not result.ok:
            logger.warning(
                "%s rejected for reservation %s (%s): %s",
                action.value, reservation_id, result.error.code.value, result.error.message
            )
            return result
        if not result.changed:
            logger.info("%s already applied to reservation %s", action.value, reservation_id)
            return result

        try:
            saved = await self.repository.save(result.reservation, expected_version=reservation.version)
        except ReservationError as e:
            logger.warning("%s on reservation %s not saved (%s): %s", action.value, reservation_id, e.code.value, e.message)
            return ActionResult.failure(e, reservation)

        logger.info(
            "%s applied to reservation %s by %s:%s; status=%s version=%s",
            action.value, reservation_id, actor.role.value, actor.user_id, saved.status.value, saved.version
        )
        await self._notify(action, saved, actor, now, conflict_time=result.conflict_time)
        return ActionResult.success(saved, conflict_time=result.conflict_time)

    async def _notify(
        self,
        action: ReservationAction,
        reservation: Reservation,
        actor: Actor,
        now: datetime,
        conflict_time: Optional[datetime] = None
    ) -> None:
        """Publish an event; delivery failures never undo the change"""
        details = {
            "extension_status": reservation.extension_status.value,
            "current_end_time": reservation.current_end_time.isoformat(),
        }
        if conflict_time is not None:
            details["conflict_time"] = conflict_time.isoformat()
        event = ReservationEvent(
            event_type=action,
            reservation_id=reservation.reservation_id,
            actor=actor,
            timestamp=now,
            status=reservation.status,
            room_id=reservation.room_id,
            user_id=reservation.user_id,
            details=details
        )
        try:
            await self.publisher.publish(event)
        except Exception:
            logger.exception("failed to publish %s event for reservation %s", action.value, reservation.reservation_id)
