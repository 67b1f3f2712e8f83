"""Continuous extension request/approval protocol"""
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from domain.clock import OPEN_ENDED, to_manila
from domain.conflicts import ConflictChecker
from domain.entities import Reservation
from domain.enums import ExtensionDecision, ExtensionType, ReservationAction, ReservationStatus
from domain.errors import (
    AlreadyPending, InvalidReservation, NoPendingExtension, NotOngoing, ReservationError, RoomBusy
)
from domain.results import ActionResult
from domain.state_machine import RESERVER, STAFF, check_actor
from domain.value_objects import Actor

DEFAULT_REASON = "Need more time"
MAX_FIXED_EXTENSION_MINUTES = 24 * 60


class ExtensionProtocol:
    """Request, approve and reject extensions of an Ongoing reservation.

    A continuous extension is open-ended: once approved the reservation keeps
    the room until it is ended explicitly, unless another Approved or Ongoing
    booking of the same room follows, in which case the extended end is capped
    at that booking's start minus ``buffer``. A fixed extension adds
    ``minutes`` to the current end time under the same cap.
    """

    def __init__(
        self,
        conflict_checker: ConflictChecker,
        buffer: timedelta = timedelta(minutes=5),
        fixed_increment: timedelta = timedelta(hours=1)
    ):
        self.conflict_checker = conflict_checker
        self.buffer = buffer
        self.fixed_increment = fixed_increment

    async def request_extension(
        self,
        reservation: Reservation,
        actor: Actor,
        reason: Optional[str],
        now: datetime,
        extension_type: ExtensionType = ExtensionType.CONTINUOUS,
        minutes: Optional[int] = None
    ) -> ActionResult:
        """Record an extension request; ``conflict_time`` carries the cap if one applies"""
        try:
            return await self._request(reservation, actor, reason, to_manila(now), extension_type, minutes)
        except ReservationError as e:
            return ActionResult.failure(e, reservation)

    async def resolve_extension(
        self,
        reservation: Reservation,
        actor: Actor,
        decision: ExtensionDecision,
        now: datetime
    ) -> ActionResult:
        """Approve or reject the outstanding request"""
        try:
            return await self._resolve(reservation, actor, decision, to_manila(now))
        except ReservationError as e:
            return ActionResult.failure(e, reservation)

    async def _request(
        self,
        reservation: Reservation,
        actor: Actor,
        reason: Optional[str],
        now: datetime,
        extension_type: ExtensionType,
        minutes: Optional[int]
    ) -> ActionResult:
        check_actor(reservation, ReservationAction.REQUEST_EXTENSION, actor, RESERVER)
        if reservation.status != ReservationStatus.ONGOING:
            raise NotOngoing(reservation.status)
        if reservation.has_pending_extension():
            raise AlreadyPending()
        if reservation.is_open_ended:
            raise InvalidReservation("Reservation already runs until it is ended; there is no later end to extend to")

        if extension_type == ExtensionType.FIXED:
            if minutes is None:
                minutes = int(self.fixed_increment.total_seconds() // 60)
            if minutes <= 0:
                raise InvalidReservation("Extension minutes must be positive")
            if minutes > MAX_FIXED_EXTENSION_MINUTES:
                raise InvalidReservation(
                    f"A fixed extension can add at most {MAX_FIXED_EXTENSION_MINUTES} minutes"
                )
        else:
            minutes = None

        candidate, cap = await self._capped_end(reservation, extension_type, minutes, now)

        updated = reservation.model_copy(deep=True)
        updated.record_extension_request(
            reason=(reason or "").strip() or DEFAULT_REASON,
            extension_type=extension_type,
            minutes=minutes,
            candidate_end=candidate,
            now=now
        )
        return ActionResult.success(updated, conflict_time=cap)

    async def _resolve(
        self,
        reservation: Reservation,
        actor: Actor,
        decision: ExtensionDecision,
        now: datetime
    ) -> ActionResult:
        action = (
            ReservationAction.APPROVE_EXTENSION
            if decision == ExtensionDecision.APPROVE
            else ReservationAction.REJECT_EXTENSION
        )
        check_actor(reservation, action, actor, STAFF)
        if not reservation.has_pending_extension():
            raise NoPendingExtension()
        if reservation.status != ReservationStatus.ONGOING:
            raise NotOngoing(reservation.status)

        updated = reservation.model_copy(deep=True)
        if decision == ExtensionDecision.REJECT:
            updated.deny_extension(now)
            return ActionResult.success(updated)

        # Bookings approved since the request may have tightened the cap
        candidate, cap = await self._capped_end(
            reservation, reservation.extension_type, reservation.extension_minutes, now
        )
        updated.grant_extension(candidate, now)
        return ActionResult.success(updated, conflict_time=cap)

    async def _capped_end(
        self,
        reservation: Reservation,
        extension_type: ExtensionType,
        minutes: Optional[int],
        now: datetime
    ) -> Tuple[datetime, Optional[datetime]]:
        """Candidate extended end and the conflict cap, if any"""
        current_end = reservation.current_end_time
        if extension_type == ExtensionType.FIXED:
            try:
                candidate = min(current_end + timedelta(minutes=minutes), OPEN_ENDED)
            except OverflowError:
                raise InvalidReservation("Extended end time is out of range")
        else:
            candidate = OPEN_ENDED

        conflict = await self.conflict_checker.find_next_conflict(
            reservation.room_id, current_end, exclude_id=reservation.reservation_id
        )
        if conflict is None:
            return candidate, None

        # The cap must leave time both after the current end and after now
        cap = conflict - self.buffer
        if cap <= max(current_end, to_manila(now)):
            raise RoomBusy(
                reservation.room_id,
                f"Room {reservation.room_name} is booked from {conflict.isoformat()}; "
                "there is no time left to extend"
            )
        return min(candidate, cap), cap

    def allowed_actions(self, reservation: Reservation, actor: Actor) -> List[ReservationAction]:
        """Extension actions ``actor`` could take on ``reservation`` right now"""
        if reservation.status != ReservationStatus.ONGOING:
            return []
        if reservation.has_pending_extension():
            if actor.is_staff():
                return [ReservationAction.APPROVE_EXTENSION, ReservationAction.REJECT_EXTENSION]
            return []
        if reservation.is_main_reserver(actor) and not reservation.is_open_ended:
            return [ReservationAction.REQUEST_EXTENSION]
        return []
