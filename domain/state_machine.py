"""Reservation lifecycle state machine

All status changes go through ``ReservationStateMachine.apply``, which looks the
(status, action) pair up in ``TRANSITIONS``, checks the actor and the time gate,
and returns an ``ActionResult`` holding an updated copy of the reservation.
"""
from datetime import datetime, timedelta
from typing import Dict, List, Tuple

from domain.clock import to_manila
from domain.entities import Reservation
from domain.enums import ReservationAction, ReservationStatus
from domain.errors import InvalidTransition, ReservationError, TooEarly, Unauthorized
from domain.results import ActionResult
from domain.value_objects import Actor

STAFF = "staff"
RESERVER = "reserver"
SYSTEM = "system"

TRANSITIONS: Dict[Tuple[ReservationStatus, ReservationAction], ReservationStatus] = {
    (ReservationStatus.PENDING, ReservationAction.APPROVE): ReservationStatus.APPROVED,
    (ReservationStatus.PENDING, ReservationAction.REJECT): ReservationStatus.REJECTED,
    (ReservationStatus.PENDING, ReservationAction.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.PENDING, ReservationAction.EXPIRE): ReservationStatus.EXPIRED,
    (ReservationStatus.APPROVED, ReservationAction.START): ReservationStatus.ONGOING,
    (ReservationStatus.APPROVED, ReservationAction.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.APPROVED, ReservationAction.EXPIRE): ReservationStatus.EXPIRED,
    (ReservationStatus.ONGOING, ReservationAction.END_EARLY): ReservationStatus.COMPLETED,
    (ReservationStatus.ONGOING, ReservationAction.COMPLETE): ReservationStatus.COMPLETED,
}

ACTION_ACTORS: Dict[ReservationAction, str] = {
    ReservationAction.APPROVE: STAFF,
    ReservationAction.REJECT: STAFF,
    ReservationAction.START: STAFF,
    ReservationAction.END_EARLY: STAFF,
    ReservationAction.CANCEL: RESERVER,
    ReservationAction.COMPLETE: SYSTEM,
    ReservationAction.EXPIRE: SYSTEM,
}


def check_actor(reservation: Reservation, action: ReservationAction, actor: Actor, required: str) -> None:
    """Raise ``Unauthorized`` unless ``actor`` may perform ``action``"""
    if required == STAFF and not actor.is_staff():
        raise Unauthorized(action, "requires a Staff or Admin account")
    if required == RESERVER and not reservation.is_main_reserver(actor):
        raise Unauthorized(action, "only the main reserver can do this")
    if required == SYSTEM and not actor.is_system():
        raise Unauthorized(action, "performed by the system only")


class ReservationStateMachine:
    """Validates and applies lifecycle transitions"""

    def __init__(
        self,
        start_window: timedelta = timedelta(minutes=15),
        expiry_grace: timedelta = timedelta(minutes=15)
    ):
        self.start_window = start_window
        self.expiry_grace = expiry_grace

    def apply(
        self,
        reservation: Reservation,
        action: ReservationAction,
        actor: Actor,
        now: datetime
    ) -> ActionResult:
        """Apply ``action`` and return the outcome; ``reservation`` is not modified"""
        try:
            return self._apply(reservation, action, actor, to_manila(now))
        except ReservationError as e:
            return ActionResult.failure(e, reservation)

    def _apply(
        self,
        reservation: Reservation,
        action: ReservationAction,
        actor: Actor,
        now: datetime
    ) -> ActionResult:
        if action not in ACTION_ACTORS:
            raise InvalidTransition(reservation.status, action)

        target = TRANSITIONS.get((reservation.status, action))
        if target is None:
            # A retried action that already reached its terminal state is a no-op
            if reservation.status.is_terminal and self.target_of(action) == reservation.status:
                check_actor(reservation, action, actor, ACTION_ACTORS[action])
                return ActionResult.success(reservation, changed=False)
            raise InvalidTransition(reservation.status, action)

        check_actor(reservation, action, actor, ACTION_ACTORS[action])
        self._check_time_gate(reservation, action, now)

        updated = reservation.model_copy(deep=True)
        updated.move_to(target, now)
        return ActionResult.success(updated)

    def _check_time_gate(self, reservation: Reservation, action: ReservationAction, now: datetime) -> None:
        if action == ReservationAction.START:
            opens_at = self.start_opens_at(reservation)
            if now < opens_at:
                raise TooEarly(action, opens_at)
        elif action == ReservationAction.COMPLETE:
            if not self.has_elapsed(reservation, now):
                raise TooEarly(action, reservation.current_end_time)
        elif action == ReservationAction.EXPIRE:
            if not self.is_overdue(reservation, now):
                raise TooEarly(action, reservation.start_datetime + self.expiry_grace)

    # ==================== QUERY METHODS ====================
    @staticmethod
    def target_of(action: ReservationAction):
        for (_, candidate), target in TRANSITIONS.items():
            if candidate == action:
                return target
        return None

    def start_opens_at(self, reservation: Reservation) -> datetime:
        return reservation.start_datetime - self.start_window

    def is_overdue(self, reservation: Reservation, now: datetime) -> bool:
        """Pending/Approved booking whose start passed by more than the grace period"""
        return to_manila(now) > reservation.start_datetime + self.expiry_grace

    def has_elapsed(self, reservation: Reservation, now: datetime) -> bool:
        return to_manila(now) >= reservation.current_end_time

    def allowed_actions(self, reservation: Reservation, actor: Actor, now: datetime) -> List[ReservationAction]:
        """Actions ``actor`` could successfully perform right now"""
        now = to_manila(now)
        allowed = []
        for (status, action), _ in TRANSITIONS.items():
            if status != reservation.status:
                continue
            try:
                check_actor(reservation, action, actor, ACTION_ACTORS[action])
                self._check_time_gate(reservation, action, now)
            except ReservationError:
                continue
            allowed.append(action)
        return allowed
