"""Domain error taxonomy

Every business-rule violation has an ``ErrorCode``. Domain code raises the
matching ``ReservationError`` subclass; the state machine, extension protocol
and application service convert it into a failed ``ActionResult`` so callers
receive a structured result instead of an exception.
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from domain.enums import ReservationAction, ReservationStatus


class ErrorCode(str, Enum):
    INVALID_TRANSITION = "InvalidTransition"
    TOO_EARLY = "TooEarly"
    UNAUTHORIZED = "Unauthorized"
    NOT_ONGOING = "NotOngoing"
    ALREADY_PENDING = "AlreadyPending"
    NO_PENDING_EXTENSION = "NoPendingExtension"
    ROOM_BUSY = "RoomBusy"
    CONFLICTING_UPDATE = "ConflictingUpdate"
    NOT_FOUND = "NotFound"
    INVALID_RESERVATION = "InvalidReservation"

    @property
    def retry_safe(self) -> bool:
        return self is ErrorCode.CONFLICTING_UPDATE


class ReservationError(ValueError):
    """Base class for recoverable reservation rule violations"""
    code: ErrorCode = ErrorCode.INVALID_TRANSITION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTransition(ReservationError):
    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, current_status: ReservationStatus, action: ReservationAction):
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action.value} a reservation with status {current_status.value}"
        )


class TooEarly(ReservationError):
    code = ErrorCode.TOO_EARLY

    def __init__(self, action: ReservationAction, allowed_from: datetime):
        self.action = action
        self.allowed_from = allowed_from
        super().__init__(
            f"Cannot {action.value} before {allowed_from.isoformat()}"
        )


class Unauthorized(ReservationError):
    code = ErrorCode.UNAUTHORIZED

    def __init__(self, action: ReservationAction, reason: str):
        self.action = action
        super().__init__(f"Not allowed to {action.value}: {reason}")


class NotOngoing(ReservationError):
    code = ErrorCode.NOT_ONGOING

    def __init__(self, current_status: ReservationStatus):
        self.current_status = current_status
        super().__init__(
            f"Extensions can only be requested while Ongoing (status is {current_status.value})"
        )


class AlreadyPending(ReservationError):
    code = ErrorCode.ALREADY_PENDING

    def __init__(self):
        super().__init__("An extension request is already pending")


class NoPendingExtension(ReservationError):
    code = ErrorCode.NO_PENDING_EXTENSION

    def __init__(self):
        super().__init__("There is no pending extension request to resolve")


class RoomBusy(ReservationError):
    code = ErrorCode.ROOM_BUSY

    def __init__(self, room_id: str, message: Optional[str] = None):
        self.room_id = room_id
        super().__init__(message or f"Room {room_id} already has an ongoing reservation")


class ConflictingUpdate(ReservationError):
    code = ErrorCode.CONFLICTING_UPDATE

    def __init__(self, reservation_id: UUID, expected_version: int, actual_version: int):
        self.reservation_id = reservation_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Reservation {reservation_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version}); re-fetch and retry"
        )


class NotFound(ReservationError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, reservation_id: UUID):
        self.reservation_id = reservation_id
        super().__init__(f"Reservation {reservation_id} not found")


class InvalidReservation(ReservationError):
    code = ErrorCode.INVALID_RESERVATION
