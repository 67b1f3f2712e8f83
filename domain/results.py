"""Structured outcomes returned by the state machine, extension protocol and service"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from domain.entities import Reservation
from domain.enums import ReservationAction, ReservationStatus
from domain.errors import ErrorCode, ReservationError


class ErrorDetail(BaseModel):
    """Typed failure surfaced to the caller"""
    code: ErrorCode
    message: str
    current_status: Optional[ReservationStatus] = None
    action: Optional[ReservationAction] = None

    @property
    def retry_safe(self) -> bool:
        return self.code.retry_safe

    @classmethod
    def from_exception(cls, exc: ReservationError) -> "ErrorDetail":
        return cls(
            code=exc.code,
            message=exc.message,
            current_status=getattr(exc, "current_status", None),
            action=getattr(exc, "action", None),
        )


class ActionResult(BaseModel):
    """Success with the updated reservation, or a typed error"""
    reservation: Optional[Reservation] = None
    error: Optional[ErrorDetail] = None
    conflict_time: Optional[datetime] = None
    changed: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(
        cls,
        reservation: Reservation,
        changed: bool = True,
        conflict_time: Optional[datetime] = None
    ) -> "ActionResult":
        return cls(reservation=reservation, changed=changed, conflict_time=conflict_time)

    @classmethod
    def failure(cls, exc: ReservationError, reservation: Optional[Reservation] = None) -> "ActionResult":
        return cls(reservation=reservation, error=ErrorDetail.from_exception(exc))
