"""Domain Enums"""
from enum import Enum


class ReservationStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    EXPIRED = "Expired"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    ReservationStatus.REJECTED,
    ReservationStatus.COMPLETED,
    ReservationStatus.CANCELLED,
    ReservationStatus.EXPIRED,
})


class ExtensionStatus(str, Enum):
    NONE = "None"
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ExtensionType(str, Enum):
    CONTINUOUS = "continuous"
    FIXED = "fixed"


class ExtensionDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class ReservationAction(str, Enum):
    CREATE = "create"
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    START = "start"
    END_EARLY = "end-early"
    COMPLETE = "complete"
    EXPIRE = "expire"
    REQUEST_EXTENSION = "request-extension"
    APPROVE_EXTENSION = "approve-extension"
    REJECT_EXTENSION = "reject-extension"


class ActorRole(str, Enum):
    USER = "User"
    STAFF = "Staff"
    ADMIN = "Admin"
    SYSTEM = "System"
