"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field, validator
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional, List

from domain.clock import OPEN_ENDED, manila_now, to_manila
from domain.enums import ReservationStatus, ExtensionStatus, ExtensionType
from domain.errors import InvalidReservation
from domain.value_objects import Actor, Participant, TimeWindow


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # Target room (immutable after creation)
    room_id: str = Field(frozen=True)
    room_name: str = Field(frozen=True)
    location: str = Field(frozen=True)

    # Main reserver and group
    user_id: str = Field(frozen=True)
    participants: List[Participant] = []
    num_users: int = Field(ge=1)
    purpose: str

    # Schedule (immutable after creation)
    start_datetime: datetime = Field(frozen=True)
    end_datetime: datetime = Field(frozen=True)

    # Lifecycle
    status: ReservationStatus = ReservationStatus.PENDING

    # Extension
    extension_requested: bool = False
    extension_status: ExtensionStatus = ExtensionStatus.NONE
    extension_type: ExtensionType = ExtensionType.CONTINUOUS
    extension_minutes: Optional[int] = None
    extension_reason: Optional[str] = None
    extended_end_datetime: Optional[datetime] = None
    max_extended_end_datetime: Optional[datetime] = None

    # Audit
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=manila_now)
    updated_at: datetime = Field(default_factory=manila_now)
    version: int = 1

    class Config:
        from_attributes = True

    @validator(
        'start_datetime', 'end_datetime', 'extended_end_datetime', 'max_extended_end_datetime',
        'started_at', 'ended_at', 'created_at', 'updated_at'
    )
    def normalize_timezone(cls, v):
        return to_manila(v)

    @validator('end_datetime')
    def end_after_start(cls, v, values):
        if 'start_datetime' in values and v <= values['start_datetime']:
            raise ValueError('End time must be after start time')
        return v

    @validator('extended_end_datetime')
    def extended_after_end(cls, v, values):
        if v is not None and 'end_datetime' in values and v <= values['end_datetime']:
            raise ValueError('Extended end time must be after the original end time')
        return v

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        user_id: str,
        room_id: str,
        room_name: str,
        location: str,
        purpose: str,
        window: TimeWindow,
        num_users: int,
        participants: Optional[List[Participant]] = None,
        now: Optional[datetime] = None
    ) -> "Reservation":
        """Create a new Pending reservation with validation"""
        participants = list(participants or [])
        Reservation._validate_headcount(num_users, participants)
        if not purpose or not purpose.strip():
            raise InvalidReservation("Purpose is required")

        created = to_manila(now) if now else manila_now()
        return Reservation(
            user_id=user_id,
            room_id=room_id,
            room_name=room_name,
            location=location,
            purpose=purpose.strip(),
            start_datetime=window.start,
            end_datetime=window.end,
            num_users=num_users,
            participants=participants,
            status=ReservationStatus.PENDING,
            created_at=created,
            updated_at=created
        )

    # ==================== QUERY METHODS ====================
    @property
    def current_end_time(self) -> datetime:
        """Effective end time: the extended end when one is granted"""
        return self.extended_end_datetime or self.end_datetime

    @property
    def is_open_ended(self) -> bool:
        return self.extended_end_datetime == OPEN_ENDED

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(start=self.start_datetime, end=self.end_datetime)

    def has_pending_extension(self) -> bool:
        return self.extension_status == ExtensionStatus.PENDING

    def is_main_reserver(self, actor: Actor) -> bool:
        return actor.user_id == self.user_id

    def occupies_room(self) -> bool:
        """Whether this booking counts against the room's schedule"""
        return self.status in (ReservationStatus.APPROVED, ReservationStatus.ONGOING)

    # ==================== MUTATION METHODS ====================
    def touch(self, now: datetime) -> None:
        """Record a mutation"""
        self.updated_at = to_manila(now)
        self.version += 1

    def move_to(self, status: ReservationStatus, now: datetime) -> None:
        self.status = status
        if status == ReservationStatus.ONGOING:
            self.started_at = to_manila(now)
        elif status == ReservationStatus.COMPLETED:
            self.ended_at = to_manila(now)
            # An unanswered request lapses with the booking
            if self.has_pending_extension():
                self.extension_status = ExtensionStatus.REJECTED
                self.extension_requested = False
        self.touch(now)

    def record_extension_request(
        self,
        reason: str,
        extension_type: ExtensionType,
        minutes: Optional[int],
        candidate_end: datetime,
        now: datetime
    ) -> None:
        """Store an outstanding extension request"""
        self.extension_requested = True
        self.extension_status = ExtensionStatus.PENDING
        self.extension_reason = reason
        self.extension_type = extension_type
        self.extension_minutes = minutes
        self.max_extended_end_datetime = to_manila(candidate_end)
        self.touch(now)

    def grant_extension(self, extended_end: datetime, now: datetime) -> None:
        """Approve the outstanding request up to ``extended_end``"""
        extended_end = to_manila(extended_end)
        if extended_end <= self.end_datetime:
            raise InvalidReservation("Extended end time must be after the original end time")
        self.extension_status = ExtensionStatus.APPROVED
        self.extended_end_datetime = extended_end
        self.max_extended_end_datetime = extended_end
        self.touch(now)

    def deny_extension(self, now: datetime) -> None:
        self.extension_status = ExtensionStatus.REJECTED
        self.extension_requested = False
        self.extended_end_datetime = None
        self.touch(now)

    # ==================== PRIVATE VALIDATION METHODS ====================
    @staticmethod
    def _validate_headcount(num_users: int, participants: List[Participant]) -> None:
        """Main reserver plus listed participants must fit the declared headcount"""
        if num_users < 1:
            raise InvalidReservation("At least 1 user is required")
        if len(participants) + 1 > num_users:
            raise InvalidReservation(
                f"Declared headcount {num_users} is smaller than the group size {len(participants) + 1}"
            )
