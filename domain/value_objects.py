"""Domain Value Objects"""
from pydantic import BaseModel, validator
from datetime import datetime
from typing import Optional

from domain.clock import to_manila
from domain.enums import ActorRole


class TimeWindow(BaseModel):
    """Value Object for a booked time slot"""
    start: datetime
    end: datetime

    @validator('start', 'end')
    def normalize_timezone(cls, v):
        return to_manila(v)

    @validator('end')
    def end_after_start(cls, v, values):
        if 'start' in values and v <= values['start']:
            raise ValueError('End time must be after start time')
        return v

    def minutes(self) -> int:
        """Length of the window in whole minutes"""
        return int((self.end - self.start).total_seconds() // 60)

    class Config:
        frozen = True


class Participant(BaseModel):
    """Child Entity for a listed participant (not the main reserver)"""
    name: str
    id_number: str
    department: Optional[str] = None
    course: Optional[str] = None
    year_level: Optional[str] = None

    class Config:
        from_attributes = True


class Actor(BaseModel):
    """Who is invoking an action, as supplied by the caller"""
    user_id: str
    role: ActorRole

    def is_staff(self) -> bool:
        return self.role in (ActorRole.STAFF, ActorRole.ADMIN)

    def is_system(self) -> bool:
        return self.role == ActorRole.SYSTEM

    class Config:
        frozen = True


SYSTEM_ACTOR = Actor(user_id="system", role=ActorRole.SYSTEM)


class SweepReport(BaseModel):
    """Outcome of one pass over elapsed reservations"""
    expired: int = 0
    completed: int = 0
    failed: int = 0
    ran_at: Optional[datetime] = None
