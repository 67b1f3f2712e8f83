"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID
from typing import List, Optional

from domain.enums import ActorRole, ExtensionDecision, ExtensionType
from domain.extension import MAX_FIXED_EXTENSION_MINUTES


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class ParticipantRequest(BaseModel):
    """Participant request DTO"""
    name: str
    id_number: str
    department: Optional[str] = None
    course: Optional[str] = None
    year_level: Optional[str] = None


class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    room_id: str
    room_name: str
    location: str
    purpose: str
    start_datetime: datetime
    end_datetime: datetime
    num_users: int = Field(ge=1)
    participants: List[ParticipantRequest] = []


class ExtensionRequest(BaseModel):
    """Request extension DTO"""
    reason: str = "Need more time"
    extension_type: ExtensionType = ExtensionType.CONTINUOUS
    minutes: Optional[int] = Field(None, ge=1, le=MAX_FIXED_EXTENSION_MINUTES, description="Only used for fixed extensions")


class HandleExtensionRequest(BaseModel):
    """Approve/reject extension DTO"""
    action: ExtensionDecision


class ParticipantResponse(BaseModel):
    """Participant response DTO"""
    name: str
    id_number: str
    department: Optional[str] = None
    course: Optional[str] = None
    year_level: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    reservation_id: UUID
    room_id: str
    room_name: str
    location: str
    user_id: str
    participants: List[ParticipantResponse]
    num_users: int
    purpose: str
    start_datetime: datetime
    end_datetime: datetime
    current_end_datetime: datetime
    status: str
    extension_requested: bool
    extension_status: str
    extension_type: str
    extension_minutes: Optional[int] = None
    extension_reason: Optional[str] = None
    extended_end_datetime: Optional[datetime] = None
    max_extended_end_datetime: Optional[datetime] = None
    is_open_ended: bool
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    version: int


class ReservationActionResponse(ReservationResponse):
    """Reservation after an action, with the extension cap when one applies"""
    conflict_time: Optional[datetime] = None


class AvailableActionsResponse(BaseModel):
    """Actions the caller may perform on a reservation right now"""
    reservation_id: UUID
    status: str
    actions: List[str]


class SweepResponse(BaseModel):
    """Sweep summary DTO"""
    expired: int
    completed: int
    failed: int
    ran_at: datetime


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: ActorRole
    disabled: bool
