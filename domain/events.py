"""Domain Events"""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.enums import ReservationAction, ReservationStatus
from domain.value_objects import Actor


class ReservationEvent(BaseModel):
    """Emitted after a reservation change has been persisted"""
    event_type: ReservationAction
    reservation_id: UUID
    actor: Actor
    timestamp: datetime
    status: ReservationStatus
    room_id: Optional[str] = None
    user_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
