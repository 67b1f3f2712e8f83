"""Domain Entities - Auth"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional

from domain.enums import ActorRole
from domain.value_objects import Actor


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    id_number: Optional[str] = None
    department: Optional[str] = None
    role: ActorRole = ActorRole.USER
    disabled: bool = False

    class Config:
        from_attributes = True

    def to_actor(self) -> Actor:
        """Identity handed to the reservation engine"""
        return Actor(user_id=str(self.user_id), role=self.role)


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
