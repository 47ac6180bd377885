"""Actor model - the authenticated caller and its role."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class Role(str, Enum):
    """Application roles (app_role enum)."""
    ADMIN = "admin"
    USER = "user"


class Actor(BaseModel):
    """Authenticated user acting on listings. Brokers are USER-role actors."""
    user_id: str = Field(..., min_length=1, description="Auth user ID")
    role: Role = Field(default=Role.USER, description="Role: admin or user")
    email: Optional[str] = Field(None, description="Email address")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def owns(self, owner_id: Optional[str]) -> bool:
        return owner_id is not None and owner_id == self.user_id
