"""Authenticated user as carried in the access token."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .permissions import UserRole


class UserResponse(BaseModel):
    """Caller identity extracted from JWT claims."""

    model_config = ConfigDict(use_enum_values=True)

    id: UUID
    email: str = ""
    role: UserRole
