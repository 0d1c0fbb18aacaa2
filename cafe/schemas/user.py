import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

# App-level roles. "guest" = no token, so we don't store it here.
Role = Literal["user", "admin"]


class ProfileRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: str | None = None
    name: str | None = None
    role: Role
    created_at: datetime | None = None


class UserRoleUpdate(SQLModel):
    """
    Admin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    role: Role
