import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field


class Profile(SQLModel):
    """
    Row of public.profiles.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Role:
      - "user" | "admin"
      - guests are represented by a missing token, not by a row.

    Rows are created by the on_auth_user_created trigger; passwords live
    in Supabase Auth, never here.
    """

    id: uuid.UUID = Field(description="Matches Supabase auth.users.id")
    email: str | None = None
    name: str | None = Field(default=None, description="Customer display name")
    role: str = Field(default="user", description="Application role: user | admin")
    created_at: datetime | None = None
