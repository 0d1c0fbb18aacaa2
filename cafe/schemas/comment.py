import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class CommentCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    content: str = Field(max_length=1000)

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("comment cannot be empty")
        return v


class CommentRead(SQLModel):
    """
    Comment as shown under a product, with the author's display name.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    user_id: uuid.UUID
    author_name: str | None = None
    content: str
    created_at: datetime
