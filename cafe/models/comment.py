import uuid
from datetime import datetime

from sqlmodel import SQLModel


class CommentAuthor(SQLModel):
    name: str | None = None


class Comment(SQLModel):
    """
    Row of public.comments, with the author's public profile (name only)
    embedded.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    created_at: datetime

    public_profiles: CommentAuthor | None = None
