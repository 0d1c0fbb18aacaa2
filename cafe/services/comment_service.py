import uuid

from supabase import Client

from cafe.core.auth import Caller
from cafe.core.errors import StoreError, store_failure
from cafe.models.comment import Comment
from cafe.repositories.comment_repo import CommentRepository
from cafe.schemas.comment import CommentCreate, CommentRead


def _to_read(comment: Comment) -> CommentRead:
    return CommentRead(
        id=comment.id,
        product_id=comment.product_id,
        user_id=comment.user_id,
        author_name=comment.public_profiles.name if comment.public_profiles else None,
        content=comment.content,
        created_at=comment.created_at,
    )


class CommentService:
    """
    Product comments: public listing, authenticated posting.
    """

    def __init__(self, repo: CommentRepository):
        self.repo = repo

    def list_comments(self, client: Client, product_id: uuid.UUID) -> list[CommentRead]:
        try:
            comments = self.repo.list_for_product(client, product_id)
        except StoreError as exc:
            raise store_failure(
                "comments:list",
                exc,
                "Could not load comments",
            )
        return [_to_read(c) for c in comments]

    def add_comment(
        self,
        client: Client,
        caller: Caller,
        product_id: uuid.UUID,
        payload: CommentCreate,
    ) -> CommentRead:
        """
        Post a comment as the caller. The author is always the caller,
        never a user id taken from the payload.
        """
        try:
            comment = self.repo.create(
                client,
                user_id=caller.user_id,
                product_id=product_id,
                content=payload.content,
            )
        except StoreError as exc:
            raise store_failure(
                "comments:create",
                exc,
                "Could not post your comment",
            )
        return _to_read(comment)
