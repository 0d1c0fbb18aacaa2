import uuid

from supabase import Client

from cafe.models.comment import Comment
from cafe.repositories.base import execute

TABLE = "comments"

COMMENT_COLUMNS = (
    "id, product_id, user_id, content, created_at, public_profiles(name)"
)


class CommentRepository:

    def list_for_product(self, client: Client, product_id: uuid.UUID) -> list[Comment]:
        rows = execute(
            client.table(TABLE)
            .select(COMMENT_COLUMNS)
            .eq("product_id", str(product_id))
            .order("created_at", desc=True)
        )
        return [Comment.model_validate(row) for row in rows or []]

    def create(
        self,
        client: Client,
        *,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        content: str,
    ) -> Comment:
        rows = execute(
            client.table(TABLE).insert(
                {
                    "user_id": str(user_id),
                    "product_id": str(product_id),
                    "content": content,
                }
            )
        )
        return Comment.model_validate(rows[0])
