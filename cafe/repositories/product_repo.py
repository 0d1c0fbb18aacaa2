import uuid
from typing import Any

from supabase import Client

from cafe.models.product import Product
from cafe.repositories.base import execute

TABLE = "products"


class ProductRepository:
    """
    Data access layer for products.

    - Pure store operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, client: Client, product_id: uuid.UUID) -> Product | None:
        rows = execute(
            client.table(TABLE).select("*").eq("id", str(product_id)).limit(1)
        )
        return Product.model_validate(rows[0]) if rows else None

    def list(self, client: Client) -> list[Product]:
        rows = execute(
            client.table(TABLE).select("*").order("created_at", desc=True)
        )
        return [Product.model_validate(row) for row in rows or []]

    def create(self, client: Client, values: dict[str, Any]) -> Product:
        rows = execute(client.table(TABLE).insert(values))
        return Product.model_validate(rows[0])

    def update(
        self,
        client: Client,
        product_id: uuid.UUID,
        values: dict[str, Any],
    ) -> Product | None:
        rows = execute(
            client.table(TABLE).update(values).eq("id", str(product_id))
        )
        return Product.model_validate(rows[0]) if rows else None

    def delete(self, client: Client, product_id: uuid.UUID) -> bool:
        rows = execute(client.table(TABLE).delete().eq("id", str(product_id)))
        return bool(rows)
