import uuid

from supabase import Client

from cafe.models.cart import CartItem
from cafe.repositories.base import execute

TABLE = "cart_items"

# Product columns are embedded through the product_id foreign key.
CART_ITEM_COLUMNS = (
    "id, user_id, product_id, quantity, created_at, "
    "products(id, name, description, price, image_url)"
)


class CartRepository:
    """
    Data access layer for cart_items.

    Every update/delete filters on user_id in addition to the row id, so a
    row id taken from a URL can never touch another user's cart even if an
    RLS policy is missing.
    """

    def list_for_user(self, client: Client, user_id: uuid.UUID) -> list[CartItem]:
        rows = execute(
            client.table(TABLE)
            .select(CART_ITEM_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at")
        )
        return [CartItem.model_validate(row) for row in rows or []]

    def quantities_for_user(self, client: Client, user_id: uuid.UUID) -> list[int]:
        rows = execute(
            client.table(TABLE).select("quantity").eq("user_id", str(user_id))
        )
        return [int(row["quantity"]) for row in rows or []]

    def add_or_increment(
        self,
        client: Client,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        quantity: int,
    ) -> CartItem | None:
        """
        Atomic upsert-with-increment through the add_cart_item SQL function:

            insert ... on conflict (user_id, product_id)
            do update set quantity = cart_items.quantity + excluded.quantity

        A single statement, so two concurrent adds cannot lose an update.
        """
        data = execute(
            client.rpc(
                "add_cart_item",
                {
                    "p_user_id": str(user_id),
                    "p_product_id": str(product_id),
                    "p_quantity": quantity,
                },
            )
        )
        if isinstance(data, list):
            data = data[0] if data else None
        return CartItem.model_validate(data) if data else None

    def update_quantity(
        self,
        client: Client,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
        quantity: int,
    ) -> CartItem | None:
        """Return the updated row, or None when no row matched (id, user_id)."""
        rows = execute(
            client.table(TABLE)
            .update({"quantity": quantity})
            .eq("id", str(item_id))
            .eq("user_id", str(user_id))
        )
        return CartItem.model_validate(rows[0]) if rows else None

    def delete_item(self, client: Client, user_id: uuid.UUID, item_id: uuid.UUID) -> bool:
        """Return True when a row matching (id, user_id) was deleted."""
        rows = execute(
            client.table(TABLE)
            .delete()
            .eq("id", str(item_id))
            .eq("user_id", str(user_id))
        )
        return bool(rows)

    def clear_user_cart(self, client: Client, user_id: uuid.UUID) -> int:
        rows = execute(client.table(TABLE).delete().eq("user_id", str(user_id)))
        return len(rows or [])
