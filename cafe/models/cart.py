import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field

from cafe.models.product import ProductSummary


class CartItem(SQLModel):
    """
    Row of public.cart_items as returned by PostgREST.

    One user cannot have 2 rows for the same product
    (unique (user_id, product_id) in the database).
    """

    id: uuid.UUID
    user_id: uuid.UUID
    product_id: uuid.UUID

    quantity: int = Field(
        ge=1,
        description="Must be >= 1; rows that would drop to 0 are deleted",
    )

    created_at: datetime

    # Embedded via the cart_items.product_id foreign key.
    products: ProductSummary | None = None
