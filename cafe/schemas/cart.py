import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from sqlmodel import SQLModel, Field

from cafe.models.product import ProductSummary

FailureReason = Literal["unauthenticated", "not_found", "validation", "store_failure"]


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    product_id: uuid.UUID
    quantity: int = Field(default=1)


class CartItemUpdate(SQLModel):
    """
    Payload for changing the quantity of a cart item.

    Zero or negative removes the item.
    """

    quantity: int


class CartItemRead(SQLModel):
    """
    Read model for a single cart item, including line_total.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    created_at: datetime
    product: ProductSummary | None = None
    line_total: Decimal = Decimal("0")


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    items: list[CartItemRead]
    total_quantity: int
    total_price: Decimal


class CartCount(SQLModel):
    count: int


class CartOutcome(SQLModel):
    """
    Result of a cart mutation.

    On failure `error` is always a message safe to show to the customer;
    `reason` tells the caller which kind of failure it was.
    """

    success: bool
    error: str | None = None
    reason: FailureReason | None = None
