import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel, Field


class ProductSummary(SQLModel):
    """
    Display fields of a product, as embedded in cart rows.

    The cart keeps a reference only, so price is always the live price.
    """

    id: uuid.UUID
    name: str
    description: str | None = None
    price: Decimal = Field(ge=0)
    image_url: str | None = None


class Product(ProductSummary):
    """
    Row of public.products (the café menu).
    """

    created_at: datetime = Field(description="Creation timestamp (UTC)")
