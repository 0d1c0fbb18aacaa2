import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class ProductCreate(SQLModel):
    """
    Payload for creating a menu product.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    description: str | None = None
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    image_url: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    image_url: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    description: str | None = None
    price: Decimal
    image_url: str | None = None
    created_at: datetime
