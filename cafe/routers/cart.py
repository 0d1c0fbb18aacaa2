import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from supabase import Client

from cafe.core.auth import Caller, get_current_caller, get_request_client
from cafe.repositories.cart_repo import CartRepository
from cafe.schemas.cart import (
    CartCount,
    CartItemCreate,
    CartItemUpdate,
    CartOutcome,
    CartSummary,
)
from cafe.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
service = CartService(cart_repo)

_FAILURE_STATUS = {
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
    "validation": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "store_failure": status.HTTP_502_BAD_GATEWAY,
}


def _respond(outcome: CartOutcome) -> CartOutcome:
    """Raise the HTTP error matching a failed outcome, else pass it through."""
    if not outcome.success:
        raise HTTPException(
            status_code=_FAILURE_STATUS.get(outcome.reason, status.HTTP_400_BAD_REQUEST),
            detail=outcome.error,
        )
    return outcome


@router.get("", response_model=CartSummary)
def get_my_cart(
    client: Client = Depends(get_request_client),
    caller: Caller | None = Depends(get_current_caller),
):
    """
    Get current user's cart summary.

    Guests get an empty cart rather than an error.
    """
    return service.get_summary(client, caller)


@router.get("/count", response_model=CartCount)
def count_cart_items(
    client: Client = Depends(get_request_client),
    caller: Caller | None = Depends(get_current_caller),
):
    """
    Total number of units in the cart (for the header badge).
    """
    return CartCount(count=service.count_items(client, caller))


@router.post("", response_model=CartOutcome, response_model_exclude_none=True)
def add_to_cart(
    payload: CartItemCreate,
    client: Client = Depends(get_request_client),
    caller: Caller | None = Depends(get_current_caller),
):
    """
    Add product to the current user's cart.

    Adding a product already in the cart increases its quantity.
    """
    return _respond(
        service.add_item(client, caller, payload.product_id, payload.quantity)
    )


@router.patch("/{cart_item_id}", response_model=CartOutcome, response_model_exclude_none=True)
def update_cart_item(
    cart_item_id: uuid.UUID,
    payload: CartItemUpdate,
    client: Client = Depends(get_request_client),
    caller: Caller | None = Depends(get_current_caller),
):
    """
    Update quantity of a cart line. Zero or less removes it.
    """
    return _respond(
        service.update_quantity(client, caller, cart_item_id, payload.quantity)
    )


@router.delete("/{cart_item_id}", response_model=CartOutcome, response_model_exclude_none=True)
def remove_cart_item(
    cart_item_id: uuid.UUID,
    client: Client = Depends(get_request_client),
    caller: Caller | None = Depends(get_current_caller),
):
    """
    Remove a line from the cart.
    """
    return _respond(service.remove_item(client, caller, cart_item_id))


@router.delete("", response_model=CartOutcome, response_model_exclude_none=True)
def clear_cart(
    client: Client = Depends(get_request_client),
    caller: Caller | None = Depends(get_current_caller),
):
    """
    Clear the entire cart.
    """
    return _respond(service.clear_cart(client, caller))
