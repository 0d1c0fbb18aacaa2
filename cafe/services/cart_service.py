import logging
import uuid
from decimal import Decimal

from supabase import Client

from cafe.core.auth import Caller
from cafe.core.errors import (
    StoreError,
    ValidationFailure,
    log_diagnostic,
    to_public_message,
)
from cafe.repositories.cart_repo import CartRepository
from cafe.schemas.cart import CartItemRead, CartOutcome, CartSummary

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "You need to sign in to use the cart"
ITEM_NOT_FOUND = "Item not found in cart"


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - scope every read and write to the caller passed in explicitly
      - keep at most one row per (user, product): adding again increments
      - never persist quantity <= 0: such updates delete the row
      - turn backend failures into logged, generic outcomes

    Mutations return CartOutcome and never raise; reads degrade to an
    empty cart / zero count.
    """

    def __init__(self, cart_repo: CartRepository):
        self.cart_repo = cart_repo

    # ---- internal helpers ----

    @staticmethod
    def _unauthenticated() -> CartOutcome:
        return CartOutcome(
            success=False,
            error=NOT_AUTHENTICATED,
            reason="unauthenticated",
        )

    @staticmethod
    def _store_failure(
        context: str,
        exc: StoreError,
        fallback: str,
        extra: dict | None = None,
    ) -> CartOutcome:
        log_diagnostic(context, exc, extra)
        return CartOutcome(
            success=False,
            error=to_public_message(exc, fallback),
            reason="store_failure",
        )

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity < 1:
            raise ValidationFailure("Quantity must be at least 1")

    # ---- reads ----

    def list_items(self, client: Client, caller: Caller | None) -> list[CartItemRead]:
        """
        Return a snapshot of the caller's cart, each line joined with the
        live product display fields. Guests get an empty list.
        """
        if caller is None:
            return []

        try:
            items = self.cart_repo.list_for_user(client, caller.user_id)
        except StoreError as exc:
            log_diagnostic("cart:list_items", exc)
            return []

        reads: list[CartItemRead] = []
        for it in items:
            line_total = it.products.price * it.quantity if it.products else Decimal("0")
            reads.append(
                CartItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    quantity=it.quantity,
                    created_at=it.created_at,
                    product=it.products,
                    line_total=line_total,
                )
            )
        return reads

    def get_summary(self, client: Client, caller: Caller | None) -> CartSummary:
        """
        Return full cart summary:
          - list of CartItemRead (with line_total)
          - total_quantity
          - total_price
        """
        items = self.list_items(client, caller)
        return CartSummary(
            items=items,
            total_quantity=sum(it.quantity for it in items),
            total_price=sum((it.line_total for it in items), Decimal("0")),
        )

    def count_items(self, client: Client, caller: Caller | None) -> int:
        """Sum of quantities in the caller's cart; 0 for guests."""
        if caller is None:
            return 0

        try:
            quantities = self.cart_repo.quantities_for_user(client, caller.user_id)
        except StoreError as exc:
            log_diagnostic("cart:count_items", exc)
            return 0

        return sum(quantities)

    # ---- mutations ----

    def add_item(
        self,
        client: Client,
        caller: Caller | None,
        product_id: uuid.UUID,
        quantity: int = 1,
    ) -> CartOutcome:
        """
        Add a product to the caller's cart.

        Rules:
          - quantity must be >= 1 (checked before touching the store)
          - an existing line for the product is incremented, not duplicated
          - no upper bound on quantity
        """
        if caller is None:
            return self._unauthenticated()

        try:
            self._check_quantity(quantity)
        except ValidationFailure as exc:
            return CartOutcome(success=False, error=exc.message, reason="validation")

        try:
            self.cart_repo.add_or_increment(client, caller.user_id, product_id, quantity)
        except StoreError as exc:
            return self._store_failure(
                "cart:add_item",
                exc,
                "Could not add the product to your cart",
                {"quantity": quantity},
            )

        logger.info("cart: user %s added %s x %s", caller.user_id, quantity, product_id)
        return CartOutcome(success=True)

    def update_quantity(
        self,
        client: Client,
        caller: Caller | None,
        cart_item_id: uuid.UUID,
        new_quantity: int,
    ) -> CartOutcome:
        """
        Set the quantity of one of the caller's cart lines.

        new_quantity <= 0 removes the line. A line that does not exist or
        belongs to someone else yields reason="not_found".
        """
        if caller is None:
            return self._unauthenticated()

        if new_quantity <= 0:
            return self.remove_item(client, caller, cart_item_id)

        try:
            updated = self.cart_repo.update_quantity(
                client, caller.user_id, cart_item_id, new_quantity
            )
        except StoreError as exc:
            return self._store_failure(
                "cart:update_quantity",
                exc,
                "Could not update the quantity",
                {"quantity": new_quantity},
            )

        if updated is None:
            return CartOutcome(success=False, error=ITEM_NOT_FOUND, reason="not_found")
        return CartOutcome(success=True)

    def remove_item(
        self,
        client: Client,
        caller: Caller | None,
        cart_item_id: uuid.UUID,
    ) -> CartOutcome:
        """
        Delete one of the caller's cart lines.
        """
        if caller is None:
            return self._unauthenticated()

        try:
            deleted = self.cart_repo.delete_item(client, caller.user_id, cart_item_id)
        except StoreError as exc:
            return self._store_failure(
                "cart:remove_item",
                exc,
                "Could not remove the item",
            )

        if not deleted:
            return CartOutcome(success=False, error=ITEM_NOT_FOUND, reason="not_found")
        return CartOutcome(success=True)

    def clear_cart(self, client: Client, caller: Caller | None) -> CartOutcome:
        """
        Delete every line in the caller's cart. Succeeds on an empty cart.
        """
        if caller is None:
            return self._unauthenticated()

        try:
            removed = self.cart_repo.clear_user_cart(client, caller.user_id)
        except StoreError as exc:
            return self._store_failure(
                "cart:clear_cart",
                exc,
                "Could not empty your cart",
            )

        logger.info("cart: user %s cleared %s line(s)", caller.user_id, removed)
        return CartOutcome(success=True)
