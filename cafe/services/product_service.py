import logging
import uuid

from fastapi import HTTPException, status
from supabase import Client

from cafe.core.errors import StoreError, log_diagnostic, store_failure
from cafe.core.storage_utils import (
    upload_to_storage,
    delete_public_url,
    generate_filename,
)
from cafe.models.product import Product
from cafe.repositories.product_repo import ProductRepository
from cafe.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

# --- Image config ---

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class ProductService:
    """
    Business logic for the café menu.

    Responsibilities:
      - validation beyond pydantic (image type / size)
      - image upload/delete orchestration with Supabase Storage
      - admin-only operations (enforced at router via require_admin)
      - routing store failures through the error boundary
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported image type. Allowed: JPEG, PNG, WEBP.",
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image too large (max 5MB).",
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    @staticmethod
    def _remove_image_quietly(admin_client: Client, url: str) -> None:
        """Best-effort Storage cleanup; a failure is logged, not raised."""
        try:
            delete_public_url(admin_client, url)
        except StoreError as exc:
            log_diagnostic("products:remove_image", exc, {"image_url": url})

    # ----- Products -----

    def list_products(self, client: Client) -> list[Product]:
        try:
            return self.repo.list(client)
        except StoreError as exc:
            raise store_failure("products:list", exc, "Could not load the menu")

    def get_product(self, client: Client, product_id: uuid.UUID) -> Product:
        try:
            product = self.repo.get_by_id(client, product_id)
        except StoreError as exc:
            raise store_failure(
                "products:get",
                exc,
                "Could not load the product",
            )

        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def create_product(self, client: Client, payload: ProductCreate) -> Product:
        """
        Create a new menu product (admin only).
        """
        values = payload.model_dump(mode="json")
        try:
            product = self.repo.create(client, values)
        except StoreError as exc:
            raise store_failure(
                "products:create",
                exc,
                "Could not create the product",
                {"name": payload.name},
            )

        logger.info("products: created %s (%s)", product.id, product.name)
        return product

    def update_product(
        self,
        client: Client,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product. Only fields that were sent are written.
        """
        values = payload.model_dump(mode="json", exclude_unset=True)
        if not values:
            return self.get_product(client, product_id)

        try:
            product = self.repo.update(client, product_id, values)
        except StoreError as exc:
            raise store_failure(
                "products:update",
                exc,
                "Could not update the product",
                {"fields": sorted(values)},
            )

        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def delete_product(
        self,
        client: Client,
        admin_client: Client,
        product_id: uuid.UUID,
    ) -> None:
        """
        Delete a product and clean up its image in Storage.
        """
        product = self.get_product(client, product_id)

        try:
            self.repo.delete(client, product_id)
        except StoreError as exc:
            raise store_failure(
                "products:delete",
                exc,
                "Could not delete the product",
            )

        if product.image_url:
            self._remove_image_quietly(admin_client, product.image_url)

        logger.info("products: deleted %s", product_id)

    # ----- Image -----

    def set_image(
        self,
        client: Client,
        admin_client: Client,
        product_id: uuid.UUID,
        content_type: str,
        file_bytes: bytes,
    ) -> Product:
        """
        Upload or replace the image of a product.

        - Validates content type + size.
        - Uploads to a random file name in the product images bucket.
        - Deletes the previous image from Storage (best effort).
        - Removes the new upload again if the product row cannot be updated.
        """
        product = self.get_product(client, product_id)
        ext = self._validate_and_get_ext(content_type, file_bytes)

        try:
            new_url = upload_to_storage(
                admin_client, generate_filename(ext), file_bytes, content_type
            )
        except StoreError as exc:
            raise store_failure(
                "products:upload_image",
                exc,
                "Could not upload the image",
            )

        try:
            updated = self.update_product(
                client, product_id, ProductUpdate(image_url=new_url)
            )
        except HTTPException:
            self._remove_image_quietly(admin_client, new_url)
            raise

        if product.image_url and product.image_url != new_url:
            self._remove_image_quietly(admin_client, product.image_url)

        return updated
