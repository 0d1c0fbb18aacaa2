import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    UploadFile,
    status,
)
from supabase import Client

from cafe.core.auth import Caller, get_request_client, require_admin, require_auth
from cafe.core.supabase_client import get_admin_client
from cafe.repositories.comment_repo import CommentRepository
from cafe.repositories.product_repo import ProductRepository
from cafe.schemas.comment import CommentCreate, CommentRead
from cafe.schemas.product import ProductCreate, ProductRead, ProductUpdate
from cafe.services.comment_service import CommentService
from cafe.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo)
comment_service = CommentService(CommentRepository())


# -------- Public endpoints --------


@router.get("", response_model=list[ProductRead])
def list_products(client: Client = Depends(get_request_client)):
    """
    List the menu, newest first.

    - Public endpoint.
    """
    return service.list_products(client)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    client: Client = Depends(get_request_client),
):
    """
    Get a single product by id.

    - Public endpoint.
    """
    return service.get_product(client, product_id)


@router.get("/{product_id}/comments", response_model=list[CommentRead])
def list_comments(
    product_id: uuid.UUID,
    client: Client = Depends(get_request_client),
):
    """
    List comments for a product, newest first (public).
    """
    return comment_service.list_comments(client, product_id)


@router.post(
    "/{product_id}/comments",
    response_model=CommentRead,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    product_id: uuid.UUID,
    payload: CommentCreate,
    client: Client = Depends(get_request_client),
    caller: Caller = Depends(require_auth),
):
    """
    Post a comment on a product as the authenticated user.
    """
    return comment_service.add_comment(client, caller, product_id, payload)


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    client: Client = Depends(get_request_client),
):
    """
    Create a new product (admin only).
    """
    return service.create_product(client, payload)


@router.patch(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    client: Client = Depends(get_request_client),
):
    """
    Update an existing product (admin only).
    """
    return service.update_product(client, product_id, payload)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    client: Client = Depends(get_request_client),
    admin_client: Client = Depends(get_admin_client),
):
    """
    Delete a product and its image (admin only).
    """
    service.delete_product(client, admin_client, product_id)
    return None


@router.post(
    "/{product_id}/image",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
    summary="Upload or replace the image of a product",
)
def upload_product_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    client: Client = Depends(get_request_client),
    admin_client: Client = Depends(get_admin_client),
):
    """
    Upload a new image for the product.

    - Accepts JPEG, PNG, WEBP.
    - Replaces (and deletes) any previous image.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = file.file.read()
    return service.set_image(
        client=client,
        admin_client=admin_client,
        product_id=product_id,
        content_type=file.content_type,
        file_bytes=file_bytes,
    )
