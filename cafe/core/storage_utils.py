import uuid

from supabase import Client

from cafe.core.config import get_settings
from cafe.core.errors import StoreError

settings = get_settings()

BUCKET = settings.PRODUCT_IMAGES_BUCKET


def upload_to_storage(
    client: Client,
    path: str,
    file_bytes: bytes,
    content_type: str,
) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    Args:
        client: service-role client (uploads bypass storage RLS)
        path: object path inside the bucket, e.g. "<uuid>.png"
        file_bytes: file content
        content_type: MIME type stored with the object

    Raises:
        StoreError: if the upload fails.
    """
    try:
        client.storage.from_(BUCKET).upload(
            path, file_bytes, {"content-type": content_type}
        )
        return client.storage.from_(BUCKET).get_public_url(path)
    except Exception as exc:
        raise StoreError.from_exception(exc) from exc


def delete_from_storage(client: Client, path: str) -> None:
    """
    Delete a file from Supabase Storage by its object path.

    Raises:
        StoreError: if the delete fails.
    """
    try:
        client.storage.from_(BUCKET).remove([path])
    except Exception as exc:
        raise StoreError.from_exception(exc) from exc


def extract_path_from_public_url(url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/product-images/a.png
        -> 'a.png'
    """
    marker = f"/storage/v1/object/public/{BUCKET}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


def delete_public_url(client: Client, url: str) -> None:
    """
    Convenience helper: delete a file by its public URL.
    No-op if the URL does not belong to this bucket.
    """
    path = extract_path_from_public_url(url)
    if path:
        delete_from_storage(client, path)


def generate_filename(ext: str) -> str:
    """
    Generate a random filename using UUID4.

    Args:
        ext: File extension without dot (e.g. "png", "jpg")

    Returns:
        A filename like "<uuid4>.png"
    """
    return f"{uuid.uuid4()}.{ext}"
