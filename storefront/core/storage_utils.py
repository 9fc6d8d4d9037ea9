# storefront/core/storage_utils.py
import uuid

from fastapi import HTTPException, status

from storefront.core.config import get_settings
from storefront.core.supabase_client import supabase_admin

settings = get_settings()

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def _bucket():
    return supabase_admin().storage.from_(settings.STORAGE_BUCKET)


def validate_image(content_type: str | None, file_bytes: bytes) -> str:
    """
    Check an uploaded image and return the file extension to store it under.

    Raises:
        HTTPException(400): missing or unsupported content type, empty file.
        HTTPException(413): file larger than MAX_IMAGE_BYTES.
    """
    if not content_type or content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only images (jpeg, jpg, png, gif, webp) are allowed",
        )

    if not file_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )

    if len(file_bytes) > settings.MAX_IMAGE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Image too large (max {settings.MAX_IMAGE_BYTES // (1024 * 1024)}MB).",
        )

    return ALLOWED_IMAGE_CONTENT_TYPES[content_type]


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    If a file already exists at this path it is overwritten ('upsert').

    Args:
        path: Full object path inside the bucket.
              Example: "categories/3/image.png"
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.
    """
    bucket = _bucket()
    bucket.upload(
        path,
        file_bytes,
        {"upsert": "true", "content-type": content_type},
    )
    return bucket.get_public_url(path)


def delete_from_storage(path: str) -> None:
    """
    Delete a file from Supabase Storage by its object path.

    The Supabase Python client expects a list of paths.
    """
    _bucket().remove([path])


def extract_path_from_public_url(url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/assets/products/7/a.png
        -> 'products/7/a.png'
    """
    marker = f"/storage/v1/object/public/{settings.STORAGE_BUCKET}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker):].split("?", 1)[0]


def delete_public_url(url: str) -> None:
    """
    Delete a file by its public URL.
    No-op if the URL does not belong to this bucket.
    """
    path = extract_path_from_public_url(url)
    if path:
        delete_from_storage(path)


def generate_filename(ext: str) -> str:
    """
    Generate a random filename using UUID4, e.g. "<uuid4>.png".
    """
    return f"{uuid.uuid4()}.{ext}"
