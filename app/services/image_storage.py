"""
Image Storage Service.
Validates, uploads and releases product and business images.

Two backends share the same interface: a local media directory served by the
app itself, and a Supabase Storage bucket reached over its REST API.
"""

import io
import logging
import os
import re
import secrets
import time
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx
from fastapi.concurrency import run_in_threadpool
from PIL import Image, UnidentifiedImageError

from app.core.exceptions import ImageUploadError, InvalidImageError

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB
ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif")
IMAGE_FOLDERS = ("products", "businesses")
CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}
_EXTENSION = re.compile(r"^[a-z0-9]{1,5}$")


def validate_image(filename: str, content_type: Optional[str], data: bytes) -> None:
    """
    Check an image before it is uploaded.

    Raises:
        InvalidImageError: wrong type, too large, or not decodable as an image
    """
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidImageError(
            "Tipo de archivo no válido. Solo se permiten imágenes (JPEG, PNG, WEBP, GIF)"
        )

    if len(data) > MAX_IMAGE_SIZE:
        raise InvalidImageError("La imagen es demasiado grande. El tamaño máximo es 5MB")

    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.warning(f"Rejected unreadable image '{filename}': {e}")
        raise InvalidImageError("El archivo no es una imagen válida")


def build_object_path(folder: str, filename: str, content_type: Optional[str] = None) -> str:
    """
    Unique object name: {folder}/{ms}-{random}.{ext}

    The extension comes from the filename only when it is short and
    alphanumeric; otherwise it follows the content type.
    """
    if folder not in IMAGE_FOLDERS:
        raise InvalidImageError(f"Carpeta de imágenes no válida: {folder}")
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if not _EXTENSION.match(ext):
        ext = CONTENT_TYPE_EXTENSIONS.get(content_type, "bin")
    return f"{folder}/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{ext}"


def object_path_from_url(public_url: str, bucket: str) -> Optional[str]:
    """Object path inside the bucket, or None when the URL points elsewhere"""
    try:
        parts = urlparse(public_url).path.split("/")
    except ValueError:
        return None
    if bucket not in parts:
        return None
    path = "/".join(parts[parts.index(bucket) + 1:])
    return path or None


class ImageStorage:
    """Interface shared by the storage backends"""

    bucket: str

    async def upload(self, data: bytes, filename: str, content_type: str, folder: str) -> str:
        """Store the image and return its public URL"""
        raise NotImplementedError

    async def delete(self, public_url: str) -> None:
        """Release an image. Best effort: errors are logged, never raised."""
        raise NotImplementedError


class LocalImageStorage(ImageStorage):
    """Stores images under MEDIA_ROOT/<bucket>/ and serves them from MEDIA_URL"""

    def __init__(self, media_root: str, media_url: str, bucket: str = "marketplace-images"):
        self.root = Path(media_root)
        self.media_url = media_url.rstrip("/")
        self.bucket = bucket

    async def upload(self, data: bytes, filename: str, content_type: str, folder: str) -> str:
        await run_in_threadpool(validate_image, filename, content_type, data)
        object_path = build_object_path(folder, filename, content_type)
        target = self.root / self.bucket / object_path

        def write():
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "xb") as f:
                f.write(data)

        try:
            await run_in_threadpool(write)
        except OSError as e:
            logger.error(f"Error uploading image: {e}")
            raise ImageUploadError(f"Error al subir la imagen: {e}") from e

        return f"{self.media_url}/{self.bucket}/{object_path}"

    async def delete(self, public_url: str) -> None:
        object_path = object_path_from_url(public_url, self.bucket)
        if not object_path:
            logger.warning("Image URL does not belong to our bucket, skipping deletion")
            return

        target = (self.root / self.bucket / object_path).resolve()
        bucket_root = (self.root / self.bucket).resolve()
        if bucket_root not in target.parents:
            logger.warning(f"Refusing to delete image outside the bucket: {public_url}")
            return

        try:
            await run_in_threadpool(os.remove, target)
        except FileNotFoundError:
            logger.warning(f"Image already gone: {public_url}")
        except OSError as e:
            logger.error(f"Error deleting image: {e}")


class SupabaseImageStorage(ImageStorage):
    """Stores images in a Supabase Storage bucket"""

    def __init__(self, base_url: str, api_key: str, bucket: str = "marketplace-images", timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.bucket = bucket
        self.timeout = timeout

    @property
    def _headers(self):
        return {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key,
        }

    def public_url(self, object_path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{object_path}"

    async def upload(self, data: bytes, filename: str, content_type: str, folder: str) -> str:
        await run_in_threadpool(validate_image, filename, content_type, data)
        object_path = build_object_path(folder, filename, content_type)
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{object_path}"
        headers = {
            **self._headers,
            "Content-Type": content_type,
            "Cache-Control": "3600",
            "x-upsert": "false",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, content=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Error uploading image: {e}")
            raise ImageUploadError(f"Error al subir la imagen: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Error uploading image: {response.status_code} {response.text}")
            raise ImageUploadError(f"Error al subir la imagen: {response.text}")

        return self.public_url(object_path)

    async def delete(self, public_url: str) -> None:
        object_path = object_path_from_url(public_url, self.bucket)
        if not object_path:
            logger.warning("Image URL does not belong to our bucket, skipping deletion")
            return

        url = f"{self.base_url}/storage/v1/object/{self.bucket}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    "DELETE", url, json={"prefixes": [object_path]}, headers=self._headers
                )
            if response.status_code >= 400:
                logger.error(f"Error deleting image: {response.status_code} {response.text}")
        except httpx.HTTPError as e:
            logger.error(f"Error deleting image: {e}")


def build_image_storage(settings) -> ImageStorage:
    """Pick the backend configured by IMAGE_BACKEND"""
    if settings.IMAGE_BACKEND == "supabase":
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY are required for the supabase image backend")
        return SupabaseImageStorage(settings.SUPABASE_URL, settings.SUPABASE_KEY, settings.STORAGE_BUCKET)
    return LocalImageStorage(settings.MEDIA_ROOT, settings.MEDIA_URL, settings.STORAGE_BUCKET)
