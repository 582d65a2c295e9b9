"""
Image upload endpoint.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from app.core.exceptions import InvalidImageError
from app.routers.deps import get_image_storage
from app.schemas.product import ImageUploadResponse
from app.services.image_storage import MAX_IMAGE_SIZE, ImageStorage

router = APIRouter(prefix="/images", tags=["Images"])


@router.post("/{folder}", response_model=ImageUploadResponse)
async def upload_image(
    folder: str,
    file: UploadFile = File(..., description="Image file (JPEG, PNG, WEBP or GIF, max 5MB)"),
    images: ImageStorage = Depends(get_image_storage),
):
    """
    Upload a product or business image and return its public URL.

    Args:
        folder: "products" or "businesses"

    Raises:
        InvalidImageError (400): Wrong type, too large, unreadable, or unknown folder
        ImageUploadError (502): The object store failed
    """
    if file.size is not None and file.size > MAX_IMAGE_SIZE:
        raise InvalidImageError("La imagen es demasiado grande. El tamaño máximo es 5MB")

    # One byte past the limit is enough for the size check to fail
    data = await file.read(MAX_IMAGE_SIZE + 1)
    url = await images.upload(data, file.filename or "image", file.content_type, folder)
    return ImageUploadResponse(url=url)
