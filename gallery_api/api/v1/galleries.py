"""
Gallery API endpoints.

Router handles HTTP concerns (body parsing, status codes, envelopes);
GalleryService handles validation, media host calls and persistence.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from gallery_api.api.dependencies import get_gallery_service, json_object_body, require_admin
from gallery_api.api.schemas import GalleryListResponse, GalleryOut, GalleryResponse
from gallery_api.core.logging_config import get_logger
from gallery_api.services.gallery_service import GalleryService


logger = get_logger(__name__)
router = APIRouter(prefix="/galleries", tags=["galleries"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=GalleryResponse,
    dependencies=[Depends(require_admin)],
)
async def create_gallery(
    body: Dict[str, Any] = Depends(json_object_body),
    service: GalleryService = Depends(get_gallery_service),
):
    """Create a gallery from a title and a list of image payloads.

    Body: ``{"title": str, "images": [url-or-data-uri, ...]}``. Every
    payload is re-uploaded to the media host; the stored URLs are the
    hosted ones, in input order.

    Returns:
        201 with the created gallery

    Raises:
        ServiceError: 400 invalid title/images, 401 missing admin token,
            500 upload or store failure
    """
    images = body.get("images")
    logger.info(
        "gallery_create_request_received",
        title=body.get("title"),
        image_count=len(images) if isinstance(images, list) else None,
    )

    gallery = await service.create_gallery(body.get("title"), images)
    return GalleryResponse(data=GalleryOut.model_validate(gallery))


@router.get("", response_model=GalleryListResponse)
async def list_galleries(service: GalleryService = Depends(get_gallery_service)):
    """List every gallery. No pagination."""
    galleries = await service.list_galleries()
    return GalleryListResponse(data=[GalleryOut.model_validate(g) for g in galleries])


@router.get("/{gallery_id}", response_model=GalleryResponse)
async def get_gallery(gallery_id: str, service: GalleryService = Depends(get_gallery_service)):
    """Fetch one gallery.

    Raises:
        ServiceError: 404 if the gallery does not exist
    """
    gallery = await service.get_gallery(gallery_id)
    return GalleryResponse(data=GalleryOut.model_validate(gallery))


@router.patch(
    "/{gallery_id}/images",
    response_model=GalleryResponse,
    dependencies=[Depends(require_admin)],
)
async def append_images(
    gallery_id: str,
    body: Dict[str, Any] = Depends(json_object_body),
    service: GalleryService = Depends(get_gallery_service),
):
    """Upload new images and append them after the existing ones.

    Body: ``{"images": [url-or-data-uri, ...]}``.
    """
    gallery = await service.append_images(gallery_id, body.get("images"))
    return GalleryResponse(data=GalleryOut.model_validate(gallery))


@router.patch(
    "",
    response_model=GalleryResponse,
    dependencies=[Depends(require_admin)],
)
async def remove_images(
    body: Dict[str, Any] = Depends(json_object_body),
    service: GalleryService = Depends(get_gallery_service),
):
    """Remove images from a gallery and delete them from the media host.

    Body: ``{"galleryId": str, "imagesToDelete": [hosted-url, ...]}``.
    Media deletion is best-effort; the gallery is updated regardless.
    """
    gallery = await service.remove_images(body.get("galleryId"), body.get("imagesToDelete"))
    return GalleryResponse(
        message="Images deleted successfully",
        data=GalleryOut.model_validate(gallery),
    )
