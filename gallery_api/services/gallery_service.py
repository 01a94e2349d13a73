"""
Gallery Service Layer - Business Logic Orchestration

Every operation is a single linear flow:
validate -> call the media host -> read/write one gallery row -> return.

The service does NOT know about HTTP. It works with plain values and
raises ServiceError; the API layer turns those into responses.
"""
import asyncio
import time
from typing import Any, Dict, List, Sequence
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from gallery_api.core.config import settings
from gallery_api.core.errors import (
    ErrorCode,
    ServiceError,
    conflict_error,
    invalid_argument,
    media_error,
    not_found_error,
    store_error,
)
from gallery_api.core.logging_config import get_logger
from gallery_api.core.metrics import (
    gallery_operations_total,
    media_operation_duration_seconds,
    media_operations_total,
)
from gallery_api.db.models import Gallery
from gallery_api.media.identifiers import is_data_uri, parse_data_uri, public_id_from_url
from gallery_api.media.protocol import HostedImage, MediaHost
from gallery_api.repositories.gallery_repository import GalleryRepository

logger = get_logger(__name__)


# ============================================================================
# Input validation
# ============================================================================


def validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise invalid_argument(ErrorCode.VAL_INVALID_TITLE, "Invalid title")
    return title


def validate_gallery_id(gallery_id: Any) -> str:
    if not isinstance(gallery_id, str) or not gallery_id.strip():
        raise invalid_argument(ErrorCode.VAL_INVALID_GALLERY_ID, "Invalid gallery Id")
    return gallery_id


def _validate_string_list(values: Any, message: str) -> List[str]:
    """Shared shape check: a non-empty list of non-empty strings."""
    if not isinstance(values, list) or len(values) == 0:
        raise invalid_argument(ErrorCode.VAL_INVALID_IMAGES, message)

    for index, value in enumerate(values):
        if not isinstance(value, str) or not value.strip():
            raise invalid_argument(
                ErrorCode.VAL_INVALID_IMAGES,
                "Every image must be a non-empty string",
                details={"index": index},
            )
    return values


def validate_image_payloads(images: Any) -> List[str]:
    """Check raw image payloads before anything is uploaded.

    A payload is either an http(s) URL or an inline ``data:`` URI of an
    allowed image type. Anything else would be read by the media SDK as a
    local file path, so it is rejected here. The per-request count cap
    applies to uploads only.
    """
    payloads = _validate_string_list(images, "At least one valid image URL is required")

    if len(payloads) > settings.MAX_IMAGES_PER_REQUEST:
        raise invalid_argument(
            ErrorCode.VAL_INVALID_IMAGES,
            f"Too many images. Maximum {settings.MAX_IMAGES_PER_REQUEST} per request",
            details={"max_images": settings.MAX_IMAGES_PER_REQUEST, "received": len(payloads)},
        )

    for index, payload in enumerate(payloads):
        if is_data_uri(payload):
            parsed = parse_data_uri(payload)
            if parsed is None:
                raise invalid_argument(
                    ErrorCode.VAL_INVALID_IMAGES,
                    "Malformed inline image data",
                    details={"index": index},
                )
            mime, size = parsed
            if mime not in settings.ALLOWED_MIME_TYPES:
                raise invalid_argument(
                    ErrorCode.VAL_INVALID_IMAGES,
                    f"Unsupported file type: {mime}. Allowed: {', '.join(settings.ALLOWED_MIME_TYPES)}",
                    details={"index": index, "mime_type": mime},
                )
            if size > settings.max_upload_size_bytes:
                raise invalid_argument(
                    ErrorCode.VAL_INVALID_IMAGES,
                    f"File too large. Maximum allowed: {settings.MAX_UPLOAD_SIZE_MB}MB",
                    details={"index": index, "size_bytes": size},
                )
        elif urlparse(payload).scheme.lower() not in ("http", "https"):
            raise invalid_argument(
                ErrorCode.VAL_INVALID_IMAGES,
                "Images must be http(s) URLs or data URIs",
                details={"index": index},
            )

    return payloads


def validate_urls_to_delete(urls: Any) -> List[str]:
    return _validate_string_list(urls, "At least one image URL to delete is required")


def remove_urls(images: Sequence[str], urls_to_delete: Sequence[str]) -> List[str]:
    """Drop every occurrence of every targeted URL, keeping the order of the rest."""
    targets = set(urls_to_delete)
    return [image for image in images if image not in targets]


# ============================================================================
# Service
# ============================================================================


class GalleryService:
    """
    Orchestrates the media host and the gallery store.

    Responsibilities:
    - Validate raw request values before touching any collaborator
    - Fan out uploads/deletes concurrently and wait for all of them
    - Persist exactly one gallery row per operation
    - Translate collaborator failures into ServiceError
    """

    def __init__(self, session: AsyncSession, media_host: MediaHost):
        self.session = session
        self.media_host = media_host
        self.repository = GalleryRepository(session)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_galleries(self) -> List[Gallery]:
        try:
            return await self.repository.list_all()
        except SQLAlchemyError as e:
            logger.error("gallery_list_failed", error=str(e))
            raise store_error(
                code=ErrorCode.STORE_OPERATION_FAILED,
                message="An error occurred while fetching data",
                details={"error": str(e)},
            )

    async def get_gallery(self, gallery_id: Any) -> Gallery:
        """Fetch one gallery.

        Raises:
            ServiceError: 400 for a blank id, 404 if no gallery has that id
        """
        gallery_id = validate_gallery_id(gallery_id)
        return await self._load(gallery_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_gallery(self, title: Any, images: Any) -> Gallery:
        """
        Upload every payload and store a new gallery.

        Flow:
        1. Validate title and payloads
        2. Upload all payloads concurrently (all-or-nothing)
        3. Insert one gallery row with the hosted URLs in input order

        An upload failure aborts before the insert. Assets that did upload
        are not cleaned up.

        Returns:
            The created Gallery

        Raises:
            ServiceError: InvalidArgument (400), UploadFailure/StoreFailure (500)
        """
        title = validate_title(title)
        payloads = validate_image_payloads(images)

        logger.info("gallery_create_started", title=title, image_count=len(payloads))

        hosted = await self._upload_all(payloads, operation="create")

        try:
            gallery = await self.repository.create_gallery(
                title=title,
                images=[image.url for image in hosted],
                public_ids={image.url: image.public_id for image in hosted},
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            gallery_operations_total.labels(
                service=settings.SERVICE_NAME, operation="create", status="failed"
            ).inc()
            logger.error("gallery_persist_failed", operation="create", error=str(e))
            raise store_error(
                code=ErrorCode.STORE_OPERATION_FAILED,
                message="Could not save gallery",
                details={"error": str(e)},
            )

        gallery_operations_total.labels(
            service=settings.SERVICE_NAME, operation="create", status="success"
        ).inc()
        logger.info("gallery_created", gallery_id=gallery.id, image_count=len(gallery.images))
        return gallery

    async def append_images(self, gallery_id: Any, images: Any) -> Gallery:
        """
        Upload new payloads and append their URLs after the existing ones.

        The gallery must exist before anything is uploaded. No deduplication
        against existing entries is performed.
        """
        gallery_id = validate_gallery_id(gallery_id)
        payloads = validate_image_payloads(images)

        gallery = await self._load(gallery_id)

        logger.info(
            "gallery_append_started",
            gallery_id=gallery_id,
            existing_count=len(gallery.images),
            new_count=len(payloads),
        )

        hosted = await self._upload_all(payloads, operation="append")

        public_ids = dict(gallery.public_ids or {})
        public_ids.update({image.url: image.public_id for image in hosted})

        gallery = await self._save(
            gallery,
            images=[*gallery.images, *(image.url for image in hosted)],
            public_ids=public_ids,
            operation="append",
        )

        logger.info("gallery_images_appended", gallery_id=gallery_id, image_count=len(gallery.images))
        return gallery

    async def remove_images(self, gallery_id: Any, urls_to_delete: Any) -> Gallery:
        """
        Remove URLs from a gallery and delete their hosted assets.

        Asset deletion is best-effort: failures are logged and never block
        persisting the new image list, which may end up empty.
        """
        gallery_id = validate_gallery_id(gallery_id)
        targets = list(dict.fromkeys(validate_urls_to_delete(urls_to_delete)))

        gallery = await self._load(gallery_id)

        remaining = remove_urls(gallery.images, targets)
        known_ids = dict(gallery.public_ids or {})

        logger.info(
            "gallery_remove_started",
            gallery_id=gallery_id,
            targeted=len(targets),
            removed=len(gallery.images) - len(remaining),
        )

        await self._destroy_all(
            [known_ids.get(url) or public_id_from_url(url) for url in targets],
            gallery_id=gallery_id,
        )

        gallery = await self._save(
            gallery,
            images=remaining,
            public_ids={url: pid for url, pid in known_ids.items() if url in remaining},
            operation="remove",
        )

        logger.info("gallery_images_removed", gallery_id=gallery_id, image_count=len(gallery.images))
        return gallery

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------

    async def _load(self, gallery_id: str) -> Gallery:
        try:
            gallery = await self.repository.get_by_id(gallery_id)
        except SQLAlchemyError as e:
            logger.error("gallery_load_failed", gallery_id=gallery_id, error=str(e))
            raise store_error(
                code=ErrorCode.STORE_OPERATION_FAILED,
                message="An error occurred while fetching data",
                details={"error": str(e)},
            )

        if gallery is None:
            logger.warning("gallery_not_found", gallery_id=gallery_id)
            raise not_found_error(
                code=ErrorCode.GALLERY_NOT_FOUND,
                message="Gallery not found",
                details={"gallery_id": gallery_id},
            )
        return gallery

    async def _save(
        self,
        gallery: Gallery,
        images: List[str],
        public_ids: Dict[str, str],
        operation: str,
    ) -> Gallery:
        gallery_id = gallery.id
        try:
            gallery = await self.repository.replace_images(gallery, images, public_ids)
            await self.session.commit()
        except StaleDataError:
            # Another request updated the row after we read it
            await self.session.rollback()
            gallery_operations_total.labels(
                service=settings.SERVICE_NAME, operation=operation, status="conflict"
            ).inc()
            logger.warning("gallery_update_conflict", gallery_id=gallery_id, operation=operation)
            raise conflict_error(
                code=ErrorCode.GALLERY_CONFLICT,
                message="Gallery was modified by another request, reload and retry",
                details={"gallery_id": gallery_id},
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            gallery_operations_total.labels(
                service=settings.SERVICE_NAME, operation=operation, status="failed"
            ).inc()
            logger.error("gallery_persist_failed", gallery_id=gallery_id, operation=operation, error=str(e))
            raise store_error(
                code=ErrorCode.STORE_OPERATION_FAILED,
                message="Could not save gallery",
                details={"gallery_id": gallery_id, "error": str(e)},
            )

        gallery_operations_total.labels(
            service=settings.SERVICE_NAME, operation=operation, status="success"
        ).inc()
        return gallery

    # ------------------------------------------------------------------
    # Media host helpers
    # ------------------------------------------------------------------

    async def _upload_all(self, payloads: List[str], operation: str) -> List[HostedImage]:
        """Upload concurrently; results keep input order, any failure fails all."""
        semaphore = asyncio.Semaphore(settings.MEDIA_UPLOAD_CONCURRENCY)

        async def upload_one(index: int, payload: str) -> HostedImage:
            async with semaphore:
                start = time.perf_counter()
                try:
                    hosted = await self.media_host.upload(payload)
                except Exception as e:
                    media_operations_total.labels(
                        service=settings.SERVICE_NAME, operation="upload", status="failed"
                    ).inc()
                    logger.error("media_upload_failed", index=index, error_type=type(e).__name__, error=str(e))
                    raise
                finally:
                    media_operation_duration_seconds.labels(
                        service=settings.SERVICE_NAME, operation="upload"
                    ).observe(time.perf_counter() - start)

                media_operations_total.labels(
                    service=settings.SERVICE_NAME, operation="upload", status="success"
                ).inc()
                return hosted

        try:
            return list(await asyncio.gather(*(upload_one(i, p) for i, p in enumerate(payloads))))
        except ServiceError:
            raise
        except Exception as e:
            gallery_operations_total.labels(
                service=settings.SERVICE_NAME, operation=operation, status="failed"
            ).inc()
            raise media_error(
                code=ErrorCode.MEDIA_UPLOAD_FAILED,
                message="Failed to upload image to media host",
                details={"error": str(e)},
            ) from e

    async def _destroy_all(self, public_ids: List[str], gallery_id: str) -> None:
        """Best-effort concurrent deletion; never raises."""
        semaphore = asyncio.Semaphore(settings.MEDIA_UPLOAD_CONCURRENCY)

        async def destroy_one(public_id: str) -> None:
            async with semaphore:
                start = time.perf_counter()
                try:
                    deleted = await self.media_host.destroy(public_id)
                except Exception as e:
                    media_operations_total.labels(
                        service=settings.SERVICE_NAME, operation="destroy", status="failed"
                    ).inc()
                    logger.warning(
                        "media_destroy_failed",
                        gallery_id=gallery_id,
                        public_id=public_id,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    return
                finally:
                    media_operation_duration_seconds.labels(
                        service=settings.SERVICE_NAME, operation="destroy"
                    ).observe(time.perf_counter() - start)

            if deleted:
                media_operations_total.labels(
                    service=settings.SERVICE_NAME, operation="destroy", status="success"
                ).inc()
            else:
                media_operations_total.labels(
                    service=settings.SERVICE_NAME, operation="destroy", status="not_found"
                ).inc()
                logger.warning("media_asset_not_found", gallery_id=gallery_id, public_id=public_id)

        await asyncio.gather(*(destroy_one(pid) for pid in public_ids))
