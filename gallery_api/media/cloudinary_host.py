"""Cloudinary media host."""

import asyncio
from typing import Any, Dict

import cloudinary
import cloudinary.uploader

from gallery_api.core.logging_config import get_logger
from gallery_api.media.identifiers import is_data_uri
from gallery_api.media.protocol import HostedImage, MediaHostError


logger = get_logger(__name__)


class CloudinaryMediaHost:
    """Media host backed by Cloudinary.

    The Cloudinary SDK is synchronous, so each call runs in a worker thread
    to keep the event loop free while several uploads are in flight.

    Credentials are passed on every call instead of through the SDK's global
    ``cloudinary.config`` so several hosts can coexist (tests, multi-tenant).
    """

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        upload_preset: str,
    ):
        """Initialize Cloudinary media host.

        Args:
            cloud_name: Cloudinary cloud name
            api_key: API key
            api_secret: API secret
            upload_preset: Named upload preset applied to every upload
        """
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }

        logger.info(
            "cloudinary_media_host_initialized",
            cloud_name=cloud_name,
            upload_preset=upload_preset,
            credentials_present=all(self._credentials.values()),
        )

    def _handle_error(self, exc: Exception, operation: str, **context: Any) -> MediaHostError:
        """Log a failed SDK call and wrap it in MediaHostError."""
        logger.error(
            "cloudinary_operation_failed",
            operation=operation,
            cloud_name=self.cloud_name,
            error_type=type(exc).__name__,
            error=str(exc),
            **context,
        )
        return MediaHostError(operation, str(exc) or type(exc).__name__)

    async def upload(self, payload: str) -> HostedImage:
        """Upload a remote URL or data URI with the configured preset."""
        try:
            result: Dict[str, Any] = await asyncio.to_thread(
                cloudinary.uploader.upload,
                payload,
                upload_preset=self.upload_preset,
                **self._credentials,
            )
        except Exception as exc:
            raise self._handle_error(exc, "upload", payload_kind="data_uri" if is_data_uri(payload) else "url") from exc

        url = result.get("secure_url") or result.get("url")
        public_id = result.get("public_id")
        if not url or not public_id:
            raise MediaHostError("upload", "Cloudinary response is missing secure_url or public_id")

        logger.debug("cloudinary_upload_success", public_id=public_id, bytes=result.get("bytes"))
        return HostedImage(url=url, public_id=public_id)

    async def destroy(self, public_id: str) -> bool:
        """Delete an asset by public id; ``not found`` is reported as False."""
        try:
            result: Dict[str, Any] = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                invalidate=True,
                **self._credentials,
            )
        except Exception as exc:
            raise self._handle_error(exc, "destroy", public_id=public_id) from exc

        outcome = result.get("result")
        if outcome == "ok":
            logger.debug("cloudinary_destroy_success", public_id=public_id)
            return True
        if outcome == "not found":
            return False
        raise MediaHostError("destroy", f"Unexpected Cloudinary result: {outcome!r}")
