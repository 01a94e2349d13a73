"""Media host abstraction layer."""

from functools import lru_cache

from gallery_api.core.config import settings
from .protocol import HostedImage, MediaHost, MediaHostError
from .cloudinary_host import CloudinaryMediaHost
from .identifiers import public_id_from_url


@lru_cache()
def get_media_host() -> MediaHost:
    """Factory function for the media host.

    Returns:
        MediaHost: Cloudinary host configured from settings
    """
    return CloudinaryMediaHost(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        upload_preset=settings.CLOUDINARY_UPLOAD_PRESET,
    )


__all__ = [
    "get_media_host",
    "MediaHost",
    "MediaHostError",
    "HostedImage",
    "CloudinaryMediaHost",
    "public_id_from_url",
]
