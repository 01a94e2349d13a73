"""
Services package - Business Logic Layer

Contains all business logic separated from HTTP/API concerns.
"""
from gallery_api.services.gallery_service import GalleryService

__all__ = ["GalleryService"]
