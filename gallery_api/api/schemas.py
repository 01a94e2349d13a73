"""Response models for the gallery endpoints.

Request bodies are read as raw JSON objects and validated by the service
layer, so malformed input maps to InvalidArgument (400) rather than 422.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class GalleryOut(BaseModel):
    """Public view of a gallery. Stored public ids are not exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    images: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GalleryResponse(BaseModel):
    message: str = "success"
    data: GalleryOut


class GalleryListResponse(BaseModel):
    message: str = "success"
    data: List[GalleryOut]
