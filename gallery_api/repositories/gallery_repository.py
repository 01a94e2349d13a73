"""Repository for Gallery models."""

from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gallery_api.db.models import Gallery
from gallery_api.repositories.base import BaseRepository


class GalleryRepository(BaseRepository[Gallery]):
    """Repository for accessing gallery data."""

    def __init__(self, session: AsyncSession):
        super().__init__(Gallery, session)

    async def get_by_id(self, gallery_id: str) -> Optional[Gallery]:
        """Get gallery by id."""
        return await self.get(gallery_id)

    async def list_all(self) -> List[Gallery]:
        """All galleries, oldest first."""
        stmt = select(self.model).order_by(self.model.created_at, self.model.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_gallery(
        self,
        title: str,
        images: List[str],
        public_ids: Dict[str, str],
    ) -> Gallery:
        return await self.create(title=title, images=list(images), public_ids=dict(public_ids))

    async def replace_images(
        self,
        gallery: Gallery,
        images: List[str],
        public_ids: Dict[str, str],
    ) -> Gallery:
        """Persist a new image sequence.

        New list/dict objects are assigned so the JSON columns are marked dirty.
        """
        return await self.update(gallery, images=list(images), public_ids=dict(public_ids))
