"""SQLAlchemy models for the application."""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import String, Integer, JSON, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from gallery_api.db.base import Base


def _new_gallery_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Gallery(Base):
    """A named, ordered collection of hosted image URLs."""
    __tablename__ = "galleries"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_gallery_id)
    title: Mapped[str] = mapped_column(String, nullable=False)

    # Display order is list order
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Hosted URL -> media host public id, recorded at upload time
    public_ids: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Row version for optimistic concurrency (UPDATE ... WHERE version = ?)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Set client-side: CURRENT_TIMESTAMP only has one-second resolution on
    # SQLite and List orders by creation time.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.current_timestamp(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.current_timestamp(),
        onupdate=_utcnow,
        nullable=False
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Gallery id={self.id!r} title={self.title!r} images={len(self.images or [])}>"
