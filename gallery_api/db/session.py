"""Database session management."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from gallery_api.core.config import settings
from gallery_api.db.base import Base
from gallery_api.core.logging_config import get_logger


logger = get_logger(__name__)

database_url = settings.DATABASE_URL

engine = create_async_engine(
    database_url,
    echo=settings.is_debug_mode,
    future=True,
    # SQLite specific args for concurrency
    connect_args={"check_same_thread": False} if "sqlite" in database_url else {}
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_models() -> None:
    """Create tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_schema_initialized", database_url=engine.url.render_as_string(hide_password=True))


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database session.

    The session is closed on every exit path, including errors raised by
    the request handler.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
