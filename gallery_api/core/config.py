"""Application configuration using Pydantic Settings."""

import os
from typing import List, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from gallery_api import __version__


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Service Identity
    SERVICE_NAME: str = "gallery-api"
    VERSION: str = __version__
    ENVIRONMENT: str = "development"  # development, staging, production

    # Logging Configuration
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_JSON: bool = True    # JSON logs (prod) vs pretty console (dev)
    DEBUG: bool = False      # Enable debug mode features

    # Database (async SQLAlchemy URL)
    DATABASE_URL: str = f"sqlite+aiosqlite:///{os.path.join(os.getcwd(), 'gallery.db')}"

    # Media Host (Cloudinary)
    # Every upload fails at the media host when these are left empty.
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_UPLOAD_PRESET: str = "byp1g876"

    # Max concurrent media host calls issued by a single request
    MEDIA_UPLOAD_CONCURRENCY: int = 8

    # Request Constraints
    MAX_IMAGES_PER_REQUEST: int = 50
    MAX_UPLOAD_SIZE_MB: int = 10  # Applies to inline data: payloads
    ALLOWED_MIME_TYPES: List[str] = ["image/jpeg", "image/png", "image/webp", "image/gif"]

    # Admin access for mutating endpoints. Unset means writes are open.
    ADMIN_API_KEY: Optional[str] = None

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Require an async driver, the store is only ever used through AsyncSession."""
        if not v:
            raise ValueError("DATABASE_URL must not be empty")

        scheme = v.split("://", 1)[0]
        if "+" not in scheme:
            raise ValueError(
                f"DATABASE_URL must name an async driver (e.g. sqlite+aiosqlite, "
                f"postgresql+asyncpg), got '{scheme}'"
            )
        return v

    @field_validator('MEDIA_UPLOAD_CONCURRENCY', 'MAX_IMAGES_PER_REQUEST', 'MAX_UPLOAD_SIZE_MB')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Limit must be positive, got {v}")
        return v

    @field_validator('ADMIN_API_KEY')
    @classmethod
    def validate_admin_key(cls, v: Optional[str]) -> Optional[str]:
        # Treat an empty env var as "not configured"
        if v is None or not v.strip():
            return None
        return v

    @model_validator(mode='after')
    def validate_media_host_configuration(self):
        """Ensure an upload preset is always configured."""
        if not self.CLOUDINARY_UPLOAD_PRESET.strip():
            raise ValueError("CLOUDINARY_UPLOAD_PRESET must not be empty")
        return self

    @property
    def is_debug_mode(self) -> bool:
        """Check if application is in debug mode."""
        return self.DEBUG or self.LOG_LEVEL.upper() == "DEBUG"

    @property
    def use_json_logs(self) -> bool:
        """Determine if JSON logging should be used.

        In production, always use JSON logs.
        In development, allow override via LOG_JSON setting.
        """
        if self.ENVIRONMENT == "production":
            return True
        if self.DEBUG:
            return self.LOG_JSON
        return True

    @property
    def media_host_configured(self) -> bool:
        """True when all Cloudinary credentials are present."""
        return all((
            self.CLOUDINARY_CLOUD_NAME,
            self.CLOUDINARY_API_KEY,
            self.CLOUDINARY_API_SECRET,
        ))

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
