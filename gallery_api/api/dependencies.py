"""FastAPI dependencies for request parsing, admin access, and services."""

import json
import secrets
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from gallery_api.core.config import settings
from gallery_api.core.errors import ErrorCode, auth_error, invalid_argument
from gallery_api.core.logging_config import get_logger
from gallery_api.db.session import get_session
from gallery_api.media import MediaHost, get_media_host
from gallery_api.services.gallery_service import GalleryService


security = HTTPBearer(auto_error=False)
logger = get_logger(__name__)


async def json_object_body(request: Request) -> Dict[str, Any]:
    """Parse the request body as a JSON object.

    Raises:
        ServiceError: 400 if the body is not valid JSON or not an object
    """
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("request_body_invalid_json", path=request.url.path, error=str(e))
        raise invalid_argument(ErrorCode.VAL_MALFORMED_BODY, "Request body must be valid JSON")

    if not isinstance(body, dict):
        raise invalid_argument(ErrorCode.VAL_MALFORMED_BODY, "Request body must be a JSON object")
    return body


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """Guard for mutating endpoints.

    When ADMIN_API_KEY is configured the request must carry it as a Bearer
    token. Without a configured key the check is disabled.

    Raises:
        ServiceError: 401 if the token is missing or wrong
    """
    expected = settings.ADMIN_API_KEY
    if expected is None:
        return

    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("admin_auth_failed", token_present=credentials is not None)
        raise auth_error(ErrorCode.AUTH_INVALID_TOKEN, "Not authenticated")


def get_gallery_service(
    session: AsyncSession = Depends(get_session),
    media_host: MediaHost = Depends(get_media_host),
) -> GalleryService:
    """Dependency provider for GalleryService.

    One service per request, bound to the request's database session.
    """
    return GalleryService(session=session, media_host=media_host)
