"""Main FastAPI application for the Gallery API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from gallery_api.core.config import settings
from gallery_api.core.errors import ServiceError
from gallery_api.core.logging_config import setup_logging, get_logger
from gallery_api.db.session import init_models
from gallery_api.api.v1 import galleries, health, metrics
from gallery_api.api.middleware import RequestLoggingMiddleware, PrometheusMiddleware
from gallery_api.api.exception_handlers import (
    service_error_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)


# Initialize logging system (MUST be done before any logging calls)
setup_logging(debug=settings.is_debug_mode, json_logs=settings.use_json_logs)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: create the schema and report configuration."""
    logger.info(
        "application_startup",
        service=settings.SERVICE_NAME,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        debug_mode=settings.is_debug_mode,
        log_level=settings.LOG_LEVEL,
        admin_auth_enabled=settings.ADMIN_API_KEY is not None,
    )

    await init_models()

    if not settings.media_host_configured:
        logger.warning(
            "media_host_not_configured",
            detail="CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET "
                   "are required; every upload will fail",
        )

    yield

    logger.info("application_shutdown", graceful=True)


app = FastAPI(
    title=settings.SERVICE_NAME,
    description="Image gallery backend: galleries of images stored on a media host",
    version=settings.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Exception handlers (ServiceError is matched before its HTTPException base)
app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Middleware stack (first added is executed last)
app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(galleries.router)
app.include_router(health.router)
app.include_router(metrics.router)


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.VERSION,
        "description": "Image gallery backend",
        "documentation": "/docs",
        "health_check": "/api/v1/health/",
        "galleries": "/galleries",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gallery_api.main:app", host="0.0.0.0", port=8000)
