"""Prometheus metric definitions."""

from prometheus_client import Counter, Gauge, Histogram, Info, REGISTRY

from gallery_api.core.config import settings


service_info = Info(
    'service',
    'Service information',
    registry=REGISTRY
)
service_info.info({
    'name': settings.SERVICE_NAME,
    'version': settings.VERSION,
    'environment': settings.ENVIRONMENT,
})


# HTTP Request Metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['service', 'method', 'endpoint', 'status'],
    registry=REGISTRY
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['service', 'method', 'endpoint'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=REGISTRY
)

http_requests_in_progress = Gauge(
    'http_requests_in_progress',
    'HTTP requests currently in progress',
    ['service', 'method'],
    registry=REGISTRY
)


# Gallery Metrics
gallery_operations_total = Counter(
    'gallery_operations_total',
    'Gallery mutations',
    ['service', 'operation', 'status'],  # operation: create, append, remove
    registry=REGISTRY
)


# Media Host Metrics
media_operations_total = Counter(
    'media_operations_total',
    'Total media host operations',
    ['service', 'operation', 'status'],  # operation: upload, destroy
    registry=REGISTRY
)

media_operation_duration_seconds = Histogram(
    'media_operation_duration_seconds',
    'Media host operation duration in seconds',
    ['service', 'operation'],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=REGISTRY
)


# Error Tracking Metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['service', 'error_type', 'endpoint'],
    registry=REGISTRY
)
