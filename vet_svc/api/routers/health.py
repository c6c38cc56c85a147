"""
Health, readiness, and metrics endpoints for operational visibility.

This module provides:
- /health: Liveness probe (is the app running?)
- /ready: Readiness probe (is the active store reachable?)
- /metrics: Prometheus-compatible metrics
- /metrics/json: The same counters as JSON

No authentication is required (internal/infrastructure use).
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from core.dependencies import get_record_repository
from core.exceptions import VetServiceError
from core.middleware import get_metrics_collector
from repositories import RecordRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health & Observability"])

SERVICE_NAME = "Vet Clinic Record Service"
SERVICE_VERSION = "1.0.0"


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for /health endpoint."""
    status: str  # "healthy"
    version: str
    timestamp: str  # ISO 8601 UTC


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str  # "ok" or "unavailable"
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class ReadyResponse(BaseModel):
    """Response model for /ready endpoint."""
    status: str  # "ready" or "not_ready"
    backend: str
    dependencies: List[DependencyStatus]
    timestamp: str


class MetricsResponse(BaseModel):
    """Response model for JSON metrics endpoint."""
    backend: str
    http_requests_total: int
    http_requests_2xx_total: int
    http_requests_4xx_total: int
    http_requests_5xx_total: int
    http_request_errors_by_type: Dict[str, int] = Field(default_factory=dict)
    http_request_duration_ms_p50: float
    http_request_duration_ms_p95: float
    http_request_duration_ms_p99: float


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# HEALTH ENDPOINT (LIVENESS)
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Returns immediately without touching the store."
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=SERVICE_VERSION,
        timestamp=_timestamp()
    )


# =============================================================================
# READINESS ENDPOINT
# =============================================================================

def _check_store(repository: RecordRepository) -> DependencyStatus:
    """
    Ping the active store.

    A failed ping leaves the connection manager DISCONNECTED, so the next
    probe tries to connect again.
    """
    start = time.perf_counter()
    try:
        repository.ping()
    except VetServiceError as e:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.error(
            "Store readiness check failed",
            extra={"backend": repository.backend, "error": e.detail}
        )
        return DependencyStatus(
            name=repository.backend,
            status="unavailable",
            latency_ms=round(latency_ms, 2),
            message=e.detail
        )

    latency_ms = (time.perf_counter() - start) * 1000
    return DependencyStatus(
        name=repository.backend,
        status="ok",
        latency_ms=round(latency_ms, 2),
        message="Store reachable"
    )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Checks that the configured store (SQLite or MongoDB) answers. Returns 503 if not."
)
def readiness_check(
    response: Response,
    repository: RecordRepository = Depends(get_record_repository)
) -> ReadyResponse:
    store_status = _check_store(repository)

    if store_status.status == "ok":
        status = "ready"
    else:
        status = "not_ready"
        response.status_code = 503

    return ReadyResponse(
        status=status,
        backend=repository.backend,
        dependencies=[store_status],
        timestamp=_timestamp()
    )


# =============================================================================
# METRICS ENDPOINTS
# =============================================================================

@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="HTTP request counts and latency percentiles in Prometheus text format."
)
async def get_metrics() -> Response:
    """
    Export metrics in Prometheus text format.

    Scrape configuration (prometheus.yml):
        scrape_configs:
          - job_name: 'vet-svc'
            static_configs:
              - targets: ['localhost:3002']
            metrics_path: /metrics
    """
    collector = get_metrics_collector()
    return Response(
        content=collector.get_prometheus_format(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get(
    "/metrics/json",
    response_model=MetricsResponse,
    summary="JSON metrics",
)
async def get_metrics_json() -> MetricsResponse:
    return MetricsResponse(**get_metrics_collector().get_summary())


# =============================================================================
# ROOT ENDPOINT
# =============================================================================

@router.get("/", summary="API root")
async def root() -> Dict[str, Any]:
    """Service name, version, and links to documentation."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
        "metrics": "/metrics"
    }
