"""System endpoints for health checks."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends  # type: ignore[import-untyped]

from time_ledger import __version__
from time_ledger.api.dependencies import get_service
from time_ledger.api.models import HealthResponse
from time_ledger.service import TimeLedgerService

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(service: TimeLedgerService = Depends(get_service)) -> HealthResponse:
    """Health check endpoint.

    Note:
        This endpoint is public (no authentication required).
        Use this for monitoring and load balancer health checks.

    Example:
        >>> GET /api/v1/health
        {
            "status": "healthy",
            "timestamp": "2025-11-16T10:30:00Z",
            "version": "0.3.0",
            "storage": "open"
        }
    """
    storage_open = service.storage.is_open
    return HealthResponse(
        status="healthy" if storage_open else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        storage="open" if storage_open else "closed",
    )
