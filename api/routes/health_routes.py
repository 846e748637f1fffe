"""Health check endpoints."""

from fastapi import APIRouter, HTTPException, Request
from starlette import status

from core.ratelimit import limiter
from core.store import StoreDep, StoreUnavailableError, check_store_connection
from schemas import HealthResponse

SERVICE_NAME = "daily-tips-api"

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", service=SERVICE_NAME)


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={
        503: {
            "description": "Service unavailable - store unreachable",
            "content": {
                "application/json": {"example": {"detail": "Store unavailable"}}
            },
        }
    },
)
@limiter.limit("30/minute")
async def ready(request: Request, store: StoreDep) -> HealthResponse:
    """Readiness endpoint.

    Returns 200 only when the key-value store answers a ping.
    """
    try:
        await check_store_connection(store)
    except StoreUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Store unavailable",
        ) from e

    return HealthResponse(status="ready", service=SERVICE_NAME)
