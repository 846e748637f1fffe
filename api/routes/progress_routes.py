"""Progress log and statistics endpoints."""

from fastapi import APIRouter, HTTPException, Request
from starlette import status

from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from core.store import StoreDep
from schemas import (
    CompletionRequest,
    CompletionResponse,
    ProgressLogListResponse,
    ProgressLogResponse,
    ProgressStats,
)
from services.progress_service import get_user_stats, list_records, record_and_refresh

router = APIRouter(prefix="/api/users/{user_id}", tags=["progress"])


@router.post(
    "/progress",
    response_model=CompletionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Blank user or tip id"}},
)
@limiter.limit(WRITE_LIMIT)
async def mark_complete(
    request: Request,
    user_id: str,
    body: CompletionRequest,
    store: StoreDep,
) -> CompletionResponse:
    """Record that the user completed a tip's actions.

    Every call appends a new record, so completing twice on one day yields
    two records that count once toward the streak.
    """
    try:
        record, stats = await record_and_refresh(
            store, user_id, body.tip_id, body.notes
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from e

    return CompletionResponse(
        record=ProgressLogResponse.model_validate(record),
        stats=stats,
    )


@router.get("/progress", response_model=ProgressLogListResponse)
@limiter.limit(READ_LIMIT)
async def get_progress(
    request: Request,
    user_id: str,
    store: StoreDep,
) -> ProgressLogListResponse:
    """List the user's progress records, most recent first."""
    records = await list_records(store, user_id)
    return ProgressLogListResponse(
        records=[ProgressLogResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.get("/stats", response_model=ProgressStats)
@limiter.limit(READ_LIMIT)
async def get_stats(
    request: Request,
    user_id: str,
    store: StoreDep,
) -> ProgressStats:
    """Streaks, totals and weekly progress computed from the full log."""
    return await get_user_stats(store, user_id)
