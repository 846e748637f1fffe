"""Daily tip lookup endpoints."""

from fastapi import APIRouter, Request

from core.ratelimit import READ_LIMIT, limiter
from core.store import StoreDep
from schemas import TipResponse
from services.tips_service import get_tip

router = APIRouter(prefix="/api/tips", tags=["tips"])


@router.get(
    "/{tip_id}",
    response_model=TipResponse,
    responses={404: {"description": "Tip not found or expired"}},
)
@limiter.limit(READ_LIMIT)
async def get_daily_tip(
    request: Request,
    tip_id: str,
    store: StoreDep,
) -> TipResponse:
    tip = await get_tip(store, tip_id)
    return TipResponse.model_validate(tip)
