"""Social frame endpoints."""

from fastapi import APIRouter, Request

from core.ratelimit import WRITE_LIMIT, limiter
from core.store import StoreDep
from schemas import FrameActionRequest, FrameResponse
from services.frame_service import handle_frame_action, initial_frame

router = APIRouter(prefix="/api/frame", tags=["frame"])


@router.get("", response_model=FrameResponse, response_model_exclude_none=True)
async def get_frame() -> FrameResponse:
    return initial_frame()


@router.post(
    "",
    response_model=FrameResponse,
    response_model_exclude_none=True,
    responses={400: {"description": "Unknown button"}},
)
@limiter.limit(WRITE_LIMIT)
async def post_frame(
    request: Request,
    body: FrameActionRequest,
    store: StoreDep,
) -> FrameResponse:
    """Handle a frame button press."""
    data = body.untrusted_data
    return await handle_frame_action(
        store, data.fid, data.button_index, data.input_text
    )
