"""Social frame handlers.

A frame is a small interactive card rendered by the social client. Each
button press posts back to ``/api/frame`` with the caller's fid and the
index of the pressed button:

1. Get Today's Tip
2. Mark as Done (records a completion for today's frame tip)
3. Get New Tip
"""

from datetime import datetime
from urllib.parse import urlencode

from core import get_logger, set_wide_event_fields
from core.config import get_settings
from core.store import KeyValueStore
from models import Experience, utcnow
from schemas import Frame, FrameButton, FrameInput, FrameResponse
from services.progress_service import record_and_refresh
from services.tips_service import create_daily_tip
from services.users_service import get_or_create_farcaster_user

logger = get_logger(__name__)

BUTTON_GET_TIP = 1
BUTTON_MARK_DONE = 2
BUTTON_NEW_TIP = 3


class FrameActionError(Exception):
    """Raised for a frame button index with no handler."""


def _frame_url() -> str:
    return f"{get_settings().app_url.rstrip('/')}/api/frame"


def _image_url(**params: str | int) -> str:
    url = f"{_frame_url()}/image"
    return f"{url}?{urlencode(params)}" if params else url


def _button(label: str) -> FrameButton:
    return FrameButton(label=label, target=_frame_url())


def frame_tip_id(fid: int, now: datetime | None = None) -> str:
    """Tip id for the fid's frame tip on the current day."""
    today = (now or utcnow()).astimezone(get_settings().streak_tz).date()
    return f"tip_{fid}_{today.isoformat()}"


def initial_frame() -> FrameResponse:
    return FrameResponse(
        frames=[
            Frame(
                image=_image_url(),
                buttons=[_button("Get Today's Tip 💡")],
                state={"action": "initial"},
            )
        ]
    )


async def _show_tip(
    store: KeyValueStore, fid: int, now: datetime | None
) -> FrameResponse:
    user = await get_or_create_farcaster_user(store, str(fid))
    tip = await create_daily_tip(
        store,
        user,
        experience=Experience.INTERMEDIATE,
        tip_id=frame_tip_id(fid, now),
    )
    return FrameResponse(
        frames=[
            Frame(
                image=_image_url(tipId=tip.tip_id),
                buttons=[_button("Mark as Done ✅"), _button("Get New Tip 🔄")],
                input=FrameInput(text="Optional notes..."),
                state={"tipId": tip.tip_id, "fid": fid, "action": "view"},
            )
        ]
    )


async def _mark_done(
    store: KeyValueStore, fid: int, notes: str | None, now: datetime | None
) -> FrameResponse:
    user = await get_or_create_farcaster_user(store, str(fid))
    _, stats = await record_and_refresh(
        store, user.user_id, frame_tip_id(fid, now), notes or None, now=now
    )
    return FrameResponse(
        frames=[
            Frame(
                image=_image_url(completed="true", streak=stats.current_streak),
                buttons=[_button("Get New Tip 🔄")],
                state={
                    "fid": fid,
                    "action": "completed",
                    "streak": stats.current_streak,
                },
            )
        ]
    )


async def handle_frame_action(
    store: KeyValueStore,
    fid: int,
    button_index: int,
    input_text: str | None = None,
    *,
    now: datetime | None = None,
) -> FrameResponse:
    """Dispatch a frame button press.

    Raises:
        FrameActionError: If ``button_index`` is not a known button.
    """
    set_wide_event_fields(frame_fid=fid, frame_button=button_index)

    if button_index in (BUTTON_GET_TIP, BUTTON_NEW_TIP):
        return await _show_tip(store, fid, now)
    if button_index == BUTTON_MARK_DONE:
        return await _mark_done(store, fid, input_text, now)

    logger.warning("frame.invalid_action", fid=fid, button_index=button_index)
    raise FrameActionError(f"Invalid frame action: {button_index}")
