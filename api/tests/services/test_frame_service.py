"""Tests for frame_service: social frame button handling."""

import pytest

from core.store import MemoryStore
from repositories.tip_repository import TipRepository
from repositories.user_repository import UserRepository
from services.frame_service import (
    FrameActionError,
    frame_tip_id,
    handle_frame_action,
    initial_frame,
)
from services.progress_service import get_user_stats, list_records

pytestmark = pytest.mark.unit

FRAME_URL = "https://tips.example.com/api/frame"


class TestInitialFrame:
    def test_single_get_tip_button(self):
        frame = initial_frame().frames[0]

        assert frame.version == "vNext"
        assert frame.image == f"{FRAME_URL}/image"
        assert [b.label for b in frame.buttons] == ["Get Today's Tip 💡"]
        assert frame.buttons[0].target == FRAME_URL
        assert frame.state == {"action": "initial"}


class TestFrameTipId:
    def test_uses_calendar_day(self, now):
        assert frame_tip_id(42, now) == "tip_42_2026-01-23"


class TestHandleFrameAction:
    @pytest.mark.parametrize("button_index", [1, 3])
    async def test_get_tip_creates_user_and_tip(
        self, store: MemoryStore, now, button_index: int
    ):
        response = await handle_frame_action(store, 42, button_index, now=now)

        frame = response.frames[0]
        assert frame.state == {"tipId": "tip_42_2026-01-23", "fid": 42, "action": "view"}
        assert "tipId=tip_42_2026-01-23" in frame.image
        assert len(frame.buttons) == 2
        assert frame.input is not None

        assert await UserRepository(store).get_by_farcaster_id("42") is not None
        assert await TipRepository(store).get_by_id("tip_42_2026-01-23") is not None

    async def test_mark_done_records_completion(self, store: MemoryStore, now):
        await handle_frame_action(store, 42, 1, now=now)

        response = await handle_frame_action(store, 42, 2, "nailed it", now=now)

        frame = response.frames[0]
        assert frame.state["action"] == "completed"
        assert frame.state["streak"] == 1
        assert "completed=true" in frame.image

        records = await list_records(store, "farcaster_42")
        assert len(records) == 1
        assert records[0].tip_id == "tip_42_2026-01-23"
        assert records[0].notes == "nailed it"

        stats = await get_user_stats(store, "farcaster_42", now=now)
        assert stats.total_tips_completed == 1

    async def test_mark_done_without_prior_tip_creates_user(self, store: MemoryStore, now):
        response = await handle_frame_action(store, 7, 2, now=now)

        assert response.frames[0].state["streak"] == 1
        assert await UserRepository(store).get_by_id("farcaster_7") is not None

    async def test_blank_notes_are_dropped(self, store: MemoryStore, now):
        await handle_frame_action(store, 42, 2, "", now=now)

        records = await list_records(store, "farcaster_42")
        assert records[0].notes is None

    @pytest.mark.parametrize("button_index", [0, 4, -1])
    async def test_unknown_button_raises(self, store: MemoryStore, button_index: int):
        with pytest.raises(FrameActionError):
            await handle_frame_action(store, 42, button_index)
