"""Tests for social frame routes."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.integration


class TestFrameRoutes:
    async def test_initial_frame(self, client: AsyncClient):
        response = await client.get("/api/frame")

        assert response.status_code == 200
        frame = response.json()["frames"][0]
        assert frame["version"] == "vNext"
        assert frame["buttons"][0]["action"] == "post"
        assert "input" not in frame

    async def test_get_tip_then_mark_done(self, client: AsyncClient):
        tip = await client.post(
            "/api/frame", json={"untrustedData": {"fid": 99, "buttonIndex": 1}}
        )
        assert tip.status_code == 200
        assert tip.json()["frames"][0]["state"]["action"] == "view"

        done = await client.post(
            "/api/frame",
            json={"untrustedData": {"fid": 99, "buttonIndex": 2, "inputText": "ok"}},
        )
        assert done.json()["frames"][0]["state"]["streak"] == 1

        stats = await client.get("/api/users/farcaster_99/stats")
        assert stats.json()["total_tips_completed"] == 1

    async def test_unknown_button_returns_400(self, client: AsyncClient):
        response = await client.post(
            "/api/frame", json={"untrustedData": {"fid": 99, "buttonIndex": 9}}
        )

        assert response.status_code == 400
        assert "Invalid frame action" in response.json()["error"]

    async def test_missing_untrusted_data_returns_422(self, client: AsyncClient):
        response = await client.post("/api/frame", json={})

        assert response.status_code == 422
