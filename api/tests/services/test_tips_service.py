"""Tests for tips_service.

Tests cover:
- Fallback catalog lookup and the generic default
- Gemini generation with a mocked client
- Fallback on Gemini failures (bad output, API errors, open circuit)
- create_daily_tip persistence and get_tip lookups
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from circuitbreaker import CircuitBreakerError

from core.store import MemoryStore
from models import Experience
from repositories.tip_repository import TipRepository
from services.tips_service import (
    FALLBACK_TIPS,
    TipGenerationError,
    TipNotFoundError,
    _parse_tip,
    create_daily_tip,
    fallback_tip,
    generate_personalized_tip,
    generate_tip_id,
    get_gemini_client,
    get_tip,
)
from tests.factories import UserFactory, save_tip

pytestmark = pytest.mark.unit


def _gemini_settings() -> MagicMock:
    settings = MagicMock()
    settings.use_tip_generation = True
    settings.gemini_model = "gemini-2.0-flash"
    settings.google_api_key = "test-key"
    settings.tip_generation_timeout_seconds = 5
    return settings


def _mock_client(text: str | None) -> MagicMock:
    response = MagicMock()
    response.text = text
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response)
    return client


class TestFallbackTip:
    @pytest.mark.parametrize("niche", ["crypto-dev", "public-speaking"])
    @pytest.mark.parametrize("experience", list(Experience))
    def test_catalog_covers_known_niches(self, niche: str, experience: Experience):
        tip = fallback_tip("Get better", niche, experience)

        assert tip == FALLBACK_TIPS[(niche, experience)]
        assert len(tip.action_items) == 2

    def test_accepts_experience_as_string(self):
        tip = fallback_tip("Get better", "crypto-dev", "advanced")

        assert tip == FALLBACK_TIPS[("crypto-dev", Experience.ADVANCED)]

    def test_unknown_niche_echoes_goal(self):
        tip = fallback_tip("Run a marathon", "fitness", Experience.BEGINNER)

        assert '"Run a marathon"' in tip.content
        assert len(tip.action_items) == 2

    def test_unknown_experience_echoes_goal(self):
        tip = fallback_tip("Speak clearly", "public-speaking", "expert")

        assert '"Speak clearly"' in tip.content


class TestTipIds:
    def test_format(self):
        tip_id = generate_tip_id()

        prefix, millis, suffix = tip_id.split("_")
        assert prefix == "tip"
        assert millis.isdigit()
        assert len(suffix) == 9
        assert suffix.isalnum() and suffix == suffix.lower()

    def test_unique(self):
        assert len({generate_tip_id() for _ in range(100)}) == 100


class TestParseTip:
    def test_valid_json(self):
        tip = _parse_tip(json.dumps({"content": "Do it", "action_items": ["a", "b"]}))

        assert tip.content == "Do it"
        assert tip.action_items == ["a", "b"]

    @pytest.mark.parametrize(
        "text",
        [None, "", "not json", '{"content": "x"}', '{"content": " ", "action_items": ["a"]}'],
        ids=["none", "empty", "not_json", "missing_items", "blank_content"],
    )
    def test_unusable_output(self, text):
        with pytest.raises(TipGenerationError):
            _parse_tip(text)


class TestGetGeminiClient:
    async def test_raises_without_api_key(self):
        import services.tips_service as svc

        svc._client = None

        with patch("services.tips_service.get_settings") as mock_settings:
            mock_settings.return_value.google_api_key = ""

            with pytest.raises(ValueError, match="GOOGLE_API_KEY"):
                await get_gemini_client()

    async def test_creates_client_once(self):
        import services.tips_service as svc

        svc._client = None

        with patch("services.tips_service.get_settings") as mock_settings:
            mock_settings.return_value.google_api_key = "test-api-key"
            with patch("services.tips_service.genai.Client") as mock_client_class:
                first = await get_gemini_client()
                second = await get_gemini_client()

        assert first is second
        mock_client_class.assert_called_once_with(api_key="test-api-key")
        svc._client = None


class TestGeneratePersonalizedTip:
    async def test_uses_catalog_when_generation_disabled(self):
        with patch("services.tips_service.get_gemini_client") as mock_get_client:
            tip = await generate_personalized_tip("Goal", "crypto-dev", Experience.BEGINNER)

        assert tip == FALLBACK_TIPS[("crypto-dev", Experience.BEGINNER)]
        mock_get_client.assert_not_called()

    async def test_returns_gemini_tip(self):
        client = _mock_client(
            json.dumps({"content": "Write one test", "action_items": ["a", "b"]})
        )

        with (
            patch("services.tips_service.get_settings", return_value=_gemini_settings()),
            patch("services.tips_service.get_gemini_client", return_value=client),
        ):
            tip = await generate_personalized_tip("Ship code", "web-development", "beginner")

        assert tip.content == "Write one test"
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.0-flash"
        assert "Ship code" in kwargs["contents"]

    async def test_falls_back_on_unusable_output(self):
        client = _mock_client("I am not JSON")

        with (
            patch("services.tips_service.get_settings", return_value=_gemini_settings()),
            patch("services.tips_service.get_gemini_client", return_value=client),
        ):
            tip = await generate_personalized_tip("Goal", "public-speaking", "advanced")

        assert tip == FALLBACK_TIPS[("public-speaking", Experience.ADVANCED)]

    async def test_falls_back_when_circuit_open(self):
        with (
            patch("services.tips_service.get_settings", return_value=_gemini_settings()),
            patch(
                "services.tips_service._generate_with_gemini",
                side_effect=CircuitBreakerError(MagicMock()),
            ),
        ):
            tip = await generate_personalized_tip("Stay fit", "fitness", "beginner")

        assert '"Stay fit"' in tip.content

    async def test_falls_back_on_timeout(self):
        with (
            patch("services.tips_service.get_settings", return_value=_gemini_settings()),
            patch(
                "services.tips_service._generate_with_gemini",
                side_effect=TimeoutError(),
            ),
        ):
            tip = await generate_personalized_tip("Goal", "crypto-dev", "intermediate")

        assert tip == FALLBACK_TIPS[("crypto-dev", Experience.INTERMEDIATE)]


class TestCreateDailyTip:
    async def test_persists_tip_for_user(self, store: MemoryStore):
        user = UserFactory.build(niche="crypto-dev", experience=Experience.ADVANCED)

        tip = await create_daily_tip(store, user)

        assert tip.niche == "crypto-dev"
        assert tip.difficulty == Experience.ADVANCED
        assert tip.content == FALLBACK_TIPS[("crypto-dev", Experience.ADVANCED)].content
        assert await TipRepository(store).get_by_id(tip.tip_id) == tip

    async def test_experience_override_and_explicit_id(self, store: MemoryStore):
        user = UserFactory.build(niche="crypto-dev", experience=Experience.ADVANCED)

        tip = await create_daily_tip(
            store, user, experience=Experience.BEGINNER, tip_id="tip_7_2026-01-23"
        )

        assert tip.tip_id == "tip_7_2026-01-23"
        assert tip.difficulty == Experience.BEGINNER


class TestGetTip:
    async def test_returns_stored_tip(self, store: MemoryStore):
        saved = await save_tip(store)

        assert await get_tip(store, saved.tip_id) == saved

    async def test_missing_tip_raises(self, store: MemoryStore):
        with pytest.raises(TipNotFoundError):
            await get_tip(store, "tip_missing")
