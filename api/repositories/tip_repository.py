"""Repository for generated daily tips."""

from pydantic import ValidationError

from core.config import get_settings
from core.logger import get_logger
from core.store import KeyValueStore
from models import DailyTip

logger = get_logger(__name__)


def tip_key(tip_id: str) -> str:
    return f"tip:{tip_id}"


class TipRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get_by_id(self, tip_id: str) -> DailyTip | None:
        payload = await self.store.get(tip_key(tip_id))
        if payload is None:
            return None
        try:
            return DailyTip.from_json(payload)
        except ValidationError:
            logger.warning("tip.malformed", tip_id=tip_id)
            return None

    async def save(self, tip: DailyTip) -> None:
        """Tips expire after TIP_TTL_DAYS (30 by default)."""
        await self.store.set(
            tip_key(tip.tip_id), tip.to_json(), get_settings().tip_ttl_seconds
        )
