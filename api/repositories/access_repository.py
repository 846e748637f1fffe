"""Repository for premium access grants and subscriptions.

    user:<userId>:access        -> "granted" | "revoked", expires with the grant
    user:<userId>:subscription  -> Subscription JSON, expires at expires_at
"""

import math
from datetime import datetime

from pydantic import ValidationError

from core.config import SECONDS_PER_DAY, get_settings
from core.logger import get_logger
from core.store import KeyValueStore
from models import Subscription, utcnow

logger = get_logger(__name__)

ACCESS_GRANTED = "granted"
ACCESS_REVOKED = "revoked"


def access_key(user_id: str) -> str:
    return f"user:{user_id}:access"


def subscription_key(user_id: str) -> str:
    return f"user:{user_id}:subscription"


class AccessRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def has_access(self, user_id: str) -> bool:
        """Access is free by default: only an explicit revoke denies it."""
        value = await self.store.get(access_key(user_id))
        return value is None or value == ACCESS_GRANTED

    async def grant(self, user_id: str, duration_days: int | None = None) -> None:
        if duration_days is None:
            duration_days = get_settings().access_grant_days
        await self.store.set(
            access_key(user_id), ACCESS_GRANTED, duration_days * SECONDS_PER_DAY
        )

    async def revoke(self, user_id: str) -> None:
        await self.store.set(access_key(user_id), ACCESS_REVOKED)

    async def get_subscription(self, user_id: str) -> Subscription | None:
        payload = await self.store.get(subscription_key(user_id))
        if payload is None:
            return None
        try:
            return Subscription.from_json(payload)
        except ValidationError:
            logger.warning("subscription.malformed", user_id=user_id)
            return None

    async def save_subscription(
        self, subscription: Subscription, now: datetime | None = None
    ) -> None:
        remaining = (subscription.expires_at - (now or utcnow())).total_seconds()
        await self.store.set(
            subscription_key(subscription.user_id),
            subscription.to_json(),
            max(1, math.ceil(remaining)),
        )
