"""User repository: user records and Farcaster identity links."""

from pydantic import ValidationError

from core.config import get_settings
from core.logger import get_logger
from core.store import KeyValueStore
from models import User

logger = get_logger(__name__)


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


def farcaster_link_key(fid: str) -> str:
    return f"farcaster:{fid}:user"


class UserRepository:
    """Repository for User store operations."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.settings = get_settings()

    async def get_by_id(self, user_id: str) -> User | None:
        payload = await self.store.get(user_key(user_id))
        if payload is None:
            return None
        try:
            return User.from_json(payload)
        except ValidationError:
            logger.warning("user.malformed", user_id=user_id)
            return None

    async def save(self, user: User) -> None:
        await self.store.set(
            user_key(user.user_id), user.to_json(), self.settings.user_ttl_seconds
        )

    async def get_by_farcaster_id(self, fid: str) -> User | None:
        """Resolve a Farcaster fid to its linked user, if any."""
        user_id = await self.store.get(farcaster_link_key(fid))
        if not user_id:
            return None
        return await self.get_by_id(user_id)

    async def link_farcaster_user(self, fid: str, user_id: str) -> None:
        await self.store.set(
            farcaster_link_key(fid),
            user_id,
            self.settings.farcaster_link_ttl_seconds,
        )
