"""User service: onboarding, lookup, and Farcaster identity linking."""

import time

from core import get_logger, set_wide_event_fields
from core.store import KeyValueStore
from models import DailyTip, Experience, NotificationPreferences, User
from repositories.user_repository import UserRepository
from schemas import OnboardingRequest
from services.tips_service import create_daily_tip, random_suffix

logger = get_logger(__name__)

FARCASTER_DEFAULT_GOAL = "Personal growth and development"
FARCASTER_DEFAULT_NICHE = "productivity"


class UserNotFoundError(Exception):
    """Raised when a user id has no stored user."""


def generate_user_id() -> str:
    return f"user_{int(time.time() * 1000)}_{random_suffix()}"


def farcaster_user_id(fid: str) -> str:
    return f"farcaster_{fid}"


async def get_user(store: KeyValueStore, user_id: str) -> User:
    user = await UserRepository(store).get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(f"User {user_id} not found")
    return user


async def onboard_user(
    store: KeyValueStore, data: OnboardingRequest
) -> tuple[User, DailyTip]:
    """Create a user from the onboarding answers and generate their first tip."""
    user = User(
        user_id=generate_user_id(),
        stated_goal=data.goal,
        niche=data.niche,
        experience=data.experience,
        time_commitment=data.time_commitment,
        onboarding_complete=True,
        notification_preferences=NotificationPreferences(enabled=True, time="09:00"),
    )
    await UserRepository(store).save(user)
    tip = await create_daily_tip(store, user)

    set_wide_event_fields(user_id=user.user_id, niche=user.niche)
    logger.info("user.onboarded", user_id=user.user_id, niche=user.niche)
    return user, tip


async def get_or_create_farcaster_user(store: KeyValueStore, fid: str) -> User:
    """Resolve a Farcaster fid to a user, creating and linking one on first contact."""
    repo = UserRepository(store)
    user = await repo.get_by_farcaster_id(fid)
    if user is not None:
        return user

    user = User(
        user_id=farcaster_user_id(fid),
        stated_goal=FARCASTER_DEFAULT_GOAL,
        niche=FARCASTER_DEFAULT_NICHE,
        experience=Experience.INTERMEDIATE,
        onboarding_complete=True,
    )
    await repo.save(user)
    await repo.link_farcaster_user(fid, user.user_id)

    logger.info("user.farcaster_linked", fid=fid, user_id=user.user_id)
    return user
