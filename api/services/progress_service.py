"""Progress log service: record completions and derive statistics.

This module handles:
- Recording a "mark complete" action (the single write path for progress logs)
- Listing a user's progress records, most recent first
- Recomputing ProgressStats from the full log on every read (no caching)

Store failures propagate unchanged; nothing here retries or rolls back.
Routes should use this service for all progress-related business logic.
"""

from datetime import UTC, datetime

from core import get_logger, set_wide_event_fields
from core.config import get_settings
from core.store import KeyValueStore
from models import ProgressLogRecord
from repositories.progress_log_repository import ProgressLogRepository
from schemas import ProgressStats
from services.streaks_service import compute_stats

logger = get_logger(__name__)


def _require_id(value: str, name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{name} must be a non-empty identifier")
    return value.strip()


async def record_completion(
    store: KeyValueStore,
    user_id: str,
    tip_id: str,
    notes: str | None = None,
    *,
    now: datetime | None = None,
) -> ProgressLogRecord:
    """Append a completed progress-log record for the user.

    Every call creates a new record with a fresh log id, including repeated
    calls on the same day. Existence of the user and tip is not checked.
    """
    user_id = _require_id(user_id, "user_id")
    tip_id = _require_id(tip_id, "tip_id")

    record = ProgressLogRecord(
        user_id=user_id,
        tip_id=tip_id,
        action_completed=True,
        logged_at=now or datetime.now(UTC),
        notes=notes,
    )
    await ProgressLogRepository(store).save(record)

    logger.info(
        "progress_log.recorded",
        user_id=user_id,
        tip_id=tip_id,
        log_id=record.log_id,
    )
    return record


async def list_records(store: KeyValueStore, user_id: str) -> list[ProgressLogRecord]:
    """All readable records for the user, most recent first."""
    return await ProgressLogRepository(store).get_by_user(user_id)


async def get_user_stats(
    store: KeyValueStore,
    user_id: str,
    *,
    now: datetime | None = None,
) -> ProgressStats:
    """Recompute the user's statistics from their full progress log."""
    records = await list_records(store, user_id)
    stats = compute_stats(records, now=now, tz=get_settings().streak_tz)

    set_wide_event_fields(
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
    )
    return stats


async def record_and_refresh(
    store: KeyValueStore,
    user_id: str,
    tip_id: str,
    notes: str | None = None,
    *,
    now: datetime | None = None,
) -> tuple[ProgressLogRecord, ProgressStats]:
    """Record a completion and return the refreshed statistics."""
    record = await record_completion(store, user_id, tip_id, notes, now=now)
    stats = await get_user_stats(store, record.user_id, now=now)
    return record, stats
