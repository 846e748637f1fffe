"""Repository for progress-log records.

Storage layout:
    log:<logId>         -> ProgressLogRecord JSON
    user:<userId>:logs  -> set of logIds

Both keys expire after LOG_TTL_DAYS (365 by default). The index TTL is
refreshed on every append.
"""

from pydantic import ValidationError

from core.config import get_settings
from core.logger import get_logger
from core.store import KeyValueStore
from models import ProgressLogRecord

logger = get_logger(__name__)


def log_key(log_id: str) -> str:
    return f"log:{log_id}"


def user_logs_key(user_id: str) -> str:
    return f"user:{user_id}:logs"


class ProgressLogRepository:
    """Append-only progress log with a per-user index."""

    def __init__(self, store: KeyValueStore, *, ttl_seconds: int | None = None) -> None:
        self.store = store
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else get_settings().log_ttl_seconds
        )

    async def save(self, record: ProgressLogRecord) -> None:
        """Write the record, then register its id in the user's index.

        The two writes are not atomic. If the second fails the record exists
        but is not enumerable; the error propagates to the caller.
        """
        await self.store.set(log_key(record.log_id), record.to_json(), self.ttl_seconds)
        await self.store.add_to_set(
            user_logs_key(record.user_id), record.log_id, self.ttl_seconds
        )

    async def get(self, log_id: str) -> ProgressLogRecord | None:
        """Returns None for missing, expired, or malformed records."""
        try:
            payload = await self.store.get(log_key(log_id))
        except UnicodeDecodeError:
            logger.warning("progress_log.undecodable", log_id=log_id)
            return None
        if payload is None:
            return None
        try:
            return ProgressLogRecord.from_json(payload)
        except ValidationError as e:
            logger.warning(
                "progress_log.malformed",
                log_id=log_id,
                error_count=e.error_count(),
            )
            return None

    async def get_log_ids(self, user_id: str) -> list[str]:
        return await self.store.members_of(user_logs_key(user_id))

    async def get_by_user(self, user_id: str) -> list[ProgressLogRecord]:
        """Get every readable record for a user, most recent first.

        Ids whose record has expired or cannot be parsed are skipped.
        """
        records: list[ProgressLogRecord] = []
        log_ids = await self.get_log_ids(user_id)
        for log_id in log_ids:
            record = await self.get(log_id)
            if record is not None:
                records.append(record)

        skipped = len(log_ids) - len(records)
        if skipped:
            logger.info(
                "progress_log.skipped",
                user_id=user_id,
                skipped=skipped,
                total=len(log_ids),
            )

        records.sort(key=lambda r: r.logged_at, reverse=True)
        return records
