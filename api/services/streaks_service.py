"""Streak and progress statistics from a user's progress log.

Rules:
- Only completed records count.
- Completions are grouped by calendar day in a single time zone (UTC unless
  STREAK_TIMEZONE says otherwise). Several completions on one day are one
  streak day, but each still counts toward total_tips_completed and
  weekly_progress.
- current_streak is the run of consecutive days ending at the most recent
  completed day. A missing "today" does not break it: today's action may
  still be pending.
- longest_streak is the longest run ever seen; always >= current_streak.
- weekly_progress counts completions in the trailing 7 days, capped at 7.
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta, tzinfo

from models import ProgressLogRecord, as_utc
from schemas import ProgressStats

WEEKLY_WINDOW = timedelta(days=7)
WEEKLY_CAP = 7

EMPTY_STATS = ProgressStats(
    current_streak=0,
    longest_streak=0,
    total_tips_completed=0,
    weekly_progress=0,
)


def to_day(timestamp: datetime, tz: tzinfo = UTC) -> date:
    """Calendar day of ``timestamp`` in ``tz``. Naive timestamps are UTC."""
    return as_utc(timestamp).astimezone(tz).date()


def compute_stats(
    records: Iterable[ProgressLogRecord],
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> ProgressStats:
    """Derive ProgressStats from a user's records, in any order.

    Pure: the result depends only on the records, ``now`` and ``tz``.

    Args:
        records: The user's progress-log records.
        now: Reference time for the weekly window. Defaults to the current time.
        tz: Time zone whose calendar days define streak boundaries.
    """
    records = list(records)
    if not records:
        return EMPTY_STATS

    now = as_utc(now) if now is not None else datetime.now(UTC)

    completed = [r for r in records if r.action_completed]
    completed.sort(key=lambda r: as_utc(r.logged_at), reverse=True)

    current_streak = 0
    longest_streak = 0
    temp_streak = 0
    in_current_chain = True
    previous_day: date | None = None

    for record in completed:
        day = to_day(record.logged_at, tz)

        if previous_day is None:
            temp_streak = 1
        else:
            gap = (previous_day - day).days
            if gap == 0:
                # Same day as one already counted
                continue
            if gap == 1:
                temp_streak += 1
            else:
                in_current_chain = False
                temp_streak = 1

        if in_current_chain:
            current_streak = temp_streak
        longest_streak = max(longest_streak, temp_streak)
        previous_day = day

    week_start = now - WEEKLY_WINDOW
    weekly_count = sum(1 for r in completed if as_utc(r.logged_at) >= week_start)

    return ProgressStats(
        current_streak=current_streak,
        longest_streak=longest_streak,
        total_tips_completed=len(completed),
        weekly_progress=min(WEEKLY_CAP, weekly_count),
    )
