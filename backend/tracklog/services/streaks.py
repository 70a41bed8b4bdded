"""Day-based streak calculation for activities."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from tracklog.clock import calendar_day


@dataclass(frozen=True)
class StreakUpdate:
    current_streak: int
    longest_streak: int
    last_completed_date: Optional[date]


def calculate_streak_update(
    duration_delta: int,
    current_streak: int,
    longest_streak: int,
    last_completed_date: Optional[date],
    now: datetime,
) -> StreakUpdate:
    """
    Apply one completed session to an activity's streak counters.

    A day counts once: any positive duration on a day not yet completed
    extends the streak when the previous completion was yesterday, and
    restarts it at 1 otherwise. Zero-length sessions never move the streak.
    A completion on a day earlier than ``last_completed_date`` (a backfilled
    entry) leaves the counters as they are.

    Args:
        duration_delta: Seconds added by the session, must be >= 0
        current_streak: Streak before this session
        longest_streak: Best streak before this session
        last_completed_date: UTC day of the previous completion, if any
        now: Moment the session completed

    Returns:
        The new counters; ``current_streak <= longest_streak`` always holds
    """
    if duration_delta < 0:
        raise ValueError(f"duration_delta must be >= 0, got {duration_delta}")

    today = calendar_day(now)

    if duration_delta == 0 or last_completed_date == today:
        return StreakUpdate(current_streak, max(longest_streak, current_streak), last_completed_date)

    if last_completed_date is not None and today < last_completed_date:
        return StreakUpdate(current_streak, max(longest_streak, current_streak), last_completed_date)

    if last_completed_date == today - timedelta(days=1):
        current_streak += 1
    else:
        current_streak = 1

    return StreakUpdate(
        current_streak=current_streak,
        longest_streak=max(longest_streak, current_streak),
        last_completed_date=today,
    )
