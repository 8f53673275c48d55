"""
ecotrack/features/aggregation/reducers.py

Pure deterministic reducers over a habit collection.
All reducers: (habits, now) -> read model. Calendar days are UTC days.
"""

import datetime as dt
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from ecotrack.models.habit import Habit, as_utc

WEEK_DAYS = 7


class DayStat(BaseModel):
    """Completion counts for one calendar day."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    completed_count: int = Field(ge=0)
    total_count: int = Field(ge=0)


class TodayStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: dt.date
    total_count: int = Field(ge=0)
    completed_count: int = Field(ge=0)
    points_earned: int = Field(ge=0)


class StreakStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_streak: int = Field(ge=0)
    longest_streak: int = Field(ge=0)
    last_active_date: Optional[date] = None


def _resolve_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return as_utc(now)


def _day(moment: Union[date, datetime]) -> date:
    if isinstance(moment, datetime):
        return as_utc(moment).date()
    return moment


def habits_on_date(habits: Iterable[Habit], day: Union[date, datetime]) -> List[Habit]:
    """Habits whose own date falls on ``day`` (year/month/day), time ignored."""
    target = _day(day)
    return [h for h in habits if h.date.date() == target]


def todays_habits(habits: Iterable[Habit], now: Optional[datetime] = None) -> List[Habit]:
    return habits_on_date(habits, _resolve_now(now))


def completed_count_today(habits: Iterable[Habit], now: Optional[datetime] = None) -> int:
    return sum(1 for h in todays_habits(habits, now) if h.is_completed)


def points_earned_today(habits: Iterable[Habit], now: Optional[datetime] = None) -> int:
    return sum(h.points for h in todays_habits(habits, now) if h.is_completed)


def summarize_today(habits: Sequence[Habit], now: Optional[datetime] = None) -> TodayStats:
    now = _resolve_now(now)
    today = todays_habits(habits, now)
    completed = [h for h in today if h.is_completed]
    return TodayStats(
        date=now.date(),
        total_count=len(today),
        completed_count=len(completed),
        points_earned=sum(h.points for h in completed),
    )


def weekly_series(habits: Sequence[Habit], now: Optional[datetime] = None) -> List[DayStat]:
    """
    Exactly seven days, [now - 6 days, now], oldest first.

    Each habit lands only in the bucket of its own date; habits outside the
    window are not counted anywhere.
    """
    today = _resolve_now(now).date()
    series = []
    for offset in range(WEEK_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_habits = habits_on_date(habits, day)
        series.append(
            DayStat(
                date=day,
                completed_count=sum(1 for h in day_habits if h.is_completed),
                total_count=len(day_habits),
            )
        )
    return series


def _completed_days(habits: Iterable[Habit], today: date) -> List[date]:
    return sorted({h.date.date() for h in habits if h.is_completed and h.date.date() <= today})


def compute_streaks(habits: Sequence[Habit], now: Optional[datetime] = None) -> StreakStats:
    """
    Streak = consecutive calendar days with at least one completed habit.

    The current streak is anchored on today, or on yesterday while today has
    no completion yet. Future-dated habits never count.
    """
    today = _resolve_now(now).date()
    days = _completed_days(habits, today)
    if not days:
        return StreakStats(current_streak=0, longest_streak=0)

    longest = run = 1
    for previous, day in zip(days, days[1:]):
        run = run + 1 if (day - previous).days == 1 else 1
        longest = max(longest, run)

    current = 0
    completed = set(days)
    anchor = today if today in completed else today - timedelta(days=1)
    while anchor in completed:
        current += 1
        anchor -= timedelta(days=1)

    return StreakStats(current_streak=current, longest_streak=longest, last_active_date=days[-1])


def category_breakdown(habits: Iterable[Habit]) -> Dict[str, int]:
    """Completed habit counts per category name, only categories that occur."""
    counts: Counter = Counter(h.category.value for h in habits if h.is_completed)
    return dict(sorted(counts.items()))
