"""
ethoslink.temporal — Timeframe-scoped summaries from irregular XP/activity history.

The directory has no per-timeframe endpoint, so windows are computed here:

    day    → always 0 (no daily granularity upstream; reported, not omitted)
    week   → latest weekly XP sample, else activity scores in [now-7d, now]
    month  → sum of the last 4 weekly samples (fewer if fewer exist),
             else activity scores in [now-30d, now]
    year   → lifetime total
    all    → lifetime total

Trend bucketing keys use the calendar date of each timestamp as given:
day (week view), week-start Sunday (month view), year-month (year view).
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

from ethoslink.models import ActivityRecord, ActivityType, TimeframeSummary, WeeklySample


class Timeframe(Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"

    @classmethod
    def parse(cls, value, default: "Timeframe" = None) -> "Timeframe":
        if isinstance(value, Timeframe):
            return value
        text = str(value or "").strip().lower()
        aliases = {
            "daily": cls.DAY, "today": cls.DAY,
            "weekly": cls.WEEK, "this week": cls.WEEK,
            "monthly": cls.MONTH, "this month": cls.MONTH,
            "yearly": cls.YEAR, "annual": cls.YEAR,
            "all_time": cls.ALL, "alltime": cls.ALL, "lifetime": cls.ALL, "total": cls.ALL,
        }
        for member in cls:
            if text == member.value:
                return member
        if text in aliases:
            return aliases[text]
        if default is not None:
            return default
        raise ValueError(f"Unknown timeframe: {value!r}")


WINDOWS = {
    Timeframe.DAY: timedelta(days=1),
    Timeframe.WEEK: timedelta(days=7),
    Timeframe.MONTH: timedelta(days=30),
    Timeframe.YEAR: timedelta(days=365),
}

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
MONTH_WEEKS = 4

Series = Sequence[Union[ActivityRecord, WeeklySample]]


def window_start(timeframe: Timeframe, now: datetime) -> datetime:
    span = WINDOWS.get(timeframe)
    return now - span if span is not None else EPOCH


def in_window(activities: Iterable[ActivityRecord], start: datetime, end: datetime) -> list[ActivityRecord]:
    """Activities stamped within [start, end]. Undated activities never match."""
    return [a for a in activities if a.timestamp is not None and start <= a.timestamp <= end]


def aggregate(
    series: Series,
    timeframe: Timeframe,
    *,
    lifetime_total: float = 0,
    now: Optional[datetime] = None,
) -> TimeframeSummary:
    """Summarize *series* for *timeframe*.

    Args:
        series: Weekly XP samples, activity records, or a mix. Samples win
            when both are present.
        timeframe: Window to summarize.
        lifetime_total: Value reported for year/all.
        now: Window end (defaults to the current UTC time).
    """
    now = now or datetime.now(timezone.utc)
    start = window_start(timeframe, now)
    samples = sorted((s for s in series if isinstance(s, WeeklySample)), key=lambda s: s.week)
    activities = [a for a in series if isinstance(a, ActivityRecord)]

    if timeframe == Timeframe.DAY:
        return TimeframeSummary(
            timeframe.value, 0, start, now,
            {"source": "unsupported", "note": "Daily granularity is not available from the directory"},
        )

    if timeframe in (Timeframe.YEAR, Timeframe.ALL):
        return TimeframeSummary(timeframe.value, lifetime_total, start, now, {"source": "lifetime"})

    if samples:
        window = samples[-1:] if timeframe == Timeframe.WEEK else samples[-MONTH_WEEKS:]
        return TimeframeSummary(
            timeframe.value,
            sum(s.weekly_xp for s in window),
            start, now,
            {"source": "weekly_xp", "weeks": [s.week for s in window]},
        )

    windowed = in_window(activities, start, now)
    return TimeframeSummary(
        timeframe.value,
        sum(a.score for a in windowed),
        start, now,
        {"source": "activity", "activityCount": len(windowed)},
    )


def _week_start(day: date) -> date:
    # Weeks start on Sunday.
    return day - timedelta(days=(day.weekday() + 1) % 7)


def bucket_key(timestamp: datetime, timeframe: Timeframe) -> str:
    day = timestamp.date()
    if timeframe == Timeframe.MONTH:
        return _week_start(day).isoformat()
    if timeframe == Timeframe.YEAR:
        return f"{day.year}-{day.month:02d}"
    return day.isoformat()


def group_activities(activities: Iterable[ActivityRecord], timeframe: Timeframe) -> "OrderedDict[str, list[ActivityRecord]]":
    """Bucket activities by calendar key, keys in ascending order. Undated activities are left out."""
    grouped: dict[str, list[ActivityRecord]] = {}
    for activity in activities:
        if activity.timestamp is None:
            continue
        grouped.setdefault(bucket_key(activity.timestamp, timeframe), []).append(activity)
    return OrderedDict(sorted(grouped.items()))


_SCORED_TYPES = (ActivityType.REVIEW, ActivityType.VOUCH)


def reputation_trend(activities: Sequence[ActivityRecord], timeframe: Timeframe) -> dict:
    """Per-bucket score change for review and vouch activity."""
    dated = [a for a in activities if a.timestamp is not None]
    data_points = []
    for key, bucket in group_activities(dated, timeframe).items():
        data_points.append({
            "date": key,
            "scoreChange": sum(a.score for a in bucket if a.activity_type in _SCORED_TYPES),
            "activityCount": len(bucket),
            "activities": [a.to_dict() for a in bucket],
        })
    return {
        "dataPoints": data_points,
        "summary": {
            "timeframe": timeframe.value,
            "totalActivities": len(dated),
            "scoreChange": sum(p["scoreChange"] for p in data_points),
            "reviewsReceived": sum(1 for a in dated if a.activity_type == ActivityType.REVIEW),
            "vouchesReceived": sum(1 for a in dated if a.activity_type == ActivityType.VOUCH),
        },
    }
