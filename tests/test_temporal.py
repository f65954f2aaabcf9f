"""Tests for timeframe aggregation and trend bucketing."""

from datetime import datetime, timedelta, timezone

import pytest

from ethoslink.models import ActivityRecord, ActivityType, WeeklySample
from ethoslink.temporal import (
    Timeframe,
    aggregate,
    bucket_key,
    group_activities,
    in_window,
    reputation_trend,
    window_start,
)


NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)  # a Sunday


def _activity(days_ago, score=10, kind=ActivityType.REVIEW, i=0):
    return ActivityRecord(
        id=f"a{i}",
        activity_type=kind,
        score=score,
        actor="address:0xabc",
        subject="profileId:10",
        timestamp=NOW - timedelta(days=days_ago),
    )


def _weeks(*xp):
    return [WeeklySample(week=i, weekly_xp=v) for i, v in enumerate(xp, start=1)]


class TestTimeframeParse:
    @pytest.mark.parametrize("raw,expected", [
        ("day", Timeframe.DAY),
        ("WEEK", Timeframe.WEEK),
        ("monthly", Timeframe.MONTH),
        ("annual", Timeframe.YEAR),
        ("all_time", Timeframe.ALL),
        (Timeframe.YEAR, Timeframe.YEAR),
    ])
    def test_aliases(self, raw, expected):
        assert Timeframe.parse(raw) == expected

    def test_unknown_raises(self):
        with pytest.raises(ValueError):
            Timeframe.parse("fortnight")

    def test_unknown_with_default(self):
        assert Timeframe.parse("fortnight", default=Timeframe.ALL) == Timeframe.ALL


class TestAggregate:
    def test_day_is_always_zero(self):
        series = _weeks(100, 200) + [_activity(0, score=50)]
        summary = aggregate(series, Timeframe.DAY, lifetime_total=999, now=NOW)
        assert summary.value == 0
        assert summary.detail["source"] == "unsupported"

    def test_week_uses_latest_sample(self):
        summary = aggregate(_weeks(100, 200, 300), Timeframe.WEEK, now=NOW)
        assert summary.value == 300
        assert summary.detail["weeks"] == [3]

    def test_samples_sorted_by_week(self):
        series = [WeeklySample(3, 30), WeeklySample(1, 10), WeeklySample(2, 20)]
        assert aggregate(series, Timeframe.WEEK, now=NOW).value == 30

    def test_month_sums_last_four(self):
        summary = aggregate(_weeks(1, 10, 100, 1000, 10000), Timeframe.MONTH, now=NOW)
        assert summary.value == 11110
        assert summary.detail["weeks"] == [2, 3, 4, 5]

    def test_month_with_two_samples_sums_both(self):
        summary = aggregate(_weeks(120, 80), Timeframe.MONTH, now=NOW)
        assert summary.value == 200

    @pytest.mark.parametrize("tf", [Timeframe.YEAR, Timeframe.ALL])
    def test_year_and_all_are_lifetime(self, tf):
        summary = aggregate(_weeks(1, 2), tf, lifetime_total=5505, now=NOW)
        assert summary.value == 5505
        assert summary.detail["source"] == "lifetime"

    def test_week_from_activities_when_no_samples(self):
        series = [_activity(1, 10), _activity(6, 20), _activity(8, 40)]
        summary = aggregate(series, Timeframe.WEEK, now=NOW)
        assert summary.value == 30
        assert summary.detail == {"source": "activity", "activityCount": 2}

    def test_month_from_activities(self):
        series = [_activity(1, 10), _activity(29, 20), _activity(31, 40)]
        assert aggregate(series, Timeframe.MONTH, now=NOW).value == 30

    def test_empty_series(self):
        summary = aggregate([], Timeframe.WEEK, now=NOW)
        assert summary.value == 0
        assert summary.period_end == NOW
        assert summary.period_start == NOW - timedelta(days=7)

    def test_to_dict(self):
        d = aggregate(_weeks(5), Timeframe.WEEK, now=NOW).to_dict()
        assert d["timeframe"] == "week"
        assert d["timeframeValue"] == 5
        assert d["periodEnd"] == NOW.isoformat()


def test_window_start_all_is_epoch():
    assert window_start(Timeframe.ALL, NOW).year == 1970
    assert window_start(Timeframe.YEAR, NOW) == NOW - timedelta(days=365)


class TestBucketing:
    def test_day_keys(self):
        assert bucket_key(NOW, Timeframe.WEEK) == "2025-06-15"

    def test_month_view_groups_by_sunday(self):
        wednesday = datetime(2025, 6, 11, tzinfo=timezone.utc)
        assert bucket_key(wednesday, Timeframe.MONTH) == "2025-06-08"
        assert bucket_key(NOW, Timeframe.MONTH) == "2025-06-15"

    def test_year_view_groups_by_month(self):
        assert bucket_key(NOW, Timeframe.YEAR) == "2025-06"

    def test_group_keys_ascending(self):
        grouped = group_activities([_activity(0, i=1), _activity(3, i=2), _activity(0, i=3)], Timeframe.WEEK)
        assert list(grouped) == ["2025-06-12", "2025-06-15"]
        assert len(grouped["2025-06-15"]) == 2


def test_reputation_trend_counts_review_and_vouch_only():
    activities = [
        _activity(0, 20, ActivityType.REVIEW, 0),
        _activity(1, 35, ActivityType.VOUCH, 1),
        _activity(2, 50, ActivityType.SLASH, 2),
    ]
    trend = reputation_trend(activities, Timeframe.WEEK)
    assert trend["summary"]["scoreChange"] == 55
    assert trend["summary"]["totalActivities"] == 3
    assert trend["summary"]["reviewsReceived"] == 1
    assert trend["summary"]["vouchesReceived"] == 1
    assert [p["date"] for p in trend["dataPoints"]] == ["2025-06-13", "2025-06-14", "2025-06-15"]
    assert trend["dataPoints"][0]["scoreChange"] == 0


class TestUndatedActivities:
    def _undated(self, score=100, kind=ActivityType.REVIEW):
        return ActivityRecord("u1", kind, score, "address:0xabc", "profileId:10", None)

    def test_never_in_window(self):
        assert in_window([self._undated(), _activity(1)], NOW - timedelta(days=7), NOW) == [_activity(1)]

    def test_excluded_from_aggregate(self):
        summary = aggregate([self._undated(), _activity(1, 10)], Timeframe.WEEK, now=NOW)
        assert summary.value == 10
        assert summary.detail["activityCount"] == 1

    def test_excluded_from_grouping(self):
        grouped = group_activities([self._undated(), _activity(0)], Timeframe.WEEK)
        assert list(grouped) == ["2025-06-15"]

    def test_excluded_from_trend(self):
        trend = reputation_trend([self._undated(), _activity(0, 20)], Timeframe.WEEK)
        assert trend["summary"]["totalActivities"] == 1
        assert trend["summary"]["reviewsReceived"] == 1
        assert trend["summary"]["scoreChange"] == 20
