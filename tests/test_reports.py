"""Tests for report windows, selectors and aggregation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from conftest import T0, down, up
from core.reducer import reduce_events
from reports.scopes import Scope, report_window, resolve_selector
from reports.summary import build_report, daily_breakdown, total_hours, total_minutes

DHAKA = ZoneInfo("Asia/Dhaka")


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# =============================================================================
# Windows
# =============================================================================


class TestReportWindow:
    def test_daily_utc(self):
        assert report_window(Scope.DAILY, 2025, 8, 11) == (utc(2025, 8, 11), utc(2025, 8, 12))

    def test_daily_in_dhaka(self):
        assert report_window(Scope.DAILY, 2025, 8, 11, tz=DHAKA) == (
            utc(2025, 8, 10, 18),
            utc(2025, 8, 11, 18),
        )

    def test_weekly_starts_monday(self):
        # 2025-08-13 is a Wednesday.
        assert report_window(Scope.WEEKLY, 2025, 8, 13) == (utc(2025, 8, 11), utc(2025, 8, 18))

    def test_weekly_on_sunday_belongs_to_previous_monday(self):
        assert report_window(Scope.WEEKLY, 2025, 8, 17)[0] == utc(2025, 8, 11)

    def test_monthly_december_rolls_into_next_year(self):
        assert report_window(Scope.MONTHLY, 2025, 12) == (utc(2025, 12, 1), utc(2026, 1, 1))

    def test_yearly(self):
        assert report_window(Scope.YEARLY, 2025) == (utc(2025, 1, 1), utc(2026, 1, 1))

    @pytest.mark.parametrize(
        "scope,month,day",
        [
            (Scope.MONTHLY, None, None),
            (Scope.DAILY, 8, None),
            (Scope.WEEKLY, None, 3),
            (Scope.DAILY, 2, 30),
        ],
    )
    def test_incomplete_or_impossible_selector(self, scope, month, day):
        with pytest.raises(ValueError):
            report_window(scope, 2025, month, day)


class TestResolveSelector:
    NOW = utc(2025, 3, 1, 20, 0)

    def test_defaults_to_today_in_timezone(self):
        # 20:00 UTC on Mar 1 is already Mar 2 in Dhaka.
        assert resolve_selector(DHAKA, now=self.NOW) == (2025, 3, 2)
        assert resolve_selector(timezone.utc, now=self.NOW) == (2025, 3, 1)

    def test_explicit_parts_win(self):
        assert resolve_selector(timezone.utc, 2024, 12, now=self.NOW) == (2024, 12, 1)

    def test_previous_day_crosses_month(self):
        assert resolve_selector(timezone.utc, previous_day=True, now=self.NOW) == (2025, 2, 28)


# =============================================================================
# Aggregation
# =============================================================================


class TestTotals:
    @pytest.mark.parametrize(
        "minutes,hours",
        [(0, 0.0), (1, 0.02), (5, 0.08), (30, 0.5), (90, 1.5), (125, 2.08)],
    )
    def test_total_hours(self, minutes, hours):
        assert total_hours(minutes) == hours

    def test_open_outages_count_as_zero(self):
        outages = reduce_events([down(0, "a"), up(600, "b"), down(900, "c")])
        assert total_minutes(outages) == 10


class TestBuildReport:
    @pytest.fixture
    def seeded(self, store):
        events = [
            down(0, "a"), up(300, "b"),                  # Jan 1, 5 min
            down(3600, "c"), up(3600 + 5400, "d"),       # Jan 1, 90 min
            down(timedelta(days=1).total_seconds(), "e"),  # Jan 2, open
        ]
        store.replace_outages(reduce_events(events))
        return store

    def test_daily(self, seeded):
        report = build_report(seeded, "daily", 2025, 1, 1)

        assert report["scope"] == "daily"
        assert (report["year"], report["month"], report["day"]) == (2025, 1, 1)
        assert report["totalMinutes"] == 95
        assert report["totalHours"] == 1.58
        assert report["outageCount"] == 2
        assert report["outages"][0]["durationMinutes"] == 5
        assert report["outages"][0]["events"][0]["sourceId"] == "a"
        assert report["windowStart"] == T0.isoformat()

    def test_monthly_includes_open_outage(self, seeded):
        report = build_report(seeded, Scope.MONTHLY, 2025, 1)

        assert report["outageCount"] == 3
        assert report["totalMinutes"] == 95
        assert report["outages"][-1]["end"] is None
        assert report["outages"][-1]["durationMinutes"] is None
        assert "day" not in report

    def test_yearly_omits_month(self, seeded):
        report = build_report(seeded, "yearly", 2025)

        assert "month" not in report
        assert report["outageCount"] == 3

    def test_window_follows_timezone(self, seeded):
        # Dhaka's Jan 1 ends at 18:00 UTC; the Jan 2 00:00 UTC outage lands on Jan 2 there.
        report = build_report(seeded, "daily", 2025, 1, 2, tz=DHAKA)

        assert report["timezone"] == "Asia/Dhaka"
        assert report["outageCount"] == 1
        assert report["outages"][0]["calendarDay"] == 2

    def test_unknown_scope(self, seeded):
        with pytest.raises(ValueError):
            build_report(seeded, "hourly", 2025, 1, 1)


class TestDailyBreakdown:
    # 2025-08-11 is a Monday.
    MONDAY = utc(2025, 8, 11)

    def test_weekly_report_has_seven_days(self, store):
        store.replace_outages(
            reduce_events([
                down(self.MONDAY + timedelta(hours=1), "a"),
                up(self.MONDAY + timedelta(hours=2), "b"),
                down(self.MONDAY + timedelta(days=2, hours=3), "c"),
                up(self.MONDAY + timedelta(days=2, hours=3, minutes=30), "d"),
                down(self.MONDAY + timedelta(days=2, hours=5), "e"),
                up(self.MONDAY + timedelta(days=2, hours=5, minutes=15), "f"),
            ])
        )

        report = build_report(store, "weekly", 2025, 8, 13)
        breakdown = report["dailyBreakdown"]

        assert [d["weekday"] for d in breakdown] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        assert breakdown[0] == {"date": "2025-08-11", "weekday": "Mon", "minutes": 60, "hours": 1.0, "count": 1}
        assert breakdown[1] == {"date": "2025-08-12", "weekday": "Tue", "minutes": 0, "hours": 0.0, "count": 0}
        assert breakdown[2]["count"] == 2
        assert breakdown[2]["hours"] == 0.75
        assert sum(d["minutes"] for d in breakdown) == report["totalMinutes"]

    def test_outage_past_midnight_counts_on_start_day(self):
        outages = reduce_events([
            down(self.MONDAY + timedelta(hours=23, minutes=30), "a"),
            up(self.MONDAY + timedelta(days=1, minutes=30), "b"),
        ])

        breakdown = daily_breakdown(outages, self.MONDAY)

        assert breakdown[0]["minutes"] == 60
        assert breakdown[0]["count"] == 1
        assert breakdown[1]["count"] == 0

    def test_days_follow_timezone(self):
        week_start, _ = report_window(Scope.WEEKLY, 2025, 8, 13, tz=DHAKA)
        # 19:00 UTC Monday is 01:00 Tuesday in Dhaka.
        outages = reduce_events([
            down(self.MONDAY + timedelta(hours=19), "a"),
            up(self.MONDAY + timedelta(hours=19, minutes=10), "b"),
        ])

        breakdown = daily_breakdown(outages, week_start, DHAKA)

        assert breakdown[0]["date"] == "2025-08-11"
        assert [d["count"] for d in breakdown] == [0, 1, 0, 0, 0, 0, 0]

    def test_other_scopes_have_no_breakdown(self, store):
        assert "dailyBreakdown" not in build_report(store, "daily", 2025, 8, 11)
