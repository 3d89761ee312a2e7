"""Tests for weekly/monthly hour aggregation and earnings."""

from datetime import date, datetime, timedelta
from decimal import Decimal

from models.timesheets import Project, TimesheetEntry
from services.timesheets import (
    calculate_earnings,
    filter_entries_by_period,
    get_month_bounds,
    get_week_bounds,
    group_by_month,
    group_by_week,
    summarize_period,
    weekly_chart_data,
)


# =============================================================================
# Date utilities
# =============================================================================


def test_week_bounds_monday_to_sunday():
    assert get_week_bounds(date(2024, 3, 6)) == (date(2024, 3, 4), date(2024, 3, 10))
    assert get_week_bounds(date(2024, 3, 4)) == (date(2024, 3, 4), date(2024, 3, 10))
    assert get_week_bounds(date(2024, 3, 10)) == (date(2024, 3, 4), date(2024, 3, 10))


def test_month_bounds_leap_year():
    assert get_month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert get_month_bounds(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))


def test_filter_entries_inclusive(make_entry):
    entries = [make_entry(date(2024, 3, d), 1) for d in (3, 4, 10, 11)]
    kept = filter_entries_by_period(entries, date(2024, 3, 4), date(2024, 3, 10))
    assert [e.date.day for e in kept] == [4, 10]


# =============================================================================
# group_by_week
# =============================================================================


class TestGroupByWeek:
    def test_wednesday_reference_starts_two_days_earlier(self, make_entry):
        entries = [make_entry(date(2024, 3, 4), 8), make_entry(date(2024, 3, 6), 4)]

        summary = group_by_week(entries, date(2024, 3, 6))

        assert summary.start_date == date(2024, 3, 4)
        assert summary.end_date == date(2024, 3, 10)
        assert len(summary.daily_breakdown) == 7
        assert summary.total_hours == sum(d.hours for d in summary.daily_breakdown)

    def test_example_week(self, make_entry):
        entries = [make_entry(date(2024, 3, 4), 8), make_entry(date(2024, 3, 6), 4)]

        summary = group_by_week(entries, date(2024, 3, 6))

        assert summary.total_hours == Decimal("12.0")
        hours = [d.hours for d in summary.daily_breakdown]
        assert hours == [Decimal("8"), 0, Decimal("4"), 0, 0, 0, 0]
        assert [d.day_name for d in summary.daily_breakdown] == [
            "Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun",
        ]
        assert [d.date for d in summary.daily_breakdown] == [
            date(2024, 3, 4) + timedelta(days=i) for i in range(7)
        ]

    def test_same_day_entries_aggregate(self, make_entry):
        entries = [
            make_entry(date(2024, 3, 5), "1.5"),
            make_entry(datetime(2024, 3, 5, 23, 30), 2),
            make_entry("2024-03-05T08:00:00", "0.5"),
        ]

        summary = group_by_week(entries, date(2024, 3, 5))

        assert summary.daily_breakdown[1].hours == Decimal("4.0")
        assert summary.total_hours == Decimal("4.0")

    def test_entries_outside_week_ignored(self, make_entry):
        entries = [make_entry(date(2024, 3, 3), 5), make_entry(date(2024, 3, 11), 5)]
        assert group_by_week(entries, date(2024, 3, 6)).total_hours == 0

    def test_daily_hours_rounded_to_tenth(self, make_entry):
        entries = [
            make_entry(date(2024, 3, 4), "0.33"),
            make_entry(date(2024, 3, 4), "0.33"),  # 0.66 -> 0.7
            make_entry(date(2024, 3, 5), "0.25"),  # 0.25 -> 0.3
        ]

        summary = group_by_week(entries, date(2024, 3, 4))

        assert summary.daily_breakdown[0].hours == Decimal("0.7")
        assert summary.daily_breakdown[1].hours == Decimal("0.3")
        assert summary.total_hours == Decimal("1.0")

    def test_iso_week_number(self):
        summary = group_by_week([], date(2024, 3, 6))
        assert (summary.week_number, summary.year) == (10, 2024)

    def test_week_number_across_new_year(self):
        # ISO week and ISO week-year. A week-of-calendar-year count (Monday
        # start) would call 1.1.2021 week 1 of 2021 instead.
        # Mon 30.12.2024 starts ISO week 1 of 2025
        summary = group_by_week([], date(2025, 1, 1))
        assert summary.start_date == date(2024, 12, 30)
        assert (summary.week_number, summary.year) == (1, 2025)

        # Fri 1.1.2021 belongs to week 53 of 2020
        summary = group_by_week([], date(2021, 1, 1))
        assert (summary.week_number, summary.year) == (53, 2020)

    def test_datetime_reference(self, make_entry):
        entries = [make_entry(date(2024, 3, 10), 3)]
        summary = group_by_week(entries, datetime(2024, 3, 10, 22, 0))
        assert summary.start_date == date(2024, 3, 4)
        assert summary.daily_breakdown[6].hours == Decimal("3.0")


def test_weekly_chart_data(make_entry):
    summary = group_by_week([make_entry(date(2024, 3, 6), 4)], date(2024, 3, 6))

    chart = weekly_chart_data(summary)

    assert len(chart) == 7
    assert chart[2] == {"name": "Wed", "hours": Decimal("4.0")}


# =============================================================================
# group_by_month
# =============================================================================


class TestGroupByMonth:
    def test_february_leap_year_is_fully_covered(self):
        summary = group_by_month([], 2024, 2)

        weeks = summary.weekly_breakdown
        assert (summary.month, summary.year) == (2, 2024)
        assert weeks[0].start_date == date(2024, 1, 29)
        assert weeks[-1].end_date == date(2024, 3, 3)
        assert len(weeks) == 5

        covered = set()
        for week in weeks:
            covered.update(d.date for d in week.daily_breakdown)
        for day in range(1, 30):
            assert date(2024, 2, day) in covered

    def test_weeks_are_consecutive(self):
        weeks = group_by_month([], 2024, 9).weekly_breakdown
        for previous, current in zip(weeks, weeks[1:]):
            assert current.start_date == previous.start_date + timedelta(days=7)
        # Sept 2024 starts on a Sunday and ends on a Monday
        assert weeks[0].start_date == date(2024, 8, 26)
        assert weeks[-1].start_date == date(2024, 9, 30)

    def test_month_starting_on_monday(self):
        weeks = group_by_month([], 2024, 4).weekly_breakdown
        assert weeks[0].start_date == date(2024, 4, 1)

    def test_total_is_sum_of_weeks(self, make_entry):
        entries = [
            make_entry(date(2024, 2, 5), 8),
            make_entry(date(2024, 2, 14), "6.5"),
            make_entry(date(2024, 2, 29), 2),
        ]

        summary = group_by_month(entries, 2024, 2)

        assert summary.total_hours == Decimal("16.5")
        assert summary.total_hours == sum(w.total_hours for w in summary.weekly_breakdown)

    def test_boundary_weeks_include_neighbouring_days(self, make_entry):
        entries = [
            make_entry(date(2024, 1, 30), 3),  # in first week
            make_entry(date(2024, 2, 1), 4),
            make_entry(date(2024, 3, 2), 1),  # in last week
            make_entry(date(2024, 3, 4), 9),  # beyond last week
        ]

        summary = group_by_month(entries, 2024, 2)

        assert summary.weekly_breakdown[0].total_hours == Decimal("7.0")
        assert summary.weekly_breakdown[-1].total_hours == Decimal("1.0")
        assert summary.total_hours == Decimal("8.0")


# =============================================================================
# Earnings
# =============================================================================


class TestEarnings:
    def test_hours_times_rate(self, make_entry, sample_project):
        other = Project(id="project-2", name="Audit", hourly_rate=Decimal("99.99"))
        entries = [
            make_entry(date(2024, 3, 4), "2.5"),
            make_entry(date(2024, 3, 5), "1", project=other),
        ]

        assert calculate_earnings(entries) == Decimal("2.5") * 85 + Decimal("99.99")

    def test_no_per_entry_rounding(self):
        project = Project(id="p", name="P", hourly_rate=Decimal("33.333"))
        entries = [
            TimesheetEntry(id=str(i), date=date(2024, 3, 4), hours=Decimal("0.1"), project_id="p", project=project)
            for i in range(3)
        ]
        assert calculate_earnings(entries) == Decimal("9.9999")

    def test_entry_without_project_earns_nothing(self, make_entry):
        entries = [make_entry(date(2024, 3, 4), 5, project=None)]
        assert calculate_earnings(entries) == 0

    def test_empty(self):
        assert calculate_earnings([]) == 0


def test_summarize_period(make_entry):
    entries = [
        make_entry(date(2024, 3, 1), 2),
        make_entry(date(2024, 3, 15), 3),
        make_entry(date(2024, 4, 1), 4),
    ]

    hours, earnings = summarize_period(entries, date(2024, 3, 1), date(2024, 3, 31))

    assert hours == Decimal("5")
    assert earnings == Decimal("425")
