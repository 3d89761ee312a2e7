"""
Timesheet aggregation: weekly and monthly hour rollups and earnings.

Weeks always run Monday through Sunday regardless of locale. Entries are
matched to days by calendar date only; any time-of-day component is dropped.
"""

import calendar
from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal

from core.money import ZERO, round_hours, to_decimal
from models.timesheets import (
    DailyHours,
    MonthlyHoursSummary,
    TimesheetEntry,
    WeeklyHoursSummary,
)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


# =============================================================================
# DATE UTILITIES
# =============================================================================


def to_calendar_day(value) -> date:
    """Reduce a date, datetime or ISO string to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def get_week_bounds(reference_date: date) -> tuple[date, date]:
    """Return (monday, sunday) of the week containing reference_date."""
    reference_date = to_calendar_day(reference_date)
    week_start = reference_date - timedelta(days=reference_date.weekday())
    return week_start, week_start + timedelta(days=6)


def get_month_bounds(year: int, month: int) -> tuple[date, date]:
    _, last_day = calendar.monthrange(year, month)
    return date(year, month, 1), date(year, month, last_day)


# =============================================================================
# FILTERING
# =============================================================================


def filter_entries_by_period(
    entries: list[TimesheetEntry], start: date, end: date
) -> list[TimesheetEntry]:
    """Entries whose day falls within [start, end], both ends inclusive."""
    start = to_calendar_day(start)
    end = to_calendar_day(end)
    return [e for e in entries if start <= to_calendar_day(e.date) <= end]


def sum_hours_by_day(entries: list[TimesheetEntry]) -> dict[date, Decimal]:
    totals: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        totals[to_calendar_day(entry.date)] += to_decimal(entry.hours)
    return totals


# =============================================================================
# AGGREGATION
# =============================================================================


def group_by_week(
    entries: list[TimesheetEntry], reference_date: date | None = None
) -> WeeklyHoursSummary:
    """
    Bucket entries into the Monday-start week containing reference_date.

    Daily hours are rounded to a tenth of an hour, and the week total is the
    rounded sum of those rounded daily values. Week number and year follow
    ISO-8601, which uses the same Monday-start weeks.
    """
    if reference_date is None:
        reference_date = date.today()
    week_start, week_end = get_week_bounds(reference_date)
    hours_by_day = sum_hours_by_day(filter_entries_by_period(entries, week_start, week_end))

    daily_breakdown = []
    for offset, day_name in enumerate(DAY_NAMES):
        day = week_start + timedelta(days=offset)
        daily_breakdown.append(
            DailyHours(date=day, day_name=day_name, hours=round_hours(hours_by_day.get(day, ZERO)))
        )

    iso_year, iso_week, _ = week_start.isocalendar()
    return WeeklyHoursSummary(
        week_number=iso_week,
        year=iso_year,
        start_date=week_start,
        end_date=week_end,
        total_hours=round_hours(sum((d.hours for d in daily_breakdown), ZERO)),
        daily_breakdown=daily_breakdown,
    )


def group_by_month(entries: list[TimesheetEntry], year: int, month: int) -> MonthlyHoursSummary:
    """
    Build weekly summaries for every week overlapping the month.

    The first and last weeks may extend into the neighbouring months; hours
    logged on those outside days still count toward the week and therefore
    toward the month total.
    """
    month_start, month_end = get_month_bounds(year, month)

    weeks = []
    week_start, _ = get_week_bounds(month_start)
    while week_start <= month_end:
        week_entries = filter_entries_by_period(entries, week_start, week_start + timedelta(days=6))
        weeks.append(group_by_week(week_entries, week_start))
        week_start += timedelta(days=7)

    return MonthlyHoursSummary(
        month=month,
        year=year,
        total_hours=round_hours(sum((w.total_hours for w in weeks), ZERO)),
        weekly_breakdown=weeks,
    )


def calculate_earnings(entries: list[TimesheetEntry]) -> Decimal:
    """Sum of hours * project hourly rate, unrounded. Entries without a project earn 0."""
    total = ZERO
    for entry in entries:
        rate = to_decimal(entry.project.hourly_rate) if entry.project else ZERO
        total += to_decimal(entry.hours) * rate
    return total


def total_hours(entries: list[TimesheetEntry]) -> Decimal:
    return sum((to_decimal(e.hours) for e in entries), ZERO)


def summarize_period(
    entries: list[TimesheetEntry], start: date, end: date
) -> tuple[Decimal, Decimal]:
    """Return (hours, earnings) for entries within [start, end]."""
    in_period = filter_entries_by_period(entries, start, end)
    return total_hours(in_period), calculate_earnings(in_period)


def weekly_chart_data(summary: WeeklyHoursSummary) -> list[dict]:
    """Daily bars for the dashboard hours chart."""
    return [{"name": day.day_name, "hours": day.hours} for day in summary.daily_breakdown]
