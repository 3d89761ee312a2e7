#!/usr/bin/env python3
"""
Print the weekly hours summary with per-project earnings.

Usage:
    uv run python src/scripts/create_weekly_report.py --date 2025-11-07
"""

import argparse
import sys
from collections import defaultdict
from datetime import date, datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import configure_logging
from core.database import get_connection, list_timesheets
from core.money import round_money
from services.reports import format_currency, format_date_display, format_hours
from services.timesheets import calculate_earnings, get_week_bounds, group_by_week, total_hours


def main(as_of_date_str: str | None = None):
    as_of = datetime.strptime(as_of_date_str, "%Y-%m-%d").date() if as_of_date_str else date.today()
    week_start, week_end = get_week_bounds(as_of)

    conn = get_connection()
    try:
        entries = list_timesheets(conn, start=week_start, end=week_end)
    finally:
        conn.close()

    summary = group_by_week(entries, as_of)
    print(
        f"KW {summary.week_number}/{summary.year}: "
        f"{format_date_display(summary.start_date)} - {format_date_display(summary.end_date)}"
    )
    for day in summary.daily_breakdown:
        print(f"  {day.day_name} {format_date_display(day.date)}  {format_hours(day.hours)}")
    print(f"  Total: {format_hours(summary.total_hours)}")

    by_project = defaultdict(list)
    for entry in entries:
        by_project[entry.project.name if entry.project else entry.project_id].append(entry)

    if by_project:
        print("\nBy project:")
    for name, project_entries in sorted(by_project.items()):
        earnings = round_money(calculate_earnings(project_entries))
        print(
            f"  {name}: {format_hours(total_hours(project_entries))}, "
            f"{format_currency(earnings)}"
        )
    print(f"\nEarnings: {format_currency(round_money(calculate_earnings(entries)))}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print weekly hours summary")
    parser.add_argument(
        "--date",
        help="Any day in the target week (YYYY-MM-DD). Defaults to today.",
    )
    args = parser.parse_args()

    configure_logging()
    main(args.date)
