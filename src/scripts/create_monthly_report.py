#!/usr/bin/env python3
"""
Create monthly hours report from logged timesheets.

Generates an Excel report with one row per Monday-start week overlapping the
month, daily hours per column and SUM formulas for week and month totals.

Usage:
    uv run python src/scripts/create_monthly_report.py --month 2025-11
"""

import argparse
import sys
from datetime import date
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import OUTPUT_DIR, configure_logging
from core.database import get_connection, list_timesheets
from services.reports import create_monthly_hours_workbook
from services.timesheets import get_month_bounds, get_week_bounds, group_by_month


def get_target_month(month_str: str | None) -> tuple[int, int]:
    """
    Parse YYYY-MM, or default to the previous month.
    """
    if month_str:
        year, month = map(int, month_str.split("-"))
        return year, month
    today = date.today()
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def main(month_str: str | None = None, project_id: str | None = None):
    """Main entry point for monthly report."""
    year, month = get_target_month(month_str)
    month_start, month_end = get_month_bounds(year, month)
    print(f"Generating monthly hours report for {month_start} to {month_end}")

    conn = get_connection()
    try:
        first_day, _ = get_week_bounds(month_start)
        _, last_day = get_week_bounds(month_end)
        entries = list_timesheets(conn, project_id, first_day, last_day)
    finally:
        conn.close()
    print(f"Found {len(entries)} time entries")

    summary = group_by_month(entries, year, month)

    output_dir = OUTPUT_DIR / "reports" / "monthly"
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"hours_{year}_{month:02d}.xlsx"
    create_monthly_hours_workbook(summary).save(output_path)

    print(f"\nTotal hours: {summary.total_hours}")
    print(f"Report generated: {output_path}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate monthly hours report")
    parser.add_argument(
        "--month",
        help="Target month (YYYY-MM). Defaults to previous month.",
    )
    parser.add_argument("--project", help="Only include this project ID")
    args = parser.parse_args()

    configure_logging()
    main(args.month, args.project)
