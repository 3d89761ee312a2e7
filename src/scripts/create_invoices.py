#!/usr/bin/env python3
"""
Create a client invoice from a project's logged hours.

Bills all hours within the service period as a single line item
("Dienstleistungen DD.MM.–DD.MM.YYYY") at the project's hourly rate, assigns
the next invoice number and writes the invoice as an Excel file.

Usage:
    uv run python src/scripts/create_invoices.py <project_id> --month 2025-11

Example:
    uv run python src/scripts/create_invoices.py 3f2c... --start 2025-11-03 --end 2025-11-28
"""

import argparse
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DEFAULT_VAT_RATE, OUTPUT_DIR, configure_logging
from core.database import get_connection, get_project, list_timesheets
from models.invoices import InvoiceDraft
from services.invoices import build_service_period_item, create_invoice, default_service_period
from services.reports import create_invoice_workbook
from services.timesheets import get_month_bounds

PAYMENT_TERM_DAYS = 14


def parse_date(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def resolve_period(args, entries) -> tuple[date, date] | None:
    """Explicit --start/--end, else --month, else the span of unbilled entries."""
    if args.start and args.end:
        return parse_date(args.start), parse_date(args.end)
    if args.month:
        year, month = map(int, args.month.split("-"))
        return get_month_bounds(year, month)
    return default_service_period(entries)


def main():
    parser = argparse.ArgumentParser(description="Create a client invoice from logged hours")
    parser.add_argument("project_id", help="Project to bill")
    parser.add_argument("--month", help="Service month (YYYY-MM)")
    parser.add_argument("--start", help="Service period start (YYYY-MM-DD)")
    parser.add_argument("--end", help="Service period end (YYYY-MM-DD)")
    parser.add_argument("--vat-rate", default=str(DEFAULT_VAT_RATE), help="VAT rate in percent")
    args = parser.parse_args()

    configure_logging()
    conn = get_connection()
    try:
        project = get_project(conn, args.project_id)
        if not project.client_id:
            raise ValueError(f"Project {project.name} has no client")

        entries = [e for e in list_timesheets(conn, project.id) if e.invoice_id is None]
        period = resolve_period(args, entries)
        if period is None:
            print(f"No unbilled hours for {project.name}")
            return
        start, end = period

        item = build_service_period_item(entries, start, end, project.hourly_rate)
        if item is None:
            print(f"No hours logged for {project.name} between {start} and {end}")
            return

        today = date.today()
        invoice = create_invoice(
            conn,
            InvoiceDraft(
                client_id=project.client_id,
                project_id=project.id,
                issue_date=today,
                due_date=today + timedelta(days=PAYMENT_TERM_DAYS),
                items=[item],
                vat_rate=args.vat_rate,
                service_period_start=start,
                service_period_end=end,
            ),
        )
        invoice.client_name = project.client_name
        invoice.project_name = project.name

        output_dir = OUTPUT_DIR / "invoices"
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"invoice_{invoice.invoice_number}.xlsx"
        create_invoice_workbook(invoice).save(output_path)

        print(f"\nInvoice {invoice.invoice_number}: {item.quantity}h, total {invoice.total}")
        print(f"Invoice generated: {output_path}")
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
