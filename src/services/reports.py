"""
Excel report generation for monthly hours and invoices.
"""

from datetime import date
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from core.config import CURRENCY, INVOICE_ITEM_HEADERS, WEEKLY_HEADERS
from core.money import round_money, to_decimal
from models.invoices import Invoice
from models.timesheets import MonthlyHoursSummary

# Columns D..J hold Mon..Sun in the weekly table
FIRST_DAY_COL = 4
TOTAL_COL = FIRST_DAY_COL + 7


def format_date_display(d: date) -> str:
    """Format date as DD.MM.YYYY."""
    return d.strftime("%d.%m.%Y")


def format_currency(amount) -> str:
    """Format as German euro amount, e.g. '1.234,56 €'."""
    value = round_money(amount)
    sign = "-" if value < 0 else ""
    grouped = f"{abs(value):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"{sign}{grouped} €"


def format_hours(hours) -> str:
    """Format hours with one decimal, e.g. '7.5h'."""
    return f"{to_decimal(hours):.1f}h"


def write_header_row(ws, headers: list[str], row: int = 1) -> None:
    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=row, column=col_idx, value=header)
        cell.font = Font(bold=True)


# =============================================================================
# MONTHLY HOURS
# =============================================================================


def write_monthly_hours_sheet(ws, summary: MonthlyHoursSummary) -> None:
    """
    One row per week overlapping the month.

    Headers: Week, Start, End, Mon..Sun, Total
    Column K (Total): =SUM(D{row}:J{row})
    The row after the last week sums the Total column.
    """
    write_header_row(ws, WEEKLY_HEADERS)

    first_day_letter = get_column_letter(FIRST_DAY_COL)
    last_day_letter = get_column_letter(TOTAL_COL - 1)
    total_letter = get_column_letter(TOTAL_COL)

    for row_idx, week in enumerate(summary.weekly_breakdown, start=2):
        ws.cell(row=row_idx, column=1, value=f"KW {week.week_number}")
        ws.cell(row=row_idx, column=2, value=format_date_display(week.start_date))
        ws.cell(row=row_idx, column=3, value=format_date_display(week.end_date))
        for offset, day in enumerate(week.daily_breakdown):
            ws.cell(row=row_idx, column=FIRST_DAY_COL + offset, value=float(day.hours))
        ws.cell(
            row=row_idx,
            column=TOTAL_COL,
            value=f"=SUM({first_day_letter}{row_idx}:{last_day_letter}{row_idx})",
        )

    last_week_row = len(summary.weekly_breakdown) + 1
    total_row = last_week_row + 1
    label = ws.cell(row=total_row, column=1, value="Total")
    label.font = Font(bold=True)
    total = ws.cell(
        row=total_row,
        column=TOTAL_COL,
        value=f"=SUM({total_letter}2:{total_letter}{last_week_row})",
    )
    total.font = Font(bold=True)

    ws.column_dimensions["A"].width = 8
    ws.column_dimensions["B"].width = 12
    ws.column_dimensions["C"].width = 12


def create_monthly_hours_workbook(summary: MonthlyHoursSummary, title: str | None = None) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = title or f"Hours {summary.year}-{summary.month:02d}"
    write_monthly_hours_sheet(ws, summary)
    return wb


# =============================================================================
# INVOICE
# =============================================================================


def write_invoice_sheet(ws, invoice: Invoice) -> None:
    """
    Invoice header, line items and the totals block.

    Totals are written as values (not formulas) because line amounts may be
    overridden independently of quantity * rate.
    """
    header_rows = [
        ("Rechnung", invoice.invoice_number),
        ("Kunde", invoice.client_name or invoice.client_id),
        ("Projekt", invoice.project_name or invoice.project_id or ""),
        ("Rechnungsdatum", format_date_display(invoice.issue_date)),
        ("Fällig am", format_date_display(invoice.due_date)),
    ]
    if invoice.service_period_start and invoice.service_period_end:
        header_rows.append(
            (
                "Leistungszeitraum",
                f"{format_date_display(invoice.service_period_start)} - "
                f"{format_date_display(invoice.service_period_end)}",
            )
        )

    for row_idx, (label, value) in enumerate(header_rows, start=1):
        ws.cell(row=row_idx, column=1, value=label).font = Font(bold=True)
        ws.cell(row=row_idx, column=2, value=value)

    items_header_row = len(header_rows) + 2
    write_header_row(ws, INVOICE_ITEM_HEADERS, row=items_header_row)

    row_idx = items_header_row
    for item in invoice.items:
        row_idx += 1
        ws.cell(row=row_idx, column=1, value=item.description)
        ws.cell(row=row_idx, column=2, value=float(item.quantity))
        ws.cell(row=row_idx, column=3, value=float(item.rate))
        ws.cell(row=row_idx, column=4, value=float(item.amount))

    totals_row = row_idx + 2
    totals = [
        ("Zwischensumme", invoice.subtotal),
        (f"MwSt ({_format_rate(invoice.vat_rate)}%)", invoice.vat_amount),
        (f"Gesamt ({CURRENCY})", invoice.total),
    ]
    for offset, (label, amount) in enumerate(totals):
        ws.cell(row=totals_row + offset, column=3, value=label).font = Font(bold=True)
        ws.cell(row=totals_row + offset, column=4, value=float(amount))

    if invoice.notes:
        ws.cell(row=totals_row + len(totals) + 1, column=1, value=invoice.notes)

    ws.column_dimensions["A"].width = 40
    ws.column_dimensions["B"].width = 14
    ws.column_dimensions["C"].width = 18
    ws.column_dimensions["D"].width = 14


def _format_rate(rate: Decimal) -> str:
    rate = to_decimal(rate)
    return str(rate.quantize(Decimal("1"))) if rate == rate.to_integral_value() else str(rate)


def create_invoice_workbook(invoice: Invoice) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = invoice.invoice_number
    write_invoice_sheet(ws, invoice)
    return wb


def workbook_to_bytes(wb: Workbook) -> bytes:
    """Serialize a workbook in memory (for API responses)."""
    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer.getvalue()
