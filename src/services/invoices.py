"""
Invoice Calculation Service

Computes invoice totals and VAT from line items, allocates sequential
YYYY-NNNN invoice numbers per year, advances invoice status, and turns
service-period timesheet hours into line items.
"""

import logging
import re
import sqlite3
import time
import uuid
from datetime import date
from decimal import Decimal

from core import database
from core.config import (
    DEFAULT_VAT_RATE,
    INVOICE_NUMBER_MAX_RETRIES,
    INVOICE_NUMBER_RETRY_BACKOFF,
    INVOICE_SEQUENCE_DIGITS,
    SERVICE_PERIOD_DESCRIPTION,
)
from core.errors import InvalidStateTransition, InvoiceNumberConflict
from core.money import ZERO, percent_of, round_money, to_decimal
from models.invoices import Invoice, InvoiceDraft, InvoiceStatus, InvoiceTotals, LineItem
from models.timesheets import TimesheetEntry
from services.timesheets import filter_entries_by_period, to_calendar_day, total_hours

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# One-step progression; anything not listed here is blocked
STATUS_TRANSITIONS: dict[InvoiceStatus, InvoiceStatus] = {
    InvoiceStatus.PENDING: InvoiceStatus.SENT,
    InvoiceStatus.SENT: InvoiceStatus.PAID,
}

ALREADY_PAID_MESSAGE = "Invoice is already paid, no further progression"
CANNOT_PROGRESS_MESSAGE = "Cannot progress invoice from current status"

BLOCKED_STATUS_MESSAGES: dict[InvoiceStatus, str] = {
    InvoiceStatus.PAID: ALREADY_PAID_MESSAGE,
    InvoiceStatus.DRAFT: CANNOT_PROGRESS_MESSAGE,
    InvoiceStatus.OVERDUE: CANNOT_PROGRESS_MESSAGE,
    InvoiceStatus.CANCELLED: CANNOT_PROGRESS_MESSAGE,
}

_LEADING_DIGITS = re.compile(r"^\d+")


# =============================================================================
# TOTALS
# =============================================================================


def calculate_totals(items: list[LineItem], vat_rate=DEFAULT_VAT_RATE) -> InvoiceTotals:
    """
    Calculate subtotal, VAT and total from line items.

    The subtotal is the sum of each item's `amount` as given; quantity * rate
    is never recomputed, so manually adjusted amounts (discounts) are kept.
    VAT and total are derived from the already rounded subtotal, so rounding
    error is at most one cent per invoice.
    """
    vat_rate = to_decimal(vat_rate)
    subtotal = round_money(sum((to_decimal(item.amount) for item in items), ZERO))
    vat_amount = round_money(percent_of(subtotal, vat_rate))
    return InvoiceTotals(
        subtotal=subtotal,
        vat_rate=vat_rate,
        vat_amount=vat_amount,
        total=round_money(subtotal + vat_amount),
    )


def line_item_amount(quantity, rate) -> Decimal:
    """Default amount for a line: quantity * rate rounded to the cent."""
    return round_money(to_decimal(quantity) * to_decimal(rate))


# =============================================================================
# INVOICE NUMBERS
# =============================================================================


def generate_invoice_number(year: int, sequence: int) -> str:
    """Format as YYYY-NNNN; sequences past 9999 simply get more digits."""
    return f"{year}-{sequence:0{INVOICE_SEQUENCE_DIGITS}d}"


def parse_invoice_sequence(invoice_number: str, year: int) -> int:
    """
    Sequence part of an invoice number for the given year.

    Only the leading digits of the suffix count; a suffix without any is
    treated as 0 so one corrupt record never blocks invoice creation.
    """
    prefix = f"{year}-"
    if not invoice_number.startswith(prefix):
        return 0
    match = _LEADING_DIGITS.match(invoice_number[len(prefix):])
    return int(match.group()) if match else 0


def next_invoice_number(existing_numbers: list[str], year: int | None = None) -> str:
    """
    Next number in the year's sequence: max existing sequence + 1.

    Pure function of the given snapshot. Numbers from other years are
    ignored. Callers must persist the result under a uniqueness constraint,
    since two callers holding the same snapshot get the same answer.
    """
    if year is None:
        year = date.today().year
    prefix = f"{year}-"
    sequences = [
        parse_invoice_sequence(number, year)
        for number in existing_numbers
        if number.startswith(prefix)
    ]
    return generate_invoice_number(year, max(sequences, default=0) + 1)


# =============================================================================
# STATUS
# =============================================================================


def advance_status(current: InvoiceStatus | str) -> InvoiceStatus:
    """
    Advance an invoice one step: PENDING -> SENT -> PAID.

    Raises:
        InvalidStateTransition: current status cannot be progressed
    """
    try:
        status = InvoiceStatus(current)
    except ValueError:
        raise InvalidStateTransition(str(current), f"Unknown invoice status '{current}'")

    if status in STATUS_TRANSITIONS:
        return STATUS_TRANSITIONS[status]
    raise InvalidStateTransition(status.value, BLOCKED_STATUS_MESSAGES[status])


def progress_invoice(conn: sqlite3.Connection, invoice_id: str) -> Invoice:
    """Advance a stored invoice's status and return the updated invoice."""
    invoice = database.get_invoice(conn, invoice_id)
    next_status = advance_status(invoice.status)
    database.update_invoice_status(conn, invoice_id, next_status)
    logger.info(
        "Invoice %s status %s -> %s",
        invoice.invoice_number,
        invoice.status.value,
        next_status.value,
    )
    invoice.status = next_status
    return invoice


# =============================================================================
# SERVICE PERIOD
# =============================================================================


def default_service_period(entries: list[TimesheetEntry]) -> tuple[date, date] | None:
    """Period spanning all given entries, or None if there are none."""
    if not entries:
        return None
    days = sorted(to_calendar_day(e.date) for e in entries)
    return days[0], days[-1]


def format_service_period(start: date, end: date) -> str:
    """German period label, e.g. 'Dienstleistungen 01.03.–31.03.2024'."""
    return f"{SERVICE_PERIOD_DESCRIPTION} {start:%d.%m.}–{end:%d.%m.%Y}"


def build_service_period_item(
    entries: list[TimesheetEntry],
    start: date,
    end: date,
    hourly_rate,
) -> LineItem | None:
    """
    Single line item billing all hours logged within [start, end].

    Returns None when no hours fall within the period.
    """
    hours = total_hours(filter_entries_by_period(entries, start, end))
    if hours <= 0:
        return None
    rate = to_decimal(hourly_rate)
    return LineItem(
        description=format_service_period(to_calendar_day(start), to_calendar_day(end)),
        quantity=hours,
        rate=rate,
        amount=line_item_amount(hours, rate),
    )


# =============================================================================
# CREATION
# =============================================================================


def allocate_invoice_number(conn: sqlite3.Connection, year: int) -> tuple[str, int]:
    """
    Compute the next (number, sequence) for a year from stored invoices.

    The year's high-water mark is included in the snapshot so numbers of
    deleted invoices are never handed out again.
    """
    numbers = database.list_invoice_numbers(conn, year)
    last_sequence = database.get_last_sequence(conn, year)
    if last_sequence:
        numbers.append(generate_invoice_number(year, last_sequence))
    number = next_invoice_number(numbers, year)
    return number, parse_invoice_sequence(number, year)


def create_invoice(
    conn: sqlite3.Connection,
    draft: InvoiceDraft,
    year: int | None = None,
) -> Invoice:
    """
    Persist a new invoice with computed totals and the next invoice number.

    If the draft has a project and a service period, the project's unbilled
    timesheets within that period are linked to the invoice.

    Raises:
        InvoiceNumberConflict: number still taken after all retries
    """
    if year is None:
        year = date.today().year
    totals = calculate_totals(draft.items, draft.vat_rate)

    timesheet_ids: list[str] = []
    if draft.project_id and draft.service_period_start and draft.service_period_end:
        timesheet_ids = [
            entry.id
            for entry in database.list_timesheets(
                conn, draft.project_id, draft.service_period_start, draft.service_period_end
            )
            if entry.invoice_id is None
        ]

    attempts = max(INVOICE_NUMBER_MAX_RETRIES, 1)
    for attempt in range(1, attempts + 1):
        invoice_number, sequence = allocate_invoice_number(conn, year)
        invoice = Invoice(
            id=str(uuid.uuid4()),
            invoice_number=invoice_number,
            client_id=draft.client_id,
            project_id=draft.project_id,
            issue_date=draft.issue_date,
            due_date=draft.due_date,
            items=list(draft.items),
            subtotal=totals.subtotal,
            vat_rate=totals.vat_rate,
            vat_amount=totals.vat_amount,
            total=totals.total,
            status=InvoiceStatus(draft.status),
            notes=draft.notes,
            service_period_start=draft.service_period_start,
            service_period_end=draft.service_period_end,
        )
        try:
            database.insert_invoice(conn, invoice, year, sequence, timesheet_ids)
        except InvoiceNumberConflict:
            if attempt == attempts:
                raise
            logger.warning(
                "Invoice number %s conflicted (attempt %d/%d), retrying",
                invoice_number,
                attempt,
                attempts,
            )
            time.sleep(INVOICE_NUMBER_RETRY_BACKOFF * attempt)
            continue

        logger.info(
            "Created invoice %s (%d items, total %s, %d timesheets linked)",
            invoice_number,
            len(invoice.items),
            invoice.total,
            len(timesheet_ids),
        )
        return invoice

    raise InvoiceNumberConflict(invoice_number)
