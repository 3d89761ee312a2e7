"""Tests for persistence and invoice number allocation against SQLite."""

from datetime import date
from decimal import Decimal

import pytest

from core import database
from core.errors import InvoiceNumberConflict, NotFoundError
from models.expenses import Expense, ExpenseCategory, PaymentMethod
from models.invoices import InvoiceDraft, InvoiceStatus, LineItem
from models.timesheets import TimesheetEntry
from services import invoices as invoice_service
from services.invoices import create_invoice, progress_invoice


def make_draft(client_id="client-1", **overrides) -> InvoiceDraft:
    values = dict(
        client_id=client_id,
        issue_date=date(2024, 3, 31),
        due_date=date(2024, 4, 14),
        items=[LineItem("Development", Decimal("10"), Decimal("85"), Decimal("850.00"))],
        vat_rate=Decimal("19"),
    )
    values.update(overrides)
    return InvoiceDraft(**values)


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(invoice_service.time, "sleep", sleeps.append)
    return sleeps


# =============================================================================
# Invoices
# =============================================================================


class TestCreateInvoice:
    def test_persists_totals_and_items(self, seeded_conn):
        invoice = create_invoice(seeded_conn, make_draft(), year=2024)

        stored = database.get_invoice(seeded_conn, invoice.id)
        assert stored.invoice_number == "2024-0001"
        assert stored.subtotal == Decimal("850.00")
        assert stored.vat_amount == Decimal("161.50")
        assert stored.total == Decimal("1011.50")
        assert stored.items == invoice.items
        assert stored.status == InvoiceStatus.DRAFT
        assert stored.client_name == "Muster GmbH"

    def test_numbers_are_sequential_per_year(self, seeded_conn):
        numbers = [create_invoice(seeded_conn, make_draft(), year=2024).invoice_number for _ in range(3)]
        numbers.append(create_invoice(seeded_conn, make_draft(), year=2025).invoice_number)

        assert numbers == ["2024-0001", "2024-0002", "2024-0003", "2025-0001"]
        assert database.get_last_sequence(seeded_conn, 2024) == 3

    def test_deleted_numbers_are_not_reissued(self, seeded_conn):
        create_invoice(seeded_conn, make_draft(), year=2024)
        second = create_invoice(seeded_conn, make_draft(), year=2024)

        database.delete_invoice(seeded_conn, second.id)
        third = create_invoice(seeded_conn, make_draft(), year=2024)

        assert third.invoice_number == "2024-0003"

    def test_links_timesheets_in_service_period(self, seeded_conn, sample_project):
        for entry_id, day in (("in-1", 4), ("in-2", 29), ("out", 1)):
            month = 4 if entry_id == "out" else 3
            database.insert_timesheet(
                seeded_conn,
                TimesheetEntry(
                    id=entry_id,
                    date=date(2024, month, day),
                    hours=Decimal("2"),
                    project_id=sample_project.id,
                ),
            )

        invoice = create_invoice(
            seeded_conn,
            make_draft(
                project_id=sample_project.id,
                service_period_start=date(2024, 3, 1),
                service_period_end=date(2024, 3, 31),
            ),
            year=2024,
        )

        linked = {
            e.id: e.invoice_id for e in database.list_timesheets(seeded_conn, sample_project.id)
        }
        assert linked == {"in-1": invoice.id, "in-2": invoice.id, "out": None}

    def test_overlapping_period_keeps_billed_timesheets(self, seeded_conn, sample_project):
        for entry_id, day in (("early", 4), ("late", 20)):
            database.insert_timesheet(
                seeded_conn,
                TimesheetEntry(
                    id=entry_id,
                    date=date(2024, 3, day),
                    hours=Decimal("2"),
                    project_id=sample_project.id,
                ),
            )

        first_half = create_invoice(
            seeded_conn,
            make_draft(
                project_id=sample_project.id,
                service_period_start=date(2024, 3, 1),
                service_period_end=date(2024, 3, 15),
            ),
            year=2024,
        )
        whole_month = create_invoice(
            seeded_conn,
            make_draft(
                project_id=sample_project.id,
                service_period_start=date(2024, 3, 1),
                service_period_end=date(2024, 3, 31),
            ),
            year=2024,
        )

        linked = {
            e.id: e.invoice_id for e in database.list_timesheets(seeded_conn, sample_project.id)
        }
        assert linked == {"early": first_half.id, "late": whole_month.id}

    def test_insert_below_high_water_mark_conflicts(self, seeded_conn):
        # 2024-0002 issued and deleted after a writer read its snapshot
        first = create_invoice(seeded_conn, make_draft(), year=2024)
        deleted = create_invoice(seeded_conn, make_draft(), year=2024)
        database.delete_invoice(seeded_conn, deleted.id)

        reissue = database.get_invoice(seeded_conn, first.id)
        reissue.id = "stale-writer"
        reissue.invoice_number = "2024-0002"

        with pytest.raises(InvoiceNumberConflict):
            database.insert_invoice(seeded_conn, reissue, 2024, 2)

        assert [i.invoice_number for i in database.list_invoices(seeded_conn)] == ["2024-0001"]
        assert database.get_last_sequence(seeded_conn, 2024) == 2

    def test_retries_after_conflict(self, seeded_conn, monkeypatch, no_sleep):
        create_invoice(seeded_conn, make_draft(), year=2024)

        # First snapshot is stale, as if read before a concurrent insert
        real_list = database.list_invoice_numbers
        real_last = database.get_last_sequence
        calls = {"count": 0}

        def stale_once(conn, year):
            calls["count"] += 1
            return [] if calls["count"] == 1 else real_list(conn, year)

        def stale_last_once(conn, year):
            return 0 if calls["count"] == 1 else real_last(conn, year)

        monkeypatch.setattr(database, "list_invoice_numbers", stale_once)
        monkeypatch.setattr(database, "get_last_sequence", stale_last_once)

        invoice = create_invoice(seeded_conn, make_draft(), year=2024)

        assert invoice.invoice_number == "2024-0002"
        assert len(no_sleep) == 1

    def test_conflict_surfaces_after_retries(self, seeded_conn, monkeypatch, no_sleep):
        create_invoice(seeded_conn, make_draft(), year=2024)
        monkeypatch.setattr(database, "list_invoice_numbers", lambda conn, year: [])
        monkeypatch.setattr(database, "get_last_sequence", lambda conn, year: 0)

        with pytest.raises(InvoiceNumberConflict) as exc_info:
            create_invoice(seeded_conn, make_draft(), year=2024)

        assert exc_info.value.invoice_number == "2024-0001"
        assert exc_info.value.retryable
        # Linear backoff between attempts
        assert no_sleep == [
            invoice_service.INVOICE_NUMBER_RETRY_BACKOFF * n
            for n in range(1, invoice_service.INVOICE_NUMBER_MAX_RETRIES)
        ]

    def test_conflict_leaves_no_partial_rows(self, seeded_conn, sample_project):
        invoice = create_invoice(seeded_conn, make_draft(), year=2024)
        database.insert_timesheet(
            seeded_conn,
            TimesheetEntry(id="t1", date=date(2024, 3, 4), hours=Decimal("1"), project_id=sample_project.id),
        )
        duplicate = database.get_invoice(seeded_conn, invoice.id)
        duplicate.id = "other-id"

        with pytest.raises(InvoiceNumberConflict):
            database.insert_invoice(seeded_conn, duplicate, 2024, 1, ["t1"])

        assert len(database.list_invoices(seeded_conn)) == 1
        assert database.list_timesheets(seeded_conn)[0].invoice_id is None


class TestInvoiceStatus:
    def test_progress_invoice(self, seeded_conn):
        invoice = create_invoice(seeded_conn, make_draft(status=InvoiceStatus.PENDING), year=2024)

        assert progress_invoice(seeded_conn, invoice.id).status == InvoiceStatus.SENT
        assert progress_invoice(seeded_conn, invoice.id).status == InvoiceStatus.PAID
        assert database.get_invoice(seeded_conn, invoice.id).status == InvoiceStatus.PAID

    def test_progress_missing_invoice(self, seeded_conn):
        with pytest.raises(NotFoundError):
            progress_invoice(seeded_conn, "missing")


def test_list_invoices_filters(seeded_conn):
    create_invoice(seeded_conn, make_draft(issue_date=date(2024, 1, 10)), year=2024)
    create_invoice(
        seeded_conn,
        make_draft(issue_date=date(2024, 2, 10), status=InvoiceStatus.SENT),
        year=2024,
    )

    sent = database.list_invoices(seeded_conn, [InvoiceStatus.SENT])
    february = database.list_invoices(
        seeded_conn, issued_from=date(2024, 2, 1), issued_to=date(2024, 2, 29)
    )

    assert [i.invoice_number for i in sent] == ["2024-0002"]
    assert [i.invoice_number for i in february] == ["2024-0002"]
    assert [i.invoice_number for i in database.list_invoices(seeded_conn)] == ["2024-0002", "2024-0001"]


def test_get_missing_invoice(conn):
    with pytest.raises(NotFoundError) as exc_info:
        database.get_invoice(conn, "missing")
    assert exc_info.value.entity == "Invoice"


# =============================================================================
# Projects, timesheets, expenses
# =============================================================================


def test_project_round_trip(seeded_conn, sample_project):
    project = database.get_project(seeded_conn, sample_project.id)

    assert project.hourly_rate == Decimal("85")
    assert project.estimated_hours == Decimal("40")
    assert project.client_name == "Muster GmbH"


def test_list_timesheets_attaches_project(seeded_conn, sample_project):
    database.insert_timesheet(
        seeded_conn,
        TimesheetEntry(id="t1", date=date(2024, 3, 4), hours=Decimal("7.5"), project_id=sample_project.id),
    )

    [entry] = database.list_timesheets(seeded_conn, start=date(2024, 3, 4), end=date(2024, 3, 4))

    assert entry.hours == Decimal("7.5")
    assert entry.project.hourly_rate == Decimal("85")


def test_delete_timesheet(seeded_conn, sample_project):
    database.insert_timesheet(
        seeded_conn,
        TimesheetEntry(id="t1", date=date(2024, 3, 4), hours=Decimal("1"), project_id=sample_project.id),
    )
    database.delete_timesheet(seeded_conn, "t1")

    assert database.list_timesheets(seeded_conn) == []
    with pytest.raises(NotFoundError):
        database.delete_timesheet(seeded_conn, "t1")


def test_expense_round_trip(conn):
    expense = Expense(
        id="e1",
        category=ExpenseCategory.SOFTWARE,
        description="IDE license",
        amount=Decimal("119.00"),
        date=date(2024, 3, 4),
        vat_amount=Decimal("19.00"),
        payment_method=PaymentMethod.CREDIT_CARD,
    )
    database.insert_expense(conn, expense)

    assert database.list_expenses(conn, date(2024, 3, 1), date(2024, 3, 31)) == [expense]
    assert database.list_expenses(conn, date(2024, 4, 1)) == []
