"""
SQLite database operations for clients, projects, timesheets, invoices and expenses.

Decimal values are stored as TEXT so amounts survive a round trip exactly;
dates are stored as ISO strings.
"""

import json
import logging
import sqlite3
from datetime import date
from decimal import Decimal
from pathlib import Path

from core.config import DB_PATH
from core.errors import InvoiceNumberConflict, NotFoundError
from models.expenses import Expense, ExpenseCategory, PaymentMethod
from models.invoices import Client, Invoice, InvoiceStatus, LineItem
from models.timesheets import Project, ProjectStatus, TimesheetEntry

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS clients (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT,
    phone TEXT,
    address TEXT,
    create_date TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    hourly_rate TEXT NOT NULL,
    estimated_hours TEXT,
    status TEXT NOT NULL DEFAULT 'ACTIVE'
        CHECK(status IN ('ACTIVE', 'COMPLETED', 'ON_HOLD', 'ARCHIVED')),
    client_id TEXT REFERENCES clients(id),
    create_date TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS invoices (
    id TEXT PRIMARY KEY,
    invoice_number TEXT UNIQUE NOT NULL,
    client_id TEXT NOT NULL REFERENCES clients(id),
    project_id TEXT REFERENCES projects(id),
    issue_date TEXT NOT NULL,
    due_date TEXT NOT NULL,
    items TEXT NOT NULL,
    subtotal TEXT NOT NULL,
    vat_rate TEXT NOT NULL,
    vat_amount TEXT NOT NULL,
    total TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'DRAFT'
        CHECK(status IN ('DRAFT', 'PENDING', 'SENT', 'PAID', 'OVERDUE', 'CANCELLED')),
    notes TEXT,
    service_period_start TEXT,
    service_period_end TEXT,
    create_date TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Highest sequence ever issued per year, so deleted numbers are never reissued
CREATE TABLE IF NOT EXISTS invoice_sequences (
    year INTEGER PRIMARY KEY,
    last_sequence INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS timesheets (
    id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    hours TEXT NOT NULL,
    description TEXT,
    invoice_id TEXT REFERENCES invoices(id) ON DELETE SET NULL,
    create_date TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    category TEXT NOT NULL,
    description TEXT NOT NULL,
    amount TEXT NOT NULL,
    vat_amount TEXT,
    date TEXT NOT NULL,
    receipt_url TEXT,
    payment_method TEXT,
    vendor_name TEXT,
    create_date TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS api_requests (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    request_id TEXT UNIQUE NOT NULL,
    timestamp TEXT NOT NULL,
    endpoint TEXT NOT NULL,
    method TEXT NOT NULL,
    client_ip TEXT,
    status_code INTEGER NOT NULL,
    error_code TEXT,
    error_message TEXT,
    processing_time_ms INTEGER NOT NULL,
    invoice_id TEXT,
    invoice_number TEXT
);

CREATE TABLE IF NOT EXISTS api_request_details (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    request_id TEXT NOT NULL,
    detail_type TEXT NOT NULL CHECK(detail_type IN ('validation_error', 'status_change', 'warning')),
    message TEXT NOT NULL,
    FOREIGN KEY (request_id) REFERENCES api_requests(request_id)
);

CREATE INDEX IF NOT EXISTS idx_timesheets_project_date ON timesheets(project_id, date);
CREATE INDEX IF NOT EXISTS idx_invoices_issue_date ON invoices(issue_date);
CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);
CREATE INDEX IF NOT EXISTS idx_api_requests_timestamp ON api_requests(timestamp);
CREATE INDEX IF NOT EXISTS idx_api_request_details_request ON api_request_details(request_id);
"""


# =============================================================================
# CONNECTION
# =============================================================================


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Get a database connection with Row access and foreign keys enabled."""
    conn = sqlite3.connect(db_path or DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def create_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes if they don't exist."""
    conn.executescript(SCHEMA)
    conn.commit()


def _decimal(value: str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


def _date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


# =============================================================================
# CLIENTS & PROJECTS
# =============================================================================


def insert_client(conn: sqlite3.Connection, client: Client) -> None:
    with conn:
        conn.execute(
            "INSERT INTO clients (id, name, email, phone, address) VALUES (?, ?, ?, ?, ?)",
            (client.id, client.name, client.email, client.phone, client.address),
        )


def get_client(conn: sqlite3.Connection, client_id: str) -> Client:
    row = conn.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
    if row is None:
        raise NotFoundError("Client", client_id)
    return Client(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        phone=row["phone"],
        address=row["address"],
    )


def insert_project(conn: sqlite3.Connection, project: Project) -> None:
    with conn:
        conn.execute(
            """
            INSERT INTO projects (
                id, name, description, hourly_rate, estimated_hours, status, client_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                project.id,
                project.name,
                project.description,
                str(project.hourly_rate),
                str(project.estimated_hours) if project.estimated_hours is not None else None,
                ProjectStatus(project.status).value,
                project.client_id,
            ),
        )


def _project_from_row(row: sqlite3.Row) -> Project:
    return Project(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        hourly_rate=Decimal(row["hourly_rate"]),
        estimated_hours=_decimal(row["estimated_hours"]),
        status=ProjectStatus(row["status"]),
        client_id=row["client_id"],
        client_name=row["client_name"],
    )


_PROJECT_SELECT = """
    SELECT p.*, c.name AS client_name
    FROM projects p LEFT JOIN clients c ON c.id = p.client_id
"""


def get_project(conn: sqlite3.Connection, project_id: str) -> Project:
    row = conn.execute(_PROJECT_SELECT + " WHERE p.id = ?", (project_id,)).fetchone()
    if row is None:
        raise NotFoundError("Project", project_id)
    return _project_from_row(row)


def list_projects(
    conn: sqlite3.Connection,
    status: ProjectStatus | None = None,
    limit: int | None = None,
) -> list[Project]:
    query = _PROJECT_SELECT
    params: list = []
    if status is not None:
        query += " WHERE p.status = ?"
        params.append(ProjectStatus(status).value)
    query += " ORDER BY p.name"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)
    return [_project_from_row(row) for row in conn.execute(query, params)]


# =============================================================================
# TIMESHEETS
# =============================================================================


def insert_timesheet(conn: sqlite3.Connection, entry: TimesheetEntry) -> None:
    with conn:
        conn.execute(
            """
            INSERT INTO timesheets (id, project_id, date, hours, description, invoice_id)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                entry.id,
                entry.project_id,
                _iso(entry.date),
                str(entry.hours),
                entry.description,
                entry.invoice_id,
            ),
        )


def list_timesheets(
    conn: sqlite3.Connection,
    project_id: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[TimesheetEntry]:
    """Fetch entries (with their project) ordered by date; bounds are inclusive."""
    query = """
        SELECT t.id AS entry_id, t.date, t.hours, t.description AS entry_description,
               t.invoice_id, p.*, c.name AS client_name
        FROM timesheets t
        JOIN projects p ON p.id = t.project_id
        LEFT JOIN clients c ON c.id = p.client_id
    """
    conditions = []
    params: list = []
    if project_id:
        conditions.append("t.project_id = ?")
        params.append(project_id)
    if start:
        conditions.append("t.date >= ?")
        params.append(start.isoformat())
    if end:
        conditions.append("t.date <= ?")
        params.append(end.isoformat())
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY t.date, t.id"

    entries = []
    for row in conn.execute(query, params):
        project = _project_from_row(row)
        entries.append(
            TimesheetEntry(
                id=row["entry_id"],
                date=date.fromisoformat(row["date"]),
                hours=Decimal(row["hours"]),
                description=row["entry_description"],
                project_id=project.id,
                project=project,
                invoice_id=row["invoice_id"],
            )
        )
    return entries


def delete_timesheet(conn: sqlite3.Connection, entry_id: str) -> None:
    with conn:
        cursor = conn.execute("DELETE FROM timesheets WHERE id = ?", (entry_id,))
    if cursor.rowcount == 0:
        raise NotFoundError("Timesheet", entry_id)


# =============================================================================
# INVOICES
# =============================================================================


def list_invoice_numbers(conn: sqlite3.Connection, year: int) -> list[str]:
    """All invoice numbers issued for a year (snapshot used for sequencing)."""
    rows = conn.execute(
        "SELECT invoice_number FROM invoices WHERE invoice_number LIKE ?",
        (f"{year}-%",),
    ).fetchall()
    return [row["invoice_number"] for row in rows]


def get_last_sequence(conn: sqlite3.Connection, year: int) -> int:
    """Highest sequence ever issued for a year, including deleted invoices."""
    row = conn.execute(
        "SELECT last_sequence FROM invoice_sequences WHERE year = ?", (year,)
    ).fetchone()
    return row["last_sequence"] if row else 0


def _items_to_json(items: list[LineItem]) -> str:
    return json.dumps(
        [
            {
                "description": item.description,
                "quantity": str(item.quantity),
                "rate": str(item.rate),
                "amount": str(item.amount),
            }
            for item in items
        ]
    )


def _items_from_json(raw: str) -> list[LineItem]:
    return [
        LineItem(
            description=item["description"],
            quantity=Decimal(item["quantity"]),
            rate=Decimal(item["rate"]),
            amount=Decimal(item["amount"]),
        )
        for item in json.loads(raw)
    ]


def insert_invoice(
    conn: sqlite3.Connection,
    invoice: Invoice,
    year: int,
    sequence: int,
    timesheet_ids: list[str] | None = None,
) -> None:
    """
    Insert an invoice, record its sequence and link timesheets in one transaction.

    The sequence must be above the year's high-water mark at write time. The
    high-water upsert is the first write, so the check and the insert share
    one write lock. Only timesheets not yet on an invoice are linked.

    Raises:
        InvoiceNumberConflict: the number was issued or taken by another writer
    """
    try:
        with conn:
            cursor = conn.execute(
                """
                INSERT INTO invoice_sequences (year, last_sequence) VALUES (?, ?)
                ON CONFLICT(year) DO UPDATE
                SET last_sequence = excluded.last_sequence
                WHERE excluded.last_sequence > last_sequence
                """,
                (year, sequence),
            )
            if cursor.rowcount == 0:
                logger.warning(
                    "Invoice number %s is at or below the %d high-water mark",
                    invoice.invoice_number,
                    year,
                )
                raise InvoiceNumberConflict(invoice.invoice_number)
            conn.execute(
                """
                INSERT INTO invoices (
                    id, invoice_number, client_id, project_id, issue_date, due_date,
                    items, subtotal, vat_rate, vat_amount, total, status, notes,
                    service_period_start, service_period_end
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    invoice.id,
                    invoice.invoice_number,
                    invoice.client_id,
                    invoice.project_id,
                    _iso(invoice.issue_date),
                    _iso(invoice.due_date),
                    _items_to_json(invoice.items),
                    str(invoice.subtotal),
                    str(invoice.vat_rate),
                    str(invoice.vat_amount),
                    str(invoice.total),
                    InvoiceStatus(invoice.status).value,
                    invoice.notes,
                    _iso(invoice.service_period_start),
                    _iso(invoice.service_period_end),
                ),
            )
            for entry_id in timesheet_ids or []:
                conn.execute(
                    "UPDATE timesheets SET invoice_id = ? WHERE id = ? AND invoice_id IS NULL",
                    (invoice.id, entry_id),
                )
    except sqlite3.IntegrityError as e:
        if "invoices.invoice_number" in str(e):
            logger.warning("Invoice number %s already taken", invoice.invoice_number)
            raise InvoiceNumberConflict(invoice.invoice_number) from e
        raise


def _invoice_from_row(row: sqlite3.Row) -> Invoice:
    return Invoice(
        id=row["id"],
        invoice_number=row["invoice_number"],
        client_id=row["client_id"],
        project_id=row["project_id"],
        issue_date=date.fromisoformat(row["issue_date"]),
        due_date=date.fromisoformat(row["due_date"]),
        items=_items_from_json(row["items"]),
        subtotal=Decimal(row["subtotal"]),
        vat_rate=Decimal(row["vat_rate"]),
        vat_amount=Decimal(row["vat_amount"]),
        total=Decimal(row["total"]),
        status=InvoiceStatus(row["status"]),
        notes=row["notes"],
        service_period_start=_date(row["service_period_start"]),
        service_period_end=_date(row["service_period_end"]),
        client_name=row["client_name"],
        project_name=row["project_name"],
    )


_INVOICE_SELECT = """
    SELECT i.*, c.name AS client_name, p.name AS project_name
    FROM invoices i
    LEFT JOIN clients c ON c.id = i.client_id
    LEFT JOIN projects p ON p.id = i.project_id
"""


def get_invoice(conn: sqlite3.Connection, invoice_id: str) -> Invoice:
    row = conn.execute(_INVOICE_SELECT + " WHERE i.id = ?", (invoice_id,)).fetchone()
    if row is None:
        raise NotFoundError("Invoice", invoice_id)
    return _invoice_from_row(row)


def list_invoices(
    conn: sqlite3.Connection,
    statuses: list[InvoiceStatus] | None = None,
    issued_from: date | None = None,
    issued_to: date | None = None,
) -> list[Invoice]:
    """Invoices ordered by issue date, newest first."""
    conditions = []
    params: list = []
    if statuses:
        conditions.append(f"i.status IN ({', '.join('?' for _ in statuses)})")
        params.extend(InvoiceStatus(s).value for s in statuses)
    if issued_from:
        conditions.append("i.issue_date >= ?")
        params.append(issued_from.isoformat())
    if issued_to:
        conditions.append("i.issue_date <= ?")
        params.append(issued_to.isoformat())

    query = _INVOICE_SELECT
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY i.issue_date DESC, i.invoice_number DESC"
    return [_invoice_from_row(row) for row in conn.execute(query, params)]


def update_invoice_status(
    conn: sqlite3.Connection, invoice_id: str, status: InvoiceStatus
) -> None:
    with conn:
        cursor = conn.execute(
            "UPDATE invoices SET status = ? WHERE id = ?",
            (InvoiceStatus(status).value, invoice_id),
        )
    if cursor.rowcount == 0:
        raise NotFoundError("Invoice", invoice_id)


def delete_invoice(conn: sqlite3.Connection, invoice_id: str) -> None:
    """Delete an invoice; its number stays retired via invoice_sequences."""
    with conn:
        cursor = conn.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,))
    if cursor.rowcount == 0:
        raise NotFoundError("Invoice", invoice_id)


# =============================================================================
# EXPENSES
# =============================================================================


def insert_expense(conn: sqlite3.Connection, expense: Expense) -> None:
    with conn:
        conn.execute(
            """
            INSERT INTO expenses (
                id, category, description, amount, vat_amount, date,
                receipt_url, payment_method, vendor_name
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                expense.id,
                ExpenseCategory(expense.category).value,
                expense.description,
                str(expense.amount),
                str(expense.vat_amount) if expense.vat_amount is not None else None,
                _iso(expense.date),
                expense.receipt_url,
                PaymentMethod(expense.payment_method).value if expense.payment_method else None,
                expense.vendor_name,
            ),
        )


def list_expenses(
    conn: sqlite3.Connection, start: date | None = None, end: date | None = None
) -> list[Expense]:
    conditions = []
    params: list = []
    if start:
        conditions.append("date >= ?")
        params.append(start.isoformat())
    if end:
        conditions.append("date <= ?")
        params.append(end.isoformat())
    query = "SELECT * FROM expenses"
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY date"

    return [
        Expense(
            id=row["id"],
            category=ExpenseCategory(row["category"]),
            description=row["description"],
            amount=Decimal(row["amount"]),
            vat_amount=_decimal(row["vat_amount"]),
            date=date.fromisoformat(row["date"]),
            receipt_url=row["receipt_url"],
            payment_method=PaymentMethod(row["payment_method"]) if row["payment_method"] else None,
            vendor_name=row["vendor_name"],
        )
        for row in conn.execute(query, params)
    ]
