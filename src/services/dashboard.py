"""
Dashboard summary: monthly revenue, expenses and profit, pending invoices,
and per-project hours and earnings.
"""

import sqlite3
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from core import database
from core.config import DASHBOARD_PROJECT_LIMIT, PENDING_INVOICE_LIMIT
from core.money import HUNDRED, ZERO, round_hours, round_money, round_percent, to_decimal
from models.expenses import Expense
from models.invoices import Invoice, InvoiceStatus
from models.timesheets import Project, ProjectStatus, TimesheetEntry, WeeklyHoursSummary
from services.timesheets import get_month_bounds, get_week_bounds, group_by_week, total_hours

PENDING_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.OVERDUE, InvoiceStatus.DRAFT)


@dataclass
class MonthlySummary:
    monthly_revenue: Decimal
    monthly_expenses: Decimal
    monthly_profit: Decimal
    profit_margin: Decimal
    revenue_change: Decimal
    expense_change: Decimal


@dataclass
class ProjectOverview:
    id: str
    name: str
    client_name: str | None
    hourly_rate: Decimal
    total_hours: Decimal
    estimated_hours: Decimal | None
    earnings: Decimal
    progress: int | None


@dataclass
class Dashboard:
    summary: MonthlySummary
    weekly_hours: WeeklyHoursSummary
    pending_invoices: list[Invoice] = field(default_factory=list)
    projects_overview: list[ProjectOverview] = field(default_factory=list)


# =============================================================================
# CALCULATIONS
# =============================================================================


def previous_month(year: int, month: int) -> tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def revenue_for_period(invoices: list[Invoice], start: date, end: date) -> Decimal:
    """Total of PAID invoices issued within [start, end]."""
    return sum(
        (
            to_decimal(inv.total)
            for inv in invoices
            if inv.status == InvoiceStatus.PAID and start <= inv.issue_date <= end
        ),
        ZERO,
    )


def expenses_for_period(expenses: list[Expense], start: date, end: date) -> Decimal:
    return sum((to_decimal(e.amount) for e in expenses if start <= e.date <= end), ZERO)


def percent_change(current: Decimal, previous: Decimal) -> Decimal:
    """Change relative to previous, in percent; 0 when there is no baseline."""
    if previous <= 0:
        return round_percent(ZERO)
    return round_percent((current - previous) / previous * HUNDRED)


def summarize_month(
    invoices: list[Invoice], expenses: list[Expense], year: int, month: int
) -> MonthlySummary:
    start, end = get_month_bounds(year, month)
    prev_start, prev_end = get_month_bounds(*previous_month(year, month))

    revenue = revenue_for_period(invoices, start, end)
    spent = expenses_for_period(expenses, start, end)
    profit = revenue - spent
    margin = profit / revenue * HUNDRED if revenue > 0 else ZERO

    return MonthlySummary(
        monthly_revenue=round_money(revenue),
        monthly_expenses=round_money(spent),
        monthly_profit=round_money(profit),
        profit_margin=round_percent(margin),
        revenue_change=percent_change(revenue, revenue_for_period(invoices, prev_start, prev_end)),
        expense_change=percent_change(spent, expenses_for_period(expenses, prev_start, prev_end)),
    )


def select_pending_invoices(
    invoices: list[Invoice], limit: int = PENDING_INVOICE_LIMIT
) -> list[Invoice]:
    """Unpaid invoices (sent, overdue, draft) ordered by due date."""
    pending = [inv for inv in invoices if inv.status in PENDING_STATUSES]
    return sorted(pending, key=lambda inv: inv.due_date)[:limit]


def project_overview(project: Project, entries: list[TimesheetEntry]) -> ProjectOverview:
    hours = total_hours([e for e in entries if e.project_id == project.id])
    rate = to_decimal(project.hourly_rate)

    progress = None
    if project.estimated_hours:
        estimated = to_decimal(project.estimated_hours)
        ratio = min(hours / estimated * HUNDRED, HUNDRED)
        progress = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return ProjectOverview(
        id=project.id,
        name=project.name,
        client_name=project.client_name,
        hourly_rate=rate,
        total_hours=round_hours(hours),
        estimated_hours=project.estimated_hours,
        earnings=round_money(hours * rate),
        progress=progress,
    )


# =============================================================================
# ASSEMBLY
# =============================================================================


def build_dashboard(conn: sqlite3.Connection, today: date | None = None) -> Dashboard:
    """Gather the dashboard for the month and week containing today."""
    if today is None:
        today = date.today()
    prev_year, prev_month = previous_month(today.year, today.month)
    window_start, _ = get_month_bounds(prev_year, prev_month)
    _, window_end = get_month_bounds(today.year, today.month)

    invoices = database.list_invoices(conn, issued_from=window_start, issued_to=window_end)
    expenses = database.list_expenses(conn, window_start, window_end)
    summary = summarize_month(invoices, expenses, today.year, today.month)

    week_start, week_end = get_week_bounds(today)
    week_entries = database.list_timesheets(conn, start=week_start, end=week_end)

    projects = database.list_projects(conn, ProjectStatus.ACTIVE, limit=DASHBOARD_PROJECT_LIMIT)
    overviews = [
        project_overview(project, database.list_timesheets(conn, project_id=project.id))
        for project in projects
    ]

    return Dashboard(
        summary=summary,
        weekly_hours=group_by_week(week_entries, today),
        pending_invoices=select_pending_invoices(database.list_invoices(conn, PENDING_STATUSES)),
        projects_overview=overviews,
    )
