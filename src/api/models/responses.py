"""Pydantic response models for API endpoints."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from models.invoices import InvoiceStatus


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"
    INVOICE_NUMBER_CONFLICT = "INVOICE_NUMBER_CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class LineItemResponse(_FromAttributes):
    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal


class InvoiceTotalsResponse(_FromAttributes):
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal


class InvoiceResponse(_FromAttributes):
    id: str
    invoice_number: str
    client_id: str
    client_name: str | None = None
    project_id: str | None = None
    project_name: str | None = None
    issue_date: date
    due_date: date
    items: list[LineItemResponse]
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal
    status: InvoiceStatus
    notes: str | None = None
    service_period_start: date | None = None
    service_period_end: date | None = None


class VatBreakdownResponse(_FromAttributes):
    net: Decimal
    vat: Decimal
    gross: Decimal
    rate: Decimal


class DailyHoursResponse(_FromAttributes):
    date: date
    day_name: str
    hours: Decimal


class WeeklyHoursResponse(_FromAttributes):
    week_number: int
    year: int
    start_date: date
    end_date: date
    total_hours: Decimal
    daily_breakdown: list[DailyHoursResponse]


class MonthlyHoursResponse(_FromAttributes):
    month: int
    year: int
    total_hours: Decimal
    weekly_breakdown: list[WeeklyHoursResponse]


class TimesheetEntryResponse(_FromAttributes):
    id: str
    date: date
    hours: Decimal
    project_id: str
    description: str | None = None
    invoice_id: str | None = None


class MonthlySummaryResponse(_FromAttributes):
    monthly_revenue: Decimal
    monthly_expenses: Decimal
    monthly_profit: Decimal
    profit_margin: Decimal
    revenue_change: Decimal
    expense_change: Decimal


class ProjectOverviewResponse(_FromAttributes):
    id: str
    name: str
    client_name: str | None = None
    hourly_rate: Decimal
    total_hours: Decimal
    estimated_hours: Decimal | None = None
    earnings: Decimal
    progress: int | None = None


class PendingInvoiceResponse(_FromAttributes):
    id: str
    invoice_number: str
    client_name: str | None = None
    total: Decimal
    due_date: date
    status: InvoiceStatus


class DashboardResponse(_FromAttributes):
    summary: MonthlySummaryResponse
    weekly_hours: WeeklyHoursResponse
    pending_invoices: list[PendingInvoiceResponse]
    projects_overview: list[ProjectOverviewResponse]
