"""
Data models for invoices and their line items.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    SENT = "SENT"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


@dataclass
class LineItem:
    """Invoice line. `amount` is authoritative and may differ from quantity * rate."""

    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal


@dataclass
class InvoiceTotals:
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal


@dataclass
class Client:
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None


@dataclass
class InvoiceDraft:
    """Validated input for creating an invoice."""

    client_id: str
    issue_date: date
    due_date: date
    items: list[LineItem]
    vat_rate: Decimal
    project_id: str | None = None
    notes: str | None = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    service_period_start: date | None = None
    service_period_end: date | None = None


@dataclass
class Invoice:
    id: str
    invoice_number: str
    client_id: str
    issue_date: date
    due_date: date
    subtotal: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total: Decimal
    status: InvoiceStatus = InvoiceStatus.DRAFT
    items: list[LineItem] = field(default_factory=list)
    project_id: str | None = None
    notes: str | None = None
    service_period_start: date | None = None
    service_period_end: date | None = None
    client_name: str | None = None
    project_name: str | None = None

    @property
    def totals(self) -> InvoiceTotals:
        return InvoiceTotals(
            subtotal=self.subtotal,
            vat_rate=self.vat_rate,
            vat_amount=self.vat_amount,
            total=self.total,
        )
