"""Pydantic request models; all payload validation happens here, not in services."""

import uuid
from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from core.config import DEFAULT_VAT_RATE, MAX_HOURS_PER_ENTRY
from models.invoices import InvoiceDraft, InvoiceStatus, LineItem
from models.timesheets import TimesheetEntry


class LineItemRequest(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0)
    rate: Decimal = Field(..., ge=0)
    amount: Decimal = Field(..., ge=0)

    def to_line_item(self) -> LineItem:
        return LineItem(
            description=self.description,
            quantity=self.quantity,
            rate=self.rate,
            amount=self.amount,
        )


class InvoiceTotalsRequest(BaseModel):
    items: list[LineItemRequest] = []
    vat_rate: Decimal = Field(default=DEFAULT_VAT_RATE, ge=0, le=100)


class CreateInvoiceRequest(BaseModel):
    client_id: str = Field(..., min_length=1)
    project_id: str | None = None
    issue_date: date
    due_date: date
    items: list[LineItemRequest] = Field(..., min_length=1)
    vat_rate: Decimal = Field(default=DEFAULT_VAT_RATE, ge=0, le=100)
    notes: str | None = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    service_period_start: date | None = None
    service_period_end: date | None = None

    @model_validator(mode="after")
    def _check_service_period(self):
        start, end = self.service_period_start, self.service_period_end
        if (start is None) != (end is None):
            raise ValueError("Both service period start and end dates must be provided")
        if start and end and end < start:
            raise ValueError("Service period end date must be after or equal to start date")
        return self

    def to_draft(self) -> InvoiceDraft:
        return InvoiceDraft(
            client_id=self.client_id,
            project_id=self.project_id,
            issue_date=self.issue_date,
            due_date=self.due_date,
            items=[item.to_line_item() for item in self.items],
            vat_rate=self.vat_rate,
            notes=self.notes,
            status=self.status,
            service_period_start=self.service_period_start,
            service_period_end=self.service_period_end,
        )


class VatSplitRequest(BaseModel):
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    rate: Decimal = Field(default=DEFAULT_VAT_RATE, ge=0, le=100)
    basis: Literal["gross", "net"] = "gross"


class CreateTimesheetRequest(BaseModel):
    project_id: str = Field(..., min_length=1)
    date: date
    hours: Decimal = Field(..., gt=0, le=MAX_HOURS_PER_ENTRY)
    description: str | None = None

    def to_entry(self) -> TimesheetEntry:
        return TimesheetEntry(
            id=str(uuid.uuid4()),
            project_id=self.project_id,
            date=self.date,
            hours=self.hours,
            description=self.description,
        )
