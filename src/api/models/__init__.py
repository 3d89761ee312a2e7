"""API Pydantic models."""

from .requests import (
    CreateInvoiceRequest,
    CreateTimesheetRequest,
    InvoiceTotalsRequest,
    LineItemRequest,
    VatSplitRequest,
)
from .responses import ErrorCodes, ErrorResponse, HealthResponse

__all__ = [
    "HealthResponse",
    "ErrorResponse",
    "ErrorCodes",
    "LineItemRequest",
    "InvoiceTotalsRequest",
    "CreateInvoiceRequest",
    "CreateTimesheetRequest",
    "VatSplitRequest",
]
