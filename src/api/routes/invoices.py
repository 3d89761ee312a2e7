"""Invoice endpoints: totals, creation, status progression and export."""

import asyncio
import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import Response

from api.dependencies import get_db, verify_api_key
from api.logging import RequestLog, finish_request_log
from api.models.requests import CreateInvoiceRequest, InvoiceTotalsRequest
from api.models.responses import ErrorCodes, InvoiceResponse, InvoiceTotalsResponse
from core import database
from core.errors import InvalidStateTransition, InvoiceNumberConflict, NotFoundError
from services.invoices import calculate_totals, create_invoice, progress_invoice
from services.reports import create_invoice_workbook, workbook_to_bytes

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", dependencies=[Depends(verify_api_key)])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def error_detail(error: str, code: str, details: list[str] | None = None) -> dict:
    return {"error": error, "code": code, "details": details or []}


@router.post("/invoices/totals", response_model=InvoiceTotalsResponse)
async def invoice_totals_endpoint(payload: InvoiceTotalsRequest):
    """Preview subtotal, VAT and total for a set of line items."""
    items = [item.to_line_item() for item in payload.items]
    return InvoiceTotalsResponse.model_validate(calculate_totals(items, payload.vat_rate))


@router.post(
    "/invoices",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice_endpoint(
    request: Request,
    payload: CreateInvoiceRequest,
    conn: sqlite3.Connection = Depends(get_db),
):
    """
    Create an invoice with the next invoice number for the current year.

    Timesheets of the project within the service period are linked to it.
    """
    request_log = RequestLog(
        endpoint="/v1/invoices",
        method="POST",
        client_ip=get_client_ip(request),
    )

    try:
        try:
            database.get_client(conn, payload.client_id)
        except NotFoundError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=error_detail("Unknown client", ErrorCodes.INVALID_REQUEST, [str(e)]),
            )
        if payload.project_id:
            try:
                database.get_project(conn, payload.project_id)
            except NotFoundError as e:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=error_detail("Unknown project", ErrorCodes.INVALID_REQUEST, [str(e)]),
                )

        # blocking: conflict retries sleep between attempts
        invoice = await asyncio.to_thread(create_invoice, conn, payload.to_draft())
        invoice = database.get_invoice(conn, invoice.id)

        request_log.status_code = 201
        request_log.invoice_id = invoice.id
        request_log.invoice_number = invoice.invoice_number
        return InvoiceResponse.model_validate(invoice)

    except HTTPException as e:
        request_log.fail_from_http(e)
        raise

    except InvoiceNumberConflict as e:
        request_log.fail(409, ErrorCodes.INVOICE_NUMBER_CONFLICT, str(e))
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_detail(
                "Invoice number conflict, please retry",
                ErrorCodes.INVOICE_NUMBER_CONFLICT,
                [e.invoice_number],
            ),
        )

    except Exception as e:
        request_log.fail(500, ErrorCodes.INTERNAL_ERROR, str(e))
        logger.exception("Invoice creation failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("Internal server error", ErrorCodes.INTERNAL_ERROR),
        )

    finally:
        finish_request_log(conn, request_log)


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice_endpoint(invoice_id: str, conn: sqlite3.Connection = Depends(get_db)):
    try:
        return InvoiceResponse.model_validate(database.get_invoice(conn, invoice_id))
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail("Invoice not found", ErrorCodes.NOT_FOUND, [str(e)]),
        )


@router.patch("/invoices/{invoice_id}/status", response_model=InvoiceResponse)
async def progress_invoice_status_endpoint(
    request: Request,
    invoice_id: str,
    conn: sqlite3.Connection = Depends(get_db),
):
    """Advance the invoice one step: PENDING -> SENT -> PAID."""
    request_log = RequestLog(
        endpoint="/v1/invoices/{invoice_id}/status",
        method="PATCH",
        client_ip=get_client_ip(request),
        invoice_id=invoice_id,
    )

    try:
        invoice = progress_invoice(conn, invoice_id)
        request_log.status_code = 200
        request_log.invoice_number = invoice.invoice_number
        request_log.details.append(("status_change", invoice.status.value))
        return InvoiceResponse.model_validate(invoice)

    except NotFoundError as e:
        request_log.fail(404, ErrorCodes.NOT_FOUND, str(e))
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail("Invoice not found", ErrorCodes.NOT_FOUND, [str(e)]),
        )

    except InvalidStateTransition as e:
        request_log.fail(400, ErrorCodes.INVALID_STATE_TRANSITION, e.message)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail(
                e.message,
                ErrorCodes.INVALID_STATE_TRANSITION,
                [f"Current status: {e.current}"],
            ),
        )

    finally:
        finish_request_log(conn, request_log)


@router.delete("/invoices/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice_endpoint(invoice_id: str, conn: sqlite3.Connection = Depends(get_db)):
    """Delete an invoice. Its number is retired, not reissued."""
    try:
        database.delete_invoice(conn, invoice_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail("Invoice not found", ErrorCodes.NOT_FOUND, [str(e)]),
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/invoices/{invoice_id}/export")
async def export_invoice_endpoint(invoice_id: str, conn: sqlite3.Connection = Depends(get_db)):
    """Download the invoice as an Excel workbook."""
    try:
        invoice = database.get_invoice(conn, invoice_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail("Invoice not found", ErrorCodes.NOT_FOUND, [str(e)]),
        )

    excel_bytes = await asyncio.to_thread(
        lambda: workbook_to_bytes(create_invoice_workbook(invoice))
    )
    return Response(
        content=excel_bytes,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="invoice_{invoice.invoice_number}.xlsx"'
        },
    )
