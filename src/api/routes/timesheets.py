"""Timesheet endpoints: time entries and weekly/monthly hour summaries."""

import asyncio
import logging
import sqlite3
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from api.dependencies import get_db, verify_api_key
from api.models.requests import CreateTimesheetRequest
from api.models.responses import (
    ErrorCodes,
    MonthlyHoursResponse,
    TimesheetEntryResponse,
    WeeklyHoursResponse,
)
from api.routes.invoices import XLSX_MEDIA_TYPE, error_detail
from core import database
from core.errors import NotFoundError
from models.timesheets import MonthlyHoursSummary
from services.reports import create_monthly_hours_workbook, workbook_to_bytes
from services.timesheets import get_month_bounds, get_week_bounds, group_by_month, group_by_week

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/timesheets", dependencies=[Depends(verify_api_key)])


def _monthly_summary(
    conn: sqlite3.Connection, year: int, month: int, project_id: str | None
) -> MonthlyHoursSummary:
    month_start, month_end = get_month_bounds(year, month)
    # Boundary weeks reach into the neighbouring months
    first_day, _ = get_week_bounds(month_start)
    _, last_day = get_week_bounds(month_end)
    entries = database.list_timesheets(conn, project_id, first_day, last_day)
    return group_by_month(entries, year, month)


@router.post("", response_model=TimesheetEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_timesheet_endpoint(
    payload: CreateTimesheetRequest,
    conn: sqlite3.Connection = Depends(get_db),
):
    try:
        database.get_project(conn, payload.project_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail("Unknown project", ErrorCodes.INVALID_REQUEST, [str(e)]),
        )

    entry = payload.to_entry()
    database.insert_timesheet(conn, entry)
    logger.info("Logged %s hours on %s for project %s", entry.hours, entry.date, entry.project_id)
    return TimesheetEntryResponse.model_validate(entry)


@router.get("", response_model=list[TimesheetEntryResponse])
async def list_timesheets_endpoint(
    start: date | None = None,
    end: date | None = None,
    project_id: str | None = None,
    conn: sqlite3.Connection = Depends(get_db),
):
    entries = database.list_timesheets(conn, project_id, start, end)
    return [TimesheetEntryResponse.model_validate(entry) for entry in entries]


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_timesheet_endpoint(entry_id: str, conn: sqlite3.Connection = Depends(get_db)):
    try:
        database.delete_timesheet(conn, entry_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail("Timesheet entry not found", ErrorCodes.NOT_FOUND, [str(e)]),
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/weekly", response_model=WeeklyHoursResponse)
async def weekly_hours_endpoint(
    reference_date: date | None = Query(default=None, alias="date"),
    project_id: str | None = None,
    conn: sqlite3.Connection = Depends(get_db),
):
    """Hours per day for the Monday-start week containing `date` (default today)."""
    reference_date = reference_date or date.today()
    week_start, week_end = get_week_bounds(reference_date)
    entries = database.list_timesheets(conn, project_id, week_start, week_end)
    return WeeklyHoursResponse.model_validate(group_by_week(entries, reference_date))


@router.get("/monthly", response_model=MonthlyHoursResponse)
async def monthly_hours_endpoint(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    project_id: str | None = None,
    conn: sqlite3.Connection = Depends(get_db),
):
    """Weekly breakdown for every week overlapping the month."""
    return MonthlyHoursResponse.model_validate(_monthly_summary(conn, year, month, project_id))


@router.get("/monthly/export")
async def export_monthly_hours_endpoint(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
    project_id: str | None = None,
    conn: sqlite3.Connection = Depends(get_db),
):
    """Download the monthly hours report as an Excel workbook."""
    summary = _monthly_summary(conn, year, month, project_id)
    excel_bytes = await asyncio.to_thread(
        lambda: workbook_to_bytes(create_monthly_hours_workbook(summary))
    )
    return Response(
        content=excel_bytes,
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="hours_{year}-{month:02d}.xlsx"'
        },
    )
