"""Dashboard overview endpoint."""

import sqlite3
from datetime import date

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_db, verify_api_key
from api.models.responses import DashboardResponse
from services.dashboard import build_dashboard

router = APIRouter(prefix="/v1", dependencies=[Depends(verify_api_key)])


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard_endpoint(
    today: date | None = Query(default=None, alias="date"),
    conn: sqlite3.Connection = Depends(get_db),
):
    """Revenue, expenses, this week's hours, pending invoices and active projects."""
    return DashboardResponse.model_validate(build_dashboard(conn, today))
