"""API route modules."""

from .dashboard import router as dashboard_router
from .health import router as health_router
from .invoices import router as invoices_router
from .timesheets import router as timesheets_router
from .vat import router as vat_router

__all__ = [
    "health_router",
    "invoices_router",
    "timesheets_router",
    "vat_router",
    "dashboard_router",
]
