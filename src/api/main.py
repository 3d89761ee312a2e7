"""FastAPI application for the freelancer dashboard."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models.responses import ErrorCodes, ErrorResponse
from api.routes import (
    dashboard_router,
    health_router,
    invoices_router,
    timesheets_router,
    vat_router,
)
from core import config

logger = logging.getLogger(__name__)

ROUTERS = (health_router, invoices_router, timesheets_router, vat_router, dashboard_router)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not config.DB_PATH.exists():
        logger.warning("Database not found at %s, run scripts/init_db.py", config.DB_PATH)
    if not config.DASHBOARD_API_KEY:
        logger.warning("DASHBOARD_API_KEY is not set, all /v1 requests will fail")
    logger.info("Freelancer Dashboard API %s started", config.API_VERSION)
    yield


async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """Answer any uncaught exception with the standard error body."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = ErrorResponse(error="Internal server error", code=ErrorCodes.INTERNAL_ERROR)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(),
    )


def create_app() -> FastAPI:
    config.configure_logging()

    application = FastAPI(
        title="Freelancer Dashboard API",
        description="Invoices, timesheets, VAT splits and the weekly/monthly dashboard",
        version=config.API_VERSION,
        debug=config.API_DEBUG,
        lifespan=lifespan,
    )

    # Browser clients on other origins during local development
    if config.API_DEBUG:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    application.add_exception_handler(Exception, unhandled_error)
    for router in ROUTERS:
        application.include_router(router)
    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host=config.API_HOST, port=config.API_PORT, reload=config.API_DEBUG)
