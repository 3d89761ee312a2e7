"""FastAPI dependencies: API key check and a per-request database connection."""

import secrets
import sqlite3
from collections.abc import Iterator

from fastapi import Header, HTTPException, status

from api.models.responses import ErrorCodes
from core import config
from core.database import get_connection


def _reject(status_code: int, error: str, code: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": error, "code": code, "details": []},
    )


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """
    Check the X-API-Key header against DASHBOARD_API_KEY.

    The key is read per call so it can change without re-importing the app.

    Raises:
        HTTPException: 500 when no key is configured, 401 on a mismatch
    """
    expected = config.DASHBOARD_API_KEY
    if not expected:
        raise _reject(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "API key not configured on server",
            ErrorCodes.INTERNAL_ERROR,
        )

    # constant-time
    if not secrets.compare_digest(x_api_key.encode(), expected.encode()):
        raise _reject(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid or missing API key",
            ErrorCodes.UNAUTHORIZED,
        )
    return x_api_key


def get_db() -> Iterator[sqlite3.Connection]:
    """Open a connection for the duration of one request."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()
