"""SQLite request logging for API."""

import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from fastapi import HTTPException

logger = logging.getLogger(__name__)


@dataclass
class RequestLog:
    """Captured request/response data for mutating invoice endpoints."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    started_at: float = field(default_factory=time.time, repr=False)
    endpoint: str = ""
    method: str = ""
    client_ip: str | None = None
    status_code: int = 0
    error_code: str | None = None
    error_message: str | None = None
    processing_time_ms: int = 0
    invoice_id: str | None = None
    invoice_number: str | None = None
    details: list[tuple[str, str]] = field(default_factory=list)  # (type, message)

    def fail(self, status_code: int, error_code: str | None, message: str) -> None:
        self.status_code = status_code
        self.error_code = error_code
        self.error_message = message

    def fail_from_http(self, e: HTTPException) -> None:
        """Copy status and our {"error", "code", "details"} detail from an HTTPException."""
        if not isinstance(e.detail, dict):
            self.fail(e.status_code, None, str(e.detail))
            return
        self.fail(e.status_code, e.detail.get("code"), e.detail.get("error"))
        for message in e.detail.get("details", []):
            self.details.append(("validation_error", message))


def log_request(conn: sqlite3.Connection, log: RequestLog) -> None:
    """Write request log to the SQLite database."""
    with conn:
        conn.execute(
            """
            INSERT INTO api_requests (
                request_id, timestamp, endpoint, method, client_ip,
                status_code, error_code, error_message, processing_time_ms,
                invoice_id, invoice_number
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                log.request_id,
                log.timestamp,
                log.endpoint,
                log.method,
                log.client_ip,
                log.status_code,
                log.error_code,
                log.error_message,
                log.processing_time_ms,
                log.invoice_id,
                log.invoice_number,
            ),
        )
        conn.executemany(
            "INSERT INTO api_request_details (request_id, detail_type, message) VALUES (?, ?, ?)",
            [(log.request_id, detail_type, message) for detail_type, message in log.details],
        )


def finish_request_log(conn: sqlite3.Connection, log: RequestLog) -> None:
    """Stamp the processing time and store the log; a logging failure never fails the request."""
    log.processing_time_ms = int((time.time() - log.started_at) * 1000)
    try:
        log_request(conn, log)
    except sqlite3.Error:
        logger.exception("Failed to write request log %s", log.request_id)
