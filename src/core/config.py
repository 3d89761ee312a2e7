"""
Configuration constants and environment setup.
"""

import logging
import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(os.environ.get("DASHBOARD_DB_PATH", PROJECT_ROOT / "data" / "db" / "freelancer.db"))
OUTPUT_DIR = PROJECT_ROOT / "output"

# =============================================================================
# BILLING CONFIGURATION
# =============================================================================

DEFAULT_VAT_RATE = Decimal(os.environ.get("DEFAULT_VAT_RATE", "19"))
CURRENCY = "EUR"

INVOICE_SEQUENCE_DIGITS = 4  # 2025-0001
INVOICE_NUMBER_MAX_RETRIES = int(os.environ.get("INVOICE_NUMBER_MAX_RETRIES", "3"))
INVOICE_NUMBER_RETRY_BACKOFF = float(os.environ.get("INVOICE_NUMBER_RETRY_BACKOFF", "0.05"))

SERVICE_PERIOD_DESCRIPTION = "Dienstleistungen"
MAX_HOURS_PER_ENTRY = Decimal("24")

# =============================================================================
# DASHBOARD CONFIGURATION
# =============================================================================

PENDING_INVOICE_LIMIT = 5
DASHBOARD_PROJECT_LIMIT = 6

# =============================================================================
# REPORT CONFIGURATION
# =============================================================================

WEEKLY_HEADERS = ["Week", "Start", "End", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun", "Total"]
INVOICE_ITEM_HEADERS = ["Description", "Quantity", "Rate", "Amount"]

# =============================================================================
# API CONFIGURATION
# =============================================================================

DASHBOARD_API_KEY = os.environ.get("DASHBOARD_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for API and script entry points."""
    logging.basicConfig(format=LOG_FORMAT, level=level or LOG_LEVEL)
