"""
Expense helpers: German labels, category suggestion, document filenames and
Google Drive link parsing.
"""

import re
from datetime import date, datetime
from decimal import Decimal

from core.config import DEFAULT_VAT_RATE
from core.money import to_decimal
from models.expenses import Expense, ExpenseCategory, PaymentMethod
from services.vat import vat_from_gross

# =============================================================================
# LABELS
# =============================================================================

CATEGORY_GERMAN_LABELS = {
    ExpenseCategory.SOFTWARE: "Software",
    ExpenseCategory.HARDWARE: "Hardware",
    ExpenseCategory.OFFICE: "Bürobedarf",
    ExpenseCategory.TRAVEL: "Reisekosten",
    ExpenseCategory.MARKETING: "Marketing",
    ExpenseCategory.UTILITIES: "Nebenkosten",
    ExpenseCategory.PROFESSIONAL_SERVICES: "Dienstleistungen",
    ExpenseCategory.OTHER: "Sonstiges",
}

PAYMENT_METHOD_LABELS = {
    PaymentMethod.BANK_TRANSFER: "Überweisung",
    PaymentMethod.CREDIT_CARD: "Kreditkarte",
    PaymentMethod.DEBIT_CARD: "EC-Karte",
    PaymentMethod.CASH: "Bargeld",
    PaymentMethod.PAYPAL: "PayPal",
    PaymentMethod.OTHER: "Sonstiges",
}

# Checked in order; first category with a matching keyword wins
CATEGORY_KEYWORDS = [
    (ExpenseCategory.SOFTWARE, ("software", "saas", "subscription", "license", "api")),
    (ExpenseCategory.HARDWARE, ("laptop", "computer", "monitor", "hardware", "equipment")),
    (ExpenseCategory.OFFICE, ("office", "stationery", "supplies", "büro")),
    (ExpenseCategory.TRAVEL, ("travel", "flight", "hotel", "train", "reise")),
    (ExpenseCategory.MARKETING, ("marketing", "advertising", "ads", "promotion")),
    (ExpenseCategory.UTILITIES, ("electricity", "internet", "phone", "utilities", "strom")),
    (
        ExpenseCategory.PROFESSIONAL_SERVICES,
        ("consulting", "legal", "accounting", "professional"),
    ),
]

UMLAUT_REPLACEMENTS = {
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "Ä": "Ae",
    "Ö": "Oe",
    "Ü": "Ue",
    "ß": "ss",
}

DRIVE_URL_PATTERN = re.compile(r"^https://drive\.google\.com/(file/d/|open\?id=)")
DRIVE_FILE_PATH_PATTERN = re.compile(r"/file/d/([a-zA-Z0-9_-]+)")
DRIVE_OPEN_ID_PATTERN = re.compile(r"[?&]id=([a-zA-Z0-9_-]+)")


def get_category_label(category: ExpenseCategory | str) -> str:
    try:
        return CATEGORY_GERMAN_LABELS[ExpenseCategory(category)]
    except ValueError:
        return str(category)


def format_payment_method(method: PaymentMethod | str) -> str:
    try:
        return PAYMENT_METHOD_LABELS[PaymentMethod(method)]
    except ValueError:
        return str(method)


def suggest_category(description: str) -> ExpenseCategory:
    """Guess a category from keywords in the description."""
    lower_desc = description.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower_desc for keyword in keywords):
            return category
    return ExpenseCategory.OTHER


# =============================================================================
# FILENAMES
# =============================================================================


def sanitize_filename(filename: str) -> str:
    """Transliterate umlauts and reduce everything else to [a-zA-Z0-9._-]."""
    for umlaut, replacement in UMLAUT_REPLACEMENTS.items():
        filename = filename.replace(umlaut, replacement)
    filename = re.sub(r"[^a-zA-Z0-9._-]", "_", filename)
    filename = re.sub(r"_+", "_", filename)
    return filename.strip("_")


def generate_german_filename(
    expense_date: date | datetime | str,
    category: ExpenseCategory | str,
    vendor_name: str,
    extension: str = "pdf",
) -> str:
    """
    Filename for an archived receipt.

    Format: YYYY-MM-DD_Category_VendorName_Rechnung.pdf
    """
    if isinstance(expense_date, datetime):
        expense_date = expense_date.date()
    elif isinstance(expense_date, str):
        expense_date = date.fromisoformat(expense_date[:10])

    category_label = sanitize_filename(get_category_label(category))
    vendor = sanitize_filename(vendor_name)
    return f"{expense_date.isoformat()}_{category_label}_{vendor}_Rechnung.{extension}"


# =============================================================================
# GOOGLE DRIVE LINKS
# =============================================================================


def validate_drive_url(url: str | None) -> bool:
    """Empty is allowed; otherwise must be a drive.google.com file or open link."""
    if not url:
        return True
    return bool(DRIVE_URL_PATTERN.match(url))


def extract_drive_file_id(url: str | None) -> str | None:
    if not url:
        return None
    match = DRIVE_FILE_PATH_PATTERN.search(url) or DRIVE_OPEN_ID_PATTERN.search(url)
    return match.group(1) if match else None


# =============================================================================
# AMOUNTS
# =============================================================================


def expense_net_amount(expense: Expense, vat_rate=DEFAULT_VAT_RATE) -> Decimal:
    """Net amount of an expense; derived from the gross amount if VAT wasn't recorded."""
    if expense.vat_amount is not None:
        return to_decimal(expense.amount) - to_decimal(expense.vat_amount)
    return vat_from_gross(expense.amount, vat_rate).net
