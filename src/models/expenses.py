"""
Data models for business expenses.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class ExpenseCategory(str, Enum):
    SOFTWARE = "SOFTWARE"
    HARDWARE = "HARDWARE"
    OFFICE = "OFFICE"
    TRAVEL = "TRAVEL"
    MARKETING = "MARKETING"
    UTILITIES = "UTILITIES"
    PROFESSIONAL_SERVICES = "PROFESSIONAL_SERVICES"
    OTHER = "OTHER"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "BANK_TRANSFER"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    CASH = "CASH"
    PAYPAL = "PAYPAL"
    OTHER = "OTHER"


@dataclass
class Expense:
    """Expense as recorded from a receipt; `amount` is gross."""

    id: str
    category: ExpenseCategory
    description: str
    amount: Decimal
    date: date
    vat_amount: Decimal | None = None
    receipt_url: str | None = None
    payment_method: PaymentMethod | None = None
    vendor_name: str | None = None
