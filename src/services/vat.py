"""
VAT (MwSt) split helpers.

Gross and net splits round at different stages, so converting gross -> net
-> gross can be off by a cent. Historical invoices were computed this way and
the asymmetry is kept on purpose:

- from gross: round the net amount first, VAT is the remainder, so
  net + vat == gross exactly;
- from net: round the VAT first, gross is net + VAT.
"""

from dataclasses import dataclass
from decimal import Decimal

from core.money import HUNDRED, percent_of, round_money, to_decimal


@dataclass
class VatBreakdown:
    net: Decimal
    vat: Decimal
    gross: Decimal
    rate: Decimal


def vat_from_gross(gross, rate) -> VatBreakdown:
    """Split a tax-inclusive amount into net and VAT."""
    gross = to_decimal(gross)
    rate = to_decimal(rate)
    net = round_money(gross / (1 + rate / HUNDRED))
    return VatBreakdown(net=net, vat=gross - net, gross=gross, rate=rate)


def vat_from_net(net, rate) -> VatBreakdown:
    """Add VAT to a tax-exclusive amount."""
    net = to_decimal(net)
    rate = to_decimal(rate)
    vat = round_money(percent_of(net, rate))
    return VatBreakdown(net=net, vat=vat, gross=round_money(net + vat), rate=rate)
