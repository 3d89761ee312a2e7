"""Tests for VAT split helpers."""

from decimal import Decimal

import pytest

from services.vat import vat_from_gross, vat_from_net

GROSS_AMOUNTS = ["0", "0.01", "0.99", "1.00", "11.90", "99.99", "100.00", "119.00", "1234.56", "999999.99"]
RATES = ["0", "7", "16", "19", "100"]


@pytest.mark.parametrize("gross", GROSS_AMOUNTS)
@pytest.mark.parametrize("rate", RATES)
def test_net_plus_vat_equals_gross(gross, rate):
    result = vat_from_gross(Decimal(gross), Decimal(rate))
    assert result.net + result.vat == Decimal(gross)


def test_from_gross_standard_rate():
    result = vat_from_gross(Decimal("119.00"), Decimal("19"))

    assert result.net == Decimal("100.00")
    assert result.vat == Decimal("19.00")
    assert result.gross == Decimal("119.00")
    assert result.rate == Decimal("19")


def test_from_net_standard_rate():
    result = vat_from_net(Decimal("100.00"), Decimal("19"))

    assert result.vat == Decimal("19.00")
    assert result.gross == Decimal("119.00")


def test_from_net_rounds_vat_first():
    # 0.05 * 19% = 0.0095 -> 0.01
    result = vat_from_net(Decimal("0.05"), Decimal("19"))
    assert result.vat == Decimal("0.01")
    assert result.gross == Decimal("0.06")


def test_round_trip_can_differ_by_a_cent():
    # 0.03 / 1.19 = 0.0252 -> net 0.03, VAT 0.0057 -> 0.01, gross 0.04
    net = vat_from_gross(Decimal("0.03"), Decimal("19")).net
    assert net == Decimal("0.03")
    assert vat_from_net(net, Decimal("19")).gross == Decimal("0.04")


def test_round_trip_is_off_by_at_most_a_cent():
    for cents in range(0, 500):
        gross = Decimal(cents) / 100
        back = vat_from_net(vat_from_gross(gross, Decimal("19")).net, Decimal("19")).gross
        assert abs(back - gross) <= Decimal("0.01")


def test_accepts_plain_numbers():
    assert vat_from_gross(119, 19).net == Decimal("100.00")
    assert vat_from_net("100", 19).gross == Decimal("119.00")
