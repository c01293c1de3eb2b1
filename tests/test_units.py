import pytest

from bitbasis.units import (
    btc_to_sats,
    format_btc,
    format_currency,
    format_number,
    is_valid_sats_input_value,
    sats_to_btc,
)


@pytest.mark.parametrize(
    ("btc", "sats"),
    [
        ("1.5", "150000000"),
        ("1,000", "100000000000"),
        ("0.00000001", "1"),
        ("abc", "0"),
        ("", "0"),
    ],
)
def test_btc_to_sats(btc, sats):
    assert btc_to_sats(btc) == sats


@pytest.mark.parametrize(
    ("sats", "btc"),
    [
        ("100000000", "1"),
        ("150000000", "1.5"),
        ("12345", "0.00012345"),
        ("1", "1e-8"),
        ("abc", "0"),
    ],
)
def test_sats_to_btc(sats, btc):
    assert sats_to_btc(sats) == btc


def test_sats_round_trip_for_whole_sats():
    for sats in ("1", "546", "2100000000000000"):
        assert btc_to_sats(sats_to_btc(sats)) == sats


@pytest.mark.parametrize(
    ("value", "ok"),
    [("", True), ("0", True), ("1,000.5", True), (".5", True), ("-1", False), ("abc", False), ("1.2.3", False)],
)
def test_is_valid_sats_input_value(value, ok):
    assert is_valid_sats_input_value(value) is ok


def test_format_number():
    assert format_number(1234.5) == "1,234.5"
    assert format_number(1000) == "1,000"
    assert format_number("1234.5678", min_fraction_digits=2, max_fraction_digits=2) == "1,234.57"
    assert format_number(0.1, min_fraction_digits=2) == "0.10"
    assert format_number("abc") == "abc"
    assert format_number(None) == ""


def test_format_btc_and_currency():
    assert format_btc(0.5) == "0.50000000"
    assert format_btc("1234.5") == "1,234.50000000"
    assert format_btc(None) == "0"
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-5) == "-$5.00"
    assert format_currency(None) == "$0.00"
