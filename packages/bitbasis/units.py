"""BTC/sats conversion and display formatting.

Conversions work on strings because they back free-text inputs: commas are
tolerated and anything non-numeric converts to ``"0"``.
"""

from __future__ import annotations

import math
import re

from .normalizers import leading_float

SATS_PER_BTC = 100_000_000

_SATS_INPUT = re.compile(r"^(\d*\.?\d*)$")


def _number(text: str | float | int) -> float | None:
    if isinstance(text, (int, float)):
        return None if math.isnan(text) else float(text)
    return leading_float(text.replace(",", ""))


def _plain(x: float) -> str:
    """Shortest round-tripping text for ``x``; integral values print without ``.0``."""

    if x.is_integer() and abs(x) < 1e21:
        return str(int(x))
    text = repr(x)
    # 1e-08 → 1e-8
    return re.sub(r"e([+-])0*(\d)", r"e\1\2", text)


def btc_to_sats(btc: str) -> str:
    value = _number(btc)
    if value is None:
        return "0"
    return str(round(value * SATS_PER_BTC))


def sats_to_btc(sats: str) -> str:
    value = _number(sats)
    if value is None:
        return "0"
    return _plain(value / SATS_PER_BTC)


def is_valid_sats_input_value(value: str) -> bool:
    """Accept empty input or a non-negative decimal, commas allowed."""

    if not value:
        return True
    sanitized = value.replace(",", "")
    if not _SATS_INPUT.match(sanitized):
        return False
    num = leading_float(sanitized)
    return num is not None and math.isfinite(num) and num >= 0


def format_number(
    value: str | float | int | None,
    *,
    min_fraction_digits: int = 0,
    max_fraction_digits: int = 3,
) -> str:
    """en-US grouping (``1,234.5``). Unparseable strings come back unchanged."""

    if value is None or value == "":
        return ""
    num = _number(value)
    if num is None:
        return value if isinstance(value, str) else ""
    text = f"{num:,.{max_fraction_digits}f}"
    if max_fraction_digits > min_fraction_digits and "." in text:
        whole, frac = text.split(".")
        frac = frac.rstrip("0").ljust(min_fraction_digits, "0")
        text = f"{whole}.{frac}" if frac else whole
    return text


def format_btc(btc: str | float | int | None) -> str:
    if not btc:
        return "0"
    num = _number(btc)
    if num is None:
        return "0"
    return f"{num:,.8f}"


def format_currency(value: float | None) -> str:
    if value is None or math.isnan(value):
        return "$0.00"
    text = f"${abs(value):,.2f}"
    return f"-{text}" if value < 0 else text


__all__ = [
    "SATS_PER_BTC",
    "btc_to_sats",
    "format_btc",
    "format_currency",
    "format_number",
    "is_valid_sats_input_value",
    "sats_to_btc",
]
