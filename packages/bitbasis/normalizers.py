"""Mapped CSV rows → :class:`CanonicalTransaction` records.

Exchange exports disagree on almost everything: date formats, currency
symbols, accounting-style negatives, and whether a withdrawal is a positive
``Sent`` value or a negative ``Amount``. Normalization is deliberately
forgiving: a cell that cannot be parsed leaves its field as ``None`` and the
validator reports what is missing afterwards. Nothing here raises on bad data.

Date parsing tries ISO-8601 first, then a fixed cascade of formats. Slash and
dash dates are tried month-first, so ``03/04/2024`` is March 4th; a day-first
reading only wins when the month-first one is impossible (``25/12/2024``).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from .logging_setup import get_logger
from .mapping import ColumnMapping, TransactionField
from .transactions import CanonicalTransaction, TransactionType

_logger = get_logger("bitbasis.normalizers")

# ---------------------------------------------------------------------------
# Cell parsers
# ---------------------------------------------------------------------------

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y",
    "%m-%d-%Y %H:%M:%S",
    "%m-%d-%Y",
    "%d-%m-%Y %H:%M:%S",
    "%d-%m-%Y",
)

_NUMBER_NOISE = re.compile(r"[$£€¥₿,\s]")
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _naive_local(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def parse_date(text: str | None) -> datetime | None:
    """Parse a date/timestamp cell; ``None`` when no known format matches."""

    if text is None:
        return None
    s = text.strip()
    if not s:
        return None
    try:
        return _naive_local(datetime.fromisoformat(s))
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def leading_float(text: str) -> float | None:
    """Float value of the numeric prefix of ``text`` (``"12.5abc"`` → ``12.5``)."""

    m = _NUMBER_PREFIX.match(text.strip())
    return float(m.group(0)) if m else None


def parse_number(text: str | None) -> float | None:
    """Parse an amount cell.

    Currency symbols, thousands separators and whitespace are dropped and
    ``(123.45)`` reads as ``-123.45``: each parenthesis becomes a minus sign,
    so an unbalanced ``(5`` is ``-5`` and ``(-5)`` is not a number. Like a
    lenient float parse, trailing garbage after a numeric prefix is ignored
    (``"0.5 BTC"`` → ``0.5``).
    """

    if text is None:
        return None
    cleaned = _NUMBER_NOISE.sub("", str(text))
    return leading_float(cleaned.replace("(", "-").replace(")", "-"))


# Ordered: the first keyword group that appears anywhere in the label wins.
TYPE_KEYWORDS: tuple[tuple[TransactionType, tuple[str, ...]], ...] = (
    (TransactionType.BUY, ("buy", "purchase")),
    (TransactionType.SELL, ("sell",)),
    (
        TransactionType.DEPOSIT,
        ("deposit", "receive", "credit", "incoming", "transfer in"),
    ),
    (
        TransactionType.WITHDRAWAL,
        ("withdraw", "send", "debit", "outgoing", "transfer out"),
    ),
    (TransactionType.INTEREST, ("interest", "earn", "reward", "staking", "dividend")),
)


def normalize_transaction_type(text: str | None) -> TransactionType:
    if not text:
        return TransactionType.UNKNOWN
    label = text.strip().lower()
    for tx_type, keywords in TYPE_KEYWORDS:
        if any(k in label for k in keywords):
            return tx_type
    return TransactionType.UNKNOWN


# ---------------------------------------------------------------------------
# Row transformation
# ---------------------------------------------------------------------------

_AMOUNT_FIELDS = frozenset(
    {
        TransactionField.SENT_AMOUNT,
        TransactionField.RECEIVED_AMOUNT,
        TransactionField.FEE_AMOUNT,
        TransactionField.PRICE,
    }
)
_CURRENCY_FIELDS = frozenset(
    {
        TransactionField.SENT_CURRENCY,
        TransactionField.RECEIVED_CURRENCY,
        TransactionField.FEE_CURRENCY,
    }
)


def _cell_value(field: TransactionField, raw: str) -> Any:
    if field is TransactionField.DATE:
        return parse_date(raw)
    if field is TransactionField.TYPE:
        return normalize_transaction_type(raw)
    if field in _AMOUNT_FIELDS:
        return parse_number(raw)
    if field in _CURRENCY_FIELDS:
        return raw.upper()
    return raw


def _correct_signs(values: dict[str, Any]) -> None:
    """Make amounts positive per transaction direction (mutates ``values``)."""

    tx_type = values.get("type", TransactionType.UNKNOWN)
    sent = values.get("sent_amount")
    received = values.get("received_amount")
    fee = values.get("fee_amount")

    if tx_type is TransactionType.WITHDRAWAL and sent is not None and sent < 0:
        sent = abs(sent)
    if tx_type is TransactionType.DEPOSIT and received is not None and received < 0:
        received = abs(received)
    if fee is not None and fee < 0:
        values["fee_amount"] = abs(fee)

    # Single signed "Amount" column mapped to received_amount.
    if tx_type is TransactionType.WITHDRAWAL and not sent and received is not None and received < 0:
        sent, received = abs(received), None
    if tx_type is TransactionType.DEPOSIT and not received and sent is not None and sent < 0:
        received, sent = abs(sent), None

    values["sent_amount"] = sent
    values["received_amount"] = received


def transform_row(
    index: int, row: Mapping[str, str], mappings: Sequence[ColumnMapping]
) -> CanonicalTransaction:
    """Build one canonical record from a CSV row using ``mappings``."""

    values: dict[str, Any] = {}
    for mapping in mappings:
        if (field := mapping.transaction_field) is None or field is TransactionField.IGNORE:
            continue
        raw = (row.get(mapping.csv_column) or "").strip()
        if not raw:
            continue
        values[field.value] = _cell_value(field, raw)

    _correct_signs(values)
    return CanonicalTransaction(id=f"csv-{index}", original_row=dict(row), **values)


def transform_csv_data(
    rows: Iterable[Mapping[str, str]], mappings: Sequence[ColumnMapping]
) -> list[CanonicalTransaction]:
    """One canonical record per input row, in input order."""

    transactions = [transform_row(i, row, mappings) for i, row in enumerate(rows)]
    unknown = sum(1 for t in transactions if t.type is TransactionType.UNKNOWN)
    _logger.info(
        "normalize_done rows=%d unknown_type=%d", len(transactions), unknown
    )
    return transactions


__all__ = [
    "DATE_FORMATS",
    "TYPE_KEYWORDS",
    "leading_float",
    "normalize_transaction_type",
    "parse_date",
    "parse_number",
    "transform_csv_data",
    "transform_row",
]
