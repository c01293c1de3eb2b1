"""Outbound shapes for canonical transactions.

- ``to_submission_payload``: JSON records for the import endpoint
- ``export_transactions_csv``: the human-readable export table
- ``template_csv``: starter files users can fill in before importing
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from io import StringIO
from typing import Any

from .transactions import CanonicalTransaction
from .units import format_currency

# Optional fields forwarded only when set, in this order.
OPTIONAL_PAYLOAD_FIELDS: tuple[str, ...] = (
    "sent_amount",
    "sent_currency",
    "received_amount",
    "received_currency",
    "fee_amount",
    "fee_currency",
    "from_address",
    "from_address_name",
    "to_address",
    "to_address_name",
    "transaction_hash",
    "comment",
)


def to_payload_record(tx: CanonicalTransaction, *, now: datetime | None = None) -> dict[str, Any]:
    record: dict[str, Any] = {
        "date": (tx.date or now or datetime.now()).isoformat(),
        "type": tx.type.value,
        "asset": tx.asset,
        "price": tx.price or 0,
    }
    for name in OPTIONAL_PAYLOAD_FIELDS:
        value = getattr(tx, name)
        if value is not None and value != "":
            record[name] = value
    return record


def to_submission_payload(
    transactions: Iterable[CanonicalTransaction], *, now: datetime | None = None
) -> list[dict[str, Any]]:
    now = now or datetime.now()
    return [to_payload_record(tx, now=now) for tx in transactions]


# ---------------------------------------------------------------------------
# Export table
# ---------------------------------------------------------------------------

EXPORT_COLUMNS: tuple[str, ...] = (
    "Date",
    "Type",
    "Asset",
    "Amount (BTC)",
    "Price at Tx (USD)",
    "Value (USD)",
    "Fees (USD)",
    "Exchange",
    "Fees (BTC)",
    "Transaction ID",
)


def _date_cell(d: datetime | None) -> str:
    if d is None:
        return "-"
    return f"{d.month}/{d.day}/{d.year}, {d:%I:%M %p}"


def _usd_cell(v: float | None) -> str:
    return "-" if v is None else format_currency(v)


def _btc_cell(v: float | None) -> str:
    return "-" if v is None else f"{v:,.8f}"


def format_transaction_for_csv(tx: CanonicalTransaction) -> dict[str, str]:
    fee_ccy = (tx.fee_currency or "").upper()
    return {
        "Date": _date_cell(tx.date),
        "Type": tx.type.value,
        "Asset": tx.asset,
        "Amount (BTC)": _btc_cell(tx.btc_amount),
        "Price at Tx (USD)": _usd_cell(tx.price),
        "Value (USD)": _usd_cell(tx.fiat_amount),
        "Fees (USD)": _usd_cell(tx.fee_amount if fee_ccy == "USD" else None),
        "Exchange": tx.from_address_name or tx.to_address_name or "-",
        "Fees (BTC)": _btc_cell(tx.fee_amount if fee_ccy == "BTC" else None),
        "Transaction ID": tx.transaction_hash or "-",
    }


def export_transactions_csv(transactions: Iterable[CanonicalTransaction]) -> str:
    buf = StringIO()
    writer = csv.DictWriter(buf, fieldnames=list(EXPORT_COLUMNS), lineterminator="\n")
    writer.writeheader()
    for tx in transactions:
        writer.writerow(format_transaction_for_csv(tx))
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Import templates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CsvTemplate:
    name: str
    description: str
    headers: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...]


_BASIC_HEADERS = (
    "Date",
    "Type",
    "Received Amount",
    "Received Currency",
    "Sent Amount",
    "Sent Currency",
    "Fee Amount",
    "Fee Currency",
    "Price",
)

TEMPLATES: dict[str, CsvTemplate] = {
    "basic": CsvTemplate(
        name="basic",
        description="Minimal columns for buys, sells, deposits and withdrawals",
        headers=_BASIC_HEADERS,
        rows=(
            ("2024-01-15 10:30:00", "buy", "0.01", "BTC", "500.00", "USD", "1.50", "USD", "50000.00"),
            ("2024-02-01 09:00:00", "sell", "450.00", "USD", "0.005", "BTC", "0.75", "USD", "90000.00"),
            ("2024-03-10 14:00:00", "deposit", "0.02", "BTC", "", "", "", "", "62000.00"),
            ("2024-04-05 08:15:00", "withdrawal", "", "", "0.01", "BTC", "0.0001", "BTC", "65000.00"),
        ),
    ),
    "comprehensive": CsvTemplate(
        name="comprehensive",
        description="Every importable column, including wallets and notes",
        headers=_BASIC_HEADERS
        + ("From (Name)", "To (Name)", "From Address", "To Address", "TxID", "Comment"),
        rows=(
            (
                "2024-01-15 10:30:00", "buy", "0.01", "BTC", "500.00", "USD", "1.50", "USD",
                "50000.00", "Coinbase", "", "", "", "", "Weekly DCA",
            ),
            (
                "2024-02-20 16:45:00", "withdrawal", "", "", "0.01", "BTC", "0.0001", "BTC",
                "52000.00", "Coinbase", "Cold Storage", "", "bc1qexampleaddress0000000000000000",
                "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b", "Move to cold storage",
            ),
            (
                "2024-03-01 00:00:00", "interest", "0.0002", "BTC", "", "", "", "",
                "61000.00", "Lending Desk", "", "", "", "", "Monthly yield",
            ),
        ),
    ),
}


def template_csv(name: str) -> str:
    """CSV text for a named template. Raises ``KeyError`` for unknown names."""

    try:
        template = TEMPLATES[name]
    except KeyError:
        raise KeyError(f"unknown template {name!r}; choose from {sorted(TEMPLATES)}") from None
    return rows_to_csv(template.headers, template.rows)


def rows_to_csv(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    buf = StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buf.getvalue()


__all__ = [
    "EXPORT_COLUMNS",
    "OPTIONAL_PAYLOAD_FIELDS",
    "TEMPLATES",
    "CsvTemplate",
    "export_transactions_csv",
    "format_transaction_for_csv",
    "rows_to_csv",
    "template_csv",
    "to_payload_record",
    "to_submission_payload",
]
