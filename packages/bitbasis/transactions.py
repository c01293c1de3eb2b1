"""Canonical transaction record and validation issue types.

The canonical record is the single shape every import path produces, whatever
the source CSV looked like. It is a frozen ``dataclass``: the normalizer
builds it (sign correction included) in one step, after which nothing mutates
it. Field order follows the import column catalogue:

    - id: ``csv-<row index>``
    - date: parsed timestamp or ``None`` when the cell was missing/unparseable
    - type: one of :class:`TransactionType`
    - asset: always ``"BTC"`` for now
    - sent_amount / sent_currency
    - received_amount / received_currency
    - fee_amount / fee_currency
    - from_address / from_address_name
    - to_address / to_address_name
    - transaction_hash, price, comment
    - original_row: the raw CSV row the record came from

Amounts are plain floats; imports are approximate by nature and the values are
only ever displayed or forwarded as JSON numbers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType


class TransactionType(StrEnum):
    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INTEREST = "interest"
    UNKNOWN = "unknown"


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


def _frozen_row(row: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(row or {}))


@dataclass(frozen=True, slots=True)
class CanonicalTransaction:
    """One imported transaction in canonical form."""

    id: str
    date: datetime | None = None
    type: TransactionType = TransactionType.UNKNOWN
    asset: str = "BTC"
    sent_amount: float | None = None
    sent_currency: str | None = None
    received_amount: float | None = None
    received_currency: str | None = None
    fee_amount: float | None = None
    fee_currency: str | None = None
    from_address: str | None = None
    from_address_name: str | None = None
    to_address: str | None = None
    to_address_name: str | None = None
    transaction_hash: str | None = None
    price: float | None = None
    comment: str | None = None
    original_row: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        # Read-only view so the raw row cannot drift after normalization.
        object.__setattr__(self, "original_row", _frozen_row(self.original_row))

    @property
    def btc_amount(self) -> float | None:
        """BTC side of the transaction (received for inflows, sent for outflows)."""

        if self.type in (TransactionType.BUY, TransactionType.DEPOSIT, TransactionType.INTEREST):
            return self.received_amount
        return self.sent_amount

    @property
    def fiat_amount(self) -> float | None:
        """Fiat side: paid on buys/withdrawals, received otherwise."""

        if self.type in (TransactionType.BUY, TransactionType.WITHDRAWAL):
            return self.sent_amount
        return self.received_amount


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single problem found on one transaction field."""

    transaction_id: str
    field: str
    message: str
    severity: Severity

    @property
    def is_blocking(self) -> bool:
        return self.severity is Severity.ERROR


__all__ = [
    "CanonicalTransaction",
    "Severity",
    "TransactionType",
    "ValidationIssue",
]
