"""Validation of canonical transactions before they are submitted.

Issues are collected, never raised: a single pass produces every problem so the
preview can show them all at once. ``error`` issues block submission,
``warning`` issues are informational.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from .logging_setup import get_logger
from .transactions import CanonicalTransaction, Severity, TransactionType, ValidationIssue

_logger = get_logger("bitbasis.validation")

LARGE_SENT_AMOUNT = 1_000_000
LARGE_RECEIVED_BTC = 1_000


@dataclass(frozen=True, slots=True)
class AmountRule:
    field: str
    message: str


# Per-type amounts that must be strictly positive, checked in order.
REQUIRED_AMOUNTS: dict[TransactionType, tuple[AmountRule, ...]] = {
    TransactionType.BUY: (
        AmountRule("received_amount", "Buy transactions must have a positive received amount"),
        AmountRule(
            "sent_amount", "Buy transactions must have a positive sent amount (fiat paid)"
        ),
    ),
    TransactionType.SELL: (
        AmountRule(
            "sent_amount", "Sell transactions must have a positive sent amount (BTC sold)"
        ),
        AmountRule(
            "received_amount",
            "Sell transactions must have a positive received amount (fiat received)",
        ),
    ),
    TransactionType.DEPOSIT: (
        AmountRule(
            "received_amount", "Deposit transactions must have a positive received amount"
        ),
    ),
    TransactionType.WITHDRAWAL: (
        AmountRule(
            "sent_amount", "Withdrawal transactions must have a positive sent amount"
        ),
    ),
    TransactionType.INTEREST: (
        AmountRule(
            "received_amount", "Interest transactions must have a positive received amount"
        ),
    ),
}


def _positive(value: float | None) -> bool:
    return value is not None and value > 0


def validate_transaction(
    tx: CanonicalTransaction, *, now: datetime | None = None
) -> list[ValidationIssue]:
    now = now or datetime.now()
    issues: list[ValidationIssue] = []

    def add(field_name: str, message: str, severity: Severity = Severity.ERROR) -> None:
        issues.append(ValidationIssue(tx.id, field_name, message, severity))

    if tx.date is None:
        add("date", "Date is required")
    if tx.type is TransactionType.UNKNOWN:
        add("type", "Transaction type could not be determined")
    if not _positive(tx.price):
        add("price", "BTC price is required and must be greater than 0")

    for rule in REQUIRED_AMOUNTS.get(tx.type, ()):
        if not _positive(getattr(tx, rule.field)):
            add(rule.field, rule.message)

    if tx.date is not None and tx.date > now:
        add("date", "Transaction date cannot be in the future", Severity.WARNING)
    if tx.fee_amount is not None and tx.fee_amount < 0:
        add("fee_amount", "Fee amount cannot be negative")
    if tx.sent_amount is not None and tx.sent_amount > LARGE_SENT_AMOUNT:
        add(
            "sent_amount",
            "Sent amount seems unusually large - please verify",
            Severity.WARNING,
        )
    if tx.received_amount is not None and tx.received_amount > LARGE_RECEIVED_BTC:
        add(
            "received_amount",
            "Received BTC amount seems unusually large - please verify",
            Severity.WARNING,
        )
    return issues


def validate_transactions(
    transactions: Iterable[CanonicalTransaction], *, now: datetime | None = None
) -> list[ValidationIssue]:
    """Validate every record in order; issues keep record order."""

    now = now or datetime.now()
    issues: list[ValidationIssue] = []
    for tx in transactions:
        issues.extend(validate_transaction(tx, now=now))
    counts = count_by_severity(issues)
    _logger.info(
        "validate_done errors=%d warnings=%d",
        counts[Severity.ERROR],
        counts[Severity.WARNING],
    )
    return issues


def count_by_severity(issues: Iterable[ValidationIssue]) -> Counter[Severity]:
    counts: Counter[Severity] = Counter({Severity.ERROR: 0, Severity.WARNING: 0})
    counts.update(i.severity for i in issues)
    return counts


def has_blocking_errors(issues: Iterable[ValidationIssue]) -> bool:
    return any(i.is_blocking for i in issues)


def can_proceed_from_preview(
    transactions: Sequence[CanonicalTransaction], issues: Iterable[ValidationIssue]
) -> bool:
    return bool(transactions) and not has_blocking_errors(issues)


@dataclass(frozen=True, slots=True)
class TransactionSummary:
    total: int
    by_type: dict[TransactionType, int] = field(default_factory=dict)
    earliest: datetime | None = None
    latest: datetime | None = None


def summarize_transactions(transactions: Sequence[CanonicalTransaction]) -> TransactionSummary:
    by_type = Counter(t.type for t in transactions)
    dates = [t.date for t in transactions if t.date is not None]
    return TransactionSummary(
        total=len(transactions),
        by_type=dict(by_type),
        earliest=min(dates) if dates else None,
        latest=max(dates) if dates else None,
    )


__all__ = [
    "LARGE_RECEIVED_BTC",
    "LARGE_SENT_AMOUNT",
    "REQUIRED_AMOUNTS",
    "TransactionSummary",
    "can_proceed_from_preview",
    "count_by_severity",
    "has_blocking_errors",
    "summarize_transactions",
    "validate_transaction",
    "validate_transactions",
]
