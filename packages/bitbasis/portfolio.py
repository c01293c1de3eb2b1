"""Portfolio holdings, cost basis and tax estimates over imported transactions.

Everything here is computed from canonical records in one pass, with no
persisted state:

    - :func:`calculate_portfolio_metrics`: BTC held, what it cost, fees paid
      and the unrealized gain at a given spot price.
    - :func:`calculate_cost_basis`: lot matching (FIFO, LIFO or HIFO) that
      yields realized gains from sells and the basis of what is left.
    - :func:`classify_holdings` / :func:`estimate_tax_liability`: the
      short-term vs long-term split of current holdings and a rough tax bill
      on the unrealized gain.

Only buys, sells and interest affect holdings; deposits and withdrawals move
coins between wallets and are ignored. A currency left blank on a record is
taken to be the one the calculation expects (BTC on the coin side, USD on the
fiat side).
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from dateutil.relativedelta import relativedelta

from .logging_setup import get_logger
from .transactions import CanonicalTransaction, TransactionType

_logger = get_logger("bitbasis.portfolio")

# Placeholder US federal rates; there is no per-user tax profile.
SHORT_TERM_TAX_RATE = 0.37
LONG_TERM_TAX_RATE = 0.20

# A lot smaller than this is treated as fully consumed.
LOT_EPSILON = 1e-9

LONG_TERM_HOLDING_PERIOD = timedelta(days=365)


class CostBasisMethod(StrEnum):
    FIFO = "fifo"
    LIFO = "lifo"
    HIFO = "hifo"


def _is(currency: str | None, code: str) -> bool:
    return currency is None or currency == code


def _usd_fee(tx: CanonicalTransaction) -> float:
    if tx.fee_amount and _is(tx.fee_currency, "USD"):
        return tx.fee_amount
    return 0.0


def _check_price(current_price: float) -> None:
    if math.isnan(current_price) or current_price < 0:
        raise ValueError(f"current BTC price must be a non-negative number, got {current_price!r}")


def _one_year_before(now: datetime | None) -> datetime:
    return (now or datetime.now()) - relativedelta(years=1)


def _chronological(transactions: Iterable[CanonicalTransaction]) -> list[CanonicalTransaction]:
    # Stable: same-day records keep their CSV order; undated records go last.
    return sorted(transactions, key=lambda tx: (tx.date is None, tx.date or datetime.min))


# ---------------------------------------------------------------------------
# Summary metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PortfolioMetrics:
    total_btc: float
    total_cost_basis: float
    total_fees: float
    current_value: float
    unrealized_gain: float
    unrealized_gain_percent: float
    average_buy_price: float
    total_transactions: int


def calculate_portfolio_metrics(
    transactions: Iterable[CanonicalTransaction], current_price: float
) -> PortfolioMetrics:
    """Totals over buy and sell records valued at ``current_price``.

    Cost basis is every buy's fiat outlay plus its USD fee; sells reduce the
    BTC held but not the basis (see :func:`calculate_cost_basis` for lot
    accounting). Both totals are floored at zero.
    """

    _check_price(current_price)
    total_btc = 0.0
    cost_basis = 0.0
    fees = 0.0
    orders = 0
    for tx in transactions:
        if tx.type is TransactionType.BUY:
            orders += 1
            fee = _usd_fee(tx)
            total_btc += tx.received_amount or 0.0
            cost_basis += (tx.sent_amount or 0.0) + fee
            fees += fee
        elif tx.type is TransactionType.SELL:
            orders += 1
            total_btc -= tx.sent_amount or 0.0
            fees += _usd_fee(tx)

    total_btc = max(0.0, total_btc)
    cost_basis = max(0.0, cost_basis)
    value = total_btc * current_price
    gain = value - cost_basis
    return PortfolioMetrics(
        total_btc=total_btc,
        total_cost_basis=cost_basis,
        total_fees=fees,
        current_value=value,
        unrealized_gain=gain,
        unrealized_gain_percent=gain / cost_basis * 100 if cost_basis > 0 else 0.0,
        average_buy_price=cost_basis / total_btc if total_btc > 0 else 0.0,
        total_transactions=orders,
    )


# ---------------------------------------------------------------------------
# Lot matching
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Lot:
    """An acquisition still (partly) held.

    ``amount`` and ``cost_basis`` shrink as sells consume the lot.
    """

    date: datetime | None
    amount: float
    cost_basis: float
    price_per_coin: float


def _acquired_lots(transactions: Iterable[CanonicalTransaction]) -> list[Lot]:
    lots: list[Lot] = []
    for tx in transactions:
        amount = tx.received_amount
        if not amount or amount <= 0 or not _is(tx.received_currency, "BTC"):
            continue
        if tx.type is TransactionType.BUY:
            if not tx.sent_amount or not _is(tx.sent_currency, "USD") or tx.price is None:
                continue
            lots.append(Lot(tx.date, amount, tx.sent_amount + _usd_fee(tx), tx.price))
        elif tx.type is TransactionType.INTEREST:
            # Income: whatever it later sells for is all gain.
            lots.append(Lot(tx.date, amount, 0.0, tx.price or 0.0))
    return lots


def sort_lots(lots: Sequence[Lot], method: CostBasisMethod) -> list[Lot]:
    """Order lots so that the next one a sell consumes is first."""

    dated = [lot for lot in lots if lot.date is not None]
    undated = [lot for lot in lots if lot.date is None]
    if method is CostBasisMethod.FIFO:
        return sorted(dated, key=lambda lot: lot.date) + undated
    if method is CostBasisMethod.LIFO:
        return sorted(dated, key=lambda lot: lot.date, reverse=True) + undated
    if method is CostBasisMethod.HIFO:
        return sorted(lots, key=lambda lot: lot.price_per_coin, reverse=True)
    raise ValueError(f"unknown cost basis method: {method!r}")


def _consume(lots: list[Lot], amount: float, sell_price: float) -> float:
    """Take ``amount`` BTC from the front of ``lots``; returns the realized gain."""

    realized = 0.0
    remaining = amount
    while remaining > 0 and lots:
        lot = lots[0]
        portion = min(remaining, lot.amount)
        cost_portion = lot.cost_basis * (portion / lot.amount)
        realized += portion * sell_price - cost_portion
        lot.amount -= portion
        lot.cost_basis -= cost_portion
        if lot.amount <= LOT_EPSILON:
            lots.pop(0)
        remaining -= portion
    if remaining > LOT_EPSILON:
        _logger.warning("sell_exceeds_lots unmatched_btc=%.8f", remaining)
    return realized


@dataclass(frozen=True, slots=True)
class CostBasisResult:
    method: CostBasisMethod
    total_cost_basis: float
    average_cost: float
    realized_gains: float
    unrealized_gain: float
    unrealized_gain_percent: float
    potential_tax_liability_st: float
    potential_tax_liability_lt: float
    remaining_btc: float
    remaining_lots: tuple[Lot, ...] = ()

    @property
    def potential_tax_liability(self) -> float:
        return self.potential_tax_liability_st + self.potential_tax_liability_lt


def calculate_cost_basis(
    transactions: Iterable[CanonicalTransaction],
    method: CostBasisMethod | str,
    current_price: float,
    *,
    now: datetime | None = None,
) -> CostBasisResult:
    """Match sells against acquisition lots and value what remains.

    Lots come from buys paid in USD (fee included in the basis) and from
    interest at a zero basis. Sells paid out in USD are applied in date
    order, each consuming lots from the front of the ``method`` ordering.
    Remaining lots with a gain are taxed at the long-term rate when acquired
    at least a year before ``now`` and at the short-term rate otherwise.

    Raises ``ValueError`` for an unknown method or a negative/NaN price.
    """

    try:
        method = CostBasisMethod(str(method).lower())
    except ValueError:
        raise ValueError(f"unknown cost basis method: {method!r}") from None
    _check_price(current_price)
    ordered = _chronological(transactions)

    balance = 0.0
    for tx in ordered:
        if (
            tx.type in (TransactionType.BUY, TransactionType.INTEREST)
            and tx.received_amount
            and _is(tx.received_currency, "BTC")
        ):
            balance += tx.received_amount
        elif tx.type is TransactionType.SELL and tx.sent_amount and _is(tx.sent_currency, "BTC"):
            balance -= tx.sent_amount
    remaining_btc = max(0.0, balance)

    lots = sort_lots(_acquired_lots(ordered), method)
    realized = 0.0
    for tx in ordered:
        if tx.type is not TransactionType.SELL:
            continue
        if not tx.sent_amount or tx.sent_amount <= 0 or not _is(tx.sent_currency, "BTC"):
            continue
        if not tx.received_amount or not _is(tx.received_currency, "USD"):
            continue
        realized += _consume(lots, tx.sent_amount, tx.received_amount / tx.sent_amount)

    total_cost = sum(lot.cost_basis for lot in lots)
    unrealized = remaining_btc * current_price - total_cost

    cutoff = _one_year_before(now)
    tax_st = 0.0
    tax_lt = 0.0
    for lot in lots:
        gain = lot.amount * current_price - lot.cost_basis
        if gain <= 0:
            continue
        if lot.date is not None and lot.date <= cutoff:
            tax_lt += gain * LONG_TERM_TAX_RATE
        else:
            tax_st += gain * SHORT_TERM_TAX_RATE

    _logger.debug(
        "cost_basis method=%s lots=%d realized=%.2f remaining_btc=%.8f",
        method.value,
        len(lots),
        realized,
        remaining_btc,
    )
    return CostBasisResult(
        method=method,
        total_cost_basis=total_cost,
        average_cost=total_cost / remaining_btc if remaining_btc > 0 else 0.0,
        realized_gains=realized,
        unrealized_gain=unrealized,
        unrealized_gain_percent=unrealized / total_cost * 100 if total_cost > 0 else 0.0,
        potential_tax_liability_st=tax_st,
        potential_tax_liability_lt=tax_lt,
        remaining_btc=remaining_btc,
        remaining_lots=tuple(lots),
    )


# ---------------------------------------------------------------------------
# Holding periods and tax
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HoldingsSplit:
    short_term: float
    long_term: float

    @property
    def total(self) -> float:
        return self.short_term + self.long_term


@dataclass(frozen=True, slots=True)
class TaxLiability:
    short_term: float
    long_term: float
    total: float


def classify_holdings(
    transactions: Iterable[CanonicalTransaction], *, now: datetime | None = None
) -> HoldingsSplit:
    """BTC bought within the last year vs earlier, net of sells.

    Sells reduce both buckets in proportion to their size, whatever the
    sell's own date; undated buys count as short-term.
    """

    cutoff = _one_year_before(now)
    txs = list(transactions)
    short_term = 0.0
    long_term = 0.0
    for tx in txs:
        if tx.type is not TransactionType.BUY or not tx.received_amount:
            continue
        if tx.date is not None and tx.date <= cutoff:
            long_term += tx.received_amount
        else:
            short_term += tx.received_amount

    for tx in txs:
        if tx.type is not TransactionType.SELL or not tx.sent_amount:
            continue
        held = short_term + long_term
        if held > 0:
            st_ratio = short_term / held
            lt_ratio = long_term / held
            short_term -= tx.sent_amount * st_ratio
            long_term -= tx.sent_amount * lt_ratio

    return HoldingsSplit(short_term=max(0.0, short_term), long_term=max(0.0, long_term))


def estimate_tax_liability(unrealized_gain: float, split: HoldingsSplit) -> TaxLiability:
    """Tax owed if the whole position were sold now; zero without a gain."""

    if unrealized_gain <= 0 or split.total <= 0:
        return TaxLiability(0.0, 0.0, 0.0)
    short_term = unrealized_gain * (split.short_term / split.total) * SHORT_TERM_TAX_RATE
    long_term = unrealized_gain * (split.long_term / split.total) * LONG_TERM_TAX_RATE
    return TaxLiability(short_term=short_term, long_term=long_term, total=short_term + long_term)


def tax_classification(acquired: datetime, disposed: datetime) -> str:
    """``"long-term"`` when held for more than 365 days, else ``"short-term"``."""

    return "long-term" if disposed - acquired > LONG_TERM_HOLDING_PERIOD else "short-term"


__all__ = [
    "LONG_TERM_TAX_RATE",
    "SHORT_TERM_TAX_RATE",
    "CostBasisMethod",
    "CostBasisResult",
    "HoldingsSplit",
    "Lot",
    "PortfolioMetrics",
    "TaxLiability",
    "calculate_cost_basis",
    "calculate_portfolio_metrics",
    "classify_holdings",
    "estimate_tax_liability",
    "sort_lots",
    "tax_classification",
]
