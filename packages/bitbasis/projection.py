"""Period-by-period compounding calculators.

Three calculators share the same idea. An annual rate ``r`` becomes a
per-period rate ``(1 + r) ** (1 / n) - 1`` for ``n`` periods per year, and the
value is stepped forward one period at a time:

- ``calculate_sats_goal_data``: how much fiat a fixed BTC goal costs when it
  is split evenly across the periods of a duration.
- ``calculate_recurring_buy_data``: how many sats a fixed fiat contribution
  buys per period.
- ``calculate_projection``: savings-goal projection of a fiat contribution
  growing at an expected rate, with the first period at which the
  inflation-adjusted value reaches a BTC target.

All arithmetic is ordinary floating point. Outputs are approximate and
rounding-sensitive by nature.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING

from dateutil.relativedelta import relativedelta

from .logging_setup import get_logger
from .units import SATS_PER_BTC

if TYPE_CHECKING:
    from .goals import SavedGoal

_logger = get_logger("bitbasis.projection")


MAX_PROJECTION_YEARS = 100
TARGET_CHART_POINTS = 50


# ---------------------------------------------------------------------------
# Durations, frequencies, dates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DurationDetails:
    months: int
    years: float
    label: str


@dataclass(frozen=True, slots=True)
class FrequencyDetails:
    periods_per_year: int
    label: str


DURATIONS: dict[str, DurationDetails] = {
    "1_month": DurationDetails(1, 1 / 12, "1 Month"),
    "3_month": DurationDetails(3, 0.25, "3 Months"),
    "6_month": DurationDetails(6, 0.5, "6 Months"),
    "1_year": DurationDetails(12, 1, "1 Year"),
    "2_year": DurationDetails(24, 2, "2 Years"),
    "3_year": DurationDetails(36, 3, "3 Years"),
    "4_year": DurationDetails(48, 4, "4 Years"),
    "5_year": DurationDetails(60, 5, "5 Years"),
    "10_year": DurationDetails(120, 10, "10 Years"),
}
DEFAULT_DURATION = "1_year"

FREQUENCIES: dict[str, FrequencyDetails] = {
    "daily": FrequencyDetails(365, "Daily"),
    "weekly": FrequencyDetails(52, "Weekly"),
    "monthly": FrequencyDetails(12, "Monthly"),
    "yearly": FrequencyDetails(1, "Yearly"),
}
DEFAULT_FREQUENCY = "weekly"

# relativedelta keyword per frequency
_PERIOD_UNITS = {"daily": "days", "weekly": "weeks", "monthly": "months", "yearly": "years"}


def get_duration_details(duration: str) -> DurationDetails:
    return DURATIONS.get(duration, DURATIONS[DEFAULT_DURATION])


def get_frequency_details(frequency: str) -> FrequencyDetails:
    return FREQUENCIES.get(frequency, FREQUENCIES[DEFAULT_FREQUENCY])


def add_periods(date: datetime, frequency: str, count: int) -> datetime:
    """Shift ``date`` by ``count`` periods. Month ends clamp (Jan 31 + 1 month = Feb 28/29)."""

    unit = _PERIOD_UNITS.get(frequency)
    if unit is None:
        return date
    return date + relativedelta(**{unit: count})


def format_date_label(date: datetime, frequency: str, total_periods: int) -> str:
    """Short chart label: ``"Jan 5, '25"`` when the day matters, else ``"Jan '25"``."""

    with_day = frequency == "daily" or (frequency == "weekly" and total_periods <= 52 * 2)
    if with_day:
        return f"{date:%b} {date.day}, '{date:%y}"
    return f"{date:%b} '{date:%y}"


def periodic_rate(annual_percent: float, periods_per_year: int) -> float:
    return (1 + annual_percent / 100) ** (1 / periods_per_year) - 1


# ---------------------------------------------------------------------------
# Sats goal / recurring buy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ChartDataPoint:
    date: str
    accumulated_sats: int
    periodic_sats: int
    estimated_btc_price: float
    usd_value_this_period: float
    cumulative_usd_value: float
    inflation_adjusted: bool = False
    raw_usd_value: float = 0.0
    raw_cumulative_value: float = 0.0
    inflation_factor: float = 1.0
    total_invested: float = 0.0


def _valid_positive(x: float) -> bool:
    return not math.isnan(x) and x > 0


def _rates_ok(price_growth: float, inflation_rate: float) -> bool:
    return (
        not math.isnan(price_growth)
        and not math.isnan(inflation_rate)
        and price_growth > -100
        and inflation_rate > -100
    )


def _chart_point(
    *,
    label: str,
    accumulated: int,
    periodic: int,
    price: float,
    raw_usd: float,
    raw_cumulative: float,
    factor: float,
    invested: float,
    adjust: bool,
) -> ChartDataPoint:
    divisor = factor if adjust else 1.0
    return ChartDataPoint(
        date=label,
        accumulated_sats=accumulated,
        periodic_sats=periodic,
        estimated_btc_price=price,
        usd_value_this_period=raw_usd / divisor,
        cumulative_usd_value=raw_cumulative / divisor,
        inflation_adjusted=adjust,
        raw_usd_value=raw_usd,
        raw_cumulative_value=raw_cumulative,
        inflation_factor=factor,
        total_invested=invested,
    )


def calculate_sats_goal_data(
    btc_goal: float,
    duration: str,
    frequency: str,
    btc_price: float,
    price_growth: float,
    inflation_rate: float = 0,
    adjust_for_inflation: bool = False,
    *,
    start_date: datetime | None = None,
) -> list[ChartDataPoint] | None:
    """Fiat needed per period to stack ``btc_goal`` over ``duration``.

    Sats are split evenly (rounded) across the periods; the final period
    absorbs the rounding remainder so the accumulated total equals the goal
    exactly. Returns ``None`` for unusable input.
    """

    if not _valid_positive(btc_goal) or not _valid_positive(btc_price):
        return None
    if not _rates_ok(price_growth, inflation_rate):
        return None

    years = get_duration_details(duration).years
    ppy = get_frequency_details(frequency).periods_per_year
    total_periods = round(years * ppy)
    if total_periods <= 0:
        return None

    total_sats = round(btc_goal * SATS_PER_BTC)
    sats_per_period = round(total_sats / total_periods)
    if sats_per_period <= 0:
        return None

    growth = periodic_rate(price_growth, ppy)
    start = start_date or datetime.now()

    points: list[ChartDataPoint] = []
    price = btc_price
    accumulated = 0
    invested = 0.0
    for i in range(total_periods):
        factor = (1 + inflation_rate / 100) ** (i / ppy)
        accumulated += sats_per_period
        raw_usd = sats_per_period / SATS_PER_BTC * price
        invested += raw_usd
        points.append(
            _chart_point(
                label=format_date_label(add_periods(start, frequency, i), frequency, total_periods),
                accumulated=accumulated,
                periodic=sats_per_period,
                price=price,
                raw_usd=raw_usd,
                raw_cumulative=accumulated / SATS_PER_BTC * price,
                factor=factor,
                invested=invested,
                adjust=adjust_for_inflation,
            )
        )
        price *= 1 + growth

    # Force exact convergence on the goal in the last period.
    last = points[-1]
    previous = points[-2].accumulated_sats if len(points) > 1 else 0
    last_sats = total_sats - previous
    last_usd = last_sats / SATS_PER_BTC * last.estimated_btc_price
    invested_before = points[-2].total_invested if len(points) > 1 else 0.0
    points[-1] = _chart_point(
        label=last.date,
        accumulated=total_sats,
        periodic=last_sats,
        price=last.estimated_btc_price,
        raw_usd=last_usd,
        raw_cumulative=total_sats / SATS_PER_BTC * price,
        factor=last.inflation_factor,
        invested=invested_before + last_usd,
        adjust=adjust_for_inflation,
    )
    _logger.debug(
        "sats_goal periods=%d sats_total=%d sats_per_period=%d", total_periods, total_sats, sats_per_period
    )
    return points


def calculate_recurring_buy_data(
    recurring_usd: float,
    duration: str,
    frequency: str,
    btc_price: float,
    price_growth: float,
    inflation_rate: float = 0,
    adjust_for_inflation: bool = False,
    *,
    start_date: datetime | None = None,
) -> list[ChartDataPoint] | None:
    """Sats bought per period by a fixed fiat amount; ``None`` for unusable input."""

    if not _valid_positive(recurring_usd) or not _valid_positive(btc_price):
        return None
    if not _rates_ok(price_growth, inflation_rate):
        return None

    years = get_duration_details(duration).years
    ppy = get_frequency_details(frequency).periods_per_year
    total_periods = round(years * ppy)
    if total_periods <= 0:
        return None

    growth = periodic_rate(price_growth, ppy)
    start = start_date or datetime.now()

    points: list[ChartDataPoint] = []
    price = btc_price
    accumulated = 0
    for i in range(total_periods):
        factor = (1 + inflation_rate / 100) ** (i / ppy)
        sats = round(recurring_usd / price * SATS_PER_BTC)
        accumulated += sats
        points.append(
            _chart_point(
                label=format_date_label(add_periods(start, frequency, i), frequency, total_periods),
                accumulated=accumulated,
                periodic=sats,
                price=price,
                raw_usd=recurring_usd,
                raw_cumulative=accumulated / SATS_PER_BTC * price,
                factor=factor,
                invested=recurring_usd * (i + 1),
                adjust=adjust_for_inflation,
            )
        )
        price *= 1 + growth

    # Value the final stack at the price one period past the last buy.
    last = points[-1]
    raw_cumulative = last.accumulated_sats / SATS_PER_BTC * price
    divisor = last.inflation_factor if adjust_for_inflation else 1.0
    points[-1] = replace(
        last,
        raw_cumulative_value=raw_cumulative,
        cumulative_usd_value=raw_cumulative / divisor,
    )
    return points


def aggregate_chart_data(
    points: Sequence[ChartDataPoint], frequency: str, duration: str
) -> list[ChartDataPoint]:
    """Collapse long daily series into weekly buckets.

    Each bucket is the last point of its 7-day chunk, relabelled with the
    chunk's first date and carrying the chunk's summed sats and USD.
    Everything else is returned unchanged.
    """

    if not points:
        return []
    if frequency != "daily" or get_duration_details(duration).years <= 0.5:
        return list(points)

    weekly: list[ChartDataPoint] = []
    for start in range(0, len(points), 7):
        chunk = points[start : start + 7]
        weekly.append(
            replace(
                chunk[-1],
                date=chunk[0].date,
                periodic_sats=sum(p.periodic_sats for p in chunk),
                usd_value_this_period=sum(p.usd_value_this_period for p in chunk),
            )
        )
    return weekly


# ---------------------------------------------------------------------------
# Savings-goal projection
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProjectionParams:
    contribution_amount_usd: float
    contribution_frequency: str = "monthly"
    expected_growth_percent: float = 0.0
    projection_period_months: int = 12
    inflation_rate_percent: float = 0.0
    target_btc_amount: float = 0.0
    current_btc_price_usd: float = 0.0
    start_date: datetime | None = None

    @property
    def periods_per_year(self) -> int:
        return 12 if self.contribution_frequency == "monthly" else 52

    @property
    def target_usd(self) -> float | None:
        if self.target_btc_amount > 0 and self.current_btc_price_usd > 0:
            return self.target_btc_amount * self.current_btc_price_usd
        return None


@dataclass(frozen=True, slots=True)
class ProjectionPoint:
    month: float
    nominal_value: float
    adjusted_value: float


@dataclass(frozen=True, slots=True)
class ProjectionResult:
    data_points: list[ProjectionPoint] = field(default_factory=list)
    estimated_target_date: datetime | None = None
    target_reached_period: int | None = None
    projected_value_at_target: float | None = None
    principal_at_target: float | None = None
    nominal_value_at_period_end: float = 0.0
    adjusted_value_at_period_end: float = 0.0
    principal_at_period_end: float = 0.0
    target_usd: float | None = None


def _check_params(params: ProjectionParams) -> None:
    if math.isnan(params.contribution_amount_usd) or params.contribution_amount_usd <= 0:
        raise ValueError("contribution amount must be greater than 0")
    if params.projection_period_months <= 0:
        raise ValueError("projection period must be at least one month")
    if params.current_btc_price_usd < 0 or params.target_btc_amount < 0:
        raise ValueError("BTC price and target amount cannot be negative")
    if params.expected_growth_percent <= -100 or params.inflation_rate_percent <= -100:
        raise ValueError("growth and inflation rates must be greater than -100%")


def target_date_for_period(start: datetime, period: int, periods_per_year: int) -> datetime:
    """Whole years rounded up, then the leftover periods as whole months."""

    years = math.ceil(period / periods_per_year)
    months = math.floor((period % periods_per_year) * (12 / periods_per_year))
    return start + relativedelta(years=years, months=months)


def calculate_projection(params: ProjectionParams) -> ProjectionResult:
    """Project contributions forward until the period end and the target are both reached.

    Raises ``ValueError`` for structurally invalid parameters.
    """

    _check_params(params)
    ppy = params.periods_per_year
    max_periods = MAX_PROJECTION_YEARS * ppy
    total_periods = min(max(1, round(params.projection_period_months / 12 * ppy)), max_periods)
    growth = periodic_rate(params.expected_growth_percent, ppy)
    inflation = params.inflation_rate_percent / 100
    target_usd = params.target_usd
    interval = max(1, total_periods // TARGET_CHART_POINTS)

    nominal = 0.0
    principal = 0.0
    target_period: int | None = None
    value_at_target: float | None = None
    principal_at_target: float | None = None
    end_nominal = end_adjusted = end_principal = 0.0
    points = [ProjectionPoint(month=0, nominal_value=0.0, adjusted_value=0.0)]

    for period in range(1, max_periods + 1):
        nominal = (nominal + params.contribution_amount_usd) * (1 + growth)
        principal += params.contribution_amount_usd
        adjusted = nominal / (1 + inflation) ** (period / ppy)

        if target_usd is not None and target_period is None and adjusted >= target_usd:
            target_period = period
            value_at_target = nominal
            principal_at_target = principal

        if period == total_periods:
            end_nominal, end_adjusted, end_principal = nominal, adjusted, principal

        if period <= total_periods and (period % interval == 0 or period == total_periods):
            points.append(
                ProjectionPoint(month=period * 12 / ppy, nominal_value=nominal, adjusted_value=adjusted)
            )

        if period >= total_periods and (target_usd is None or target_period is not None):
            break

    if len(points) < 3:
        last = points[-1]
        points.insert(
            1,
            ProjectionPoint(
                month=last.month / 2,
                nominal_value=last.nominal_value / 2,
                adjusted_value=last.adjusted_value / 2,
            ),
        )

    estimated: datetime | None = None
    if target_period is not None:
        estimated = target_date_for_period(params.start_date or datetime.now(), target_period, ppy)

    _logger.debug(
        "projection periods=%d target_usd=%s target_period=%s", total_periods, target_usd, target_period
    )
    return ProjectionResult(
        data_points=points,
        estimated_target_date=estimated,
        target_reached_period=target_period,
        projected_value_at_target=value_at_target,
        principal_at_target=principal_at_target,
        nominal_value_at_period_end=end_nominal,
        adjusted_value_at_period_end=end_adjusted,
        principal_at_period_end=end_principal,
        target_usd=target_usd,
    )


def projection_interest(result: ProjectionResult) -> float:
    return max(0.0, result.nominal_value_at_period_end - result.principal_at_period_end)


def projection_roi(result: ProjectionResult) -> float:
    """Return on principal at the end of the projection period, in percent."""

    if result.principal_at_period_end <= 0:
        return 0.0
    return projection_interest(result) / result.principal_at_period_end * 100


def roi_at_target(result: ProjectionResult) -> float | None:
    if result.principal_at_target is None or result.principal_at_target <= 0:
        return None
    value = result.projected_value_at_target or 0.0
    return (value - result.principal_at_target) / result.principal_at_target * 100


def estimate_saved_goal_target_date(goal: SavedGoal) -> datetime | None:
    """Re-estimate when a saved goal reaches its target.

    The value is deflated by the expected *growth* rate rather than the
    inflation rate. Saved goals shown elsewhere were computed this way, so
    the formula is kept as is; see DESIGN.md.
    """

    saved = goal.saved_projection
    if not saved.target_btc_amount or not saved.current_btc_price_usd:
        return None
    if saved.contribution_amount_usd <= 0 or saved.expected_growth_percent <= -100:
        return None

    ppy = 12 if saved.contribution_frequency == "monthly" else 52
    annual_growth = saved.expected_growth_percent / 100
    growth = periodic_rate(saved.expected_growth_percent, ppy)
    target_usd = saved.target_btc_amount * saved.current_btc_price_usd

    nominal = 0.0
    for period in range(1, MAX_PROJECTION_YEARS * ppy + 1):
        nominal = (nominal + saved.contribution_amount_usd) * (1 + growth)
        adjusted = nominal / (1 + annual_growth) ** (period / ppy)
        if adjusted >= target_usd:
            return target_date_for_period(goal.start_date or datetime.now(), period, ppy)
    return None


__all__ = [
    "DURATIONS",
    "FREQUENCIES",
    "ChartDataPoint",
    "DurationDetails",
    "FrequencyDetails",
    "ProjectionParams",
    "ProjectionPoint",
    "ProjectionResult",
    "add_periods",
    "aggregate_chart_data",
    "calculate_projection",
    "calculate_recurring_buy_data",
    "calculate_sats_goal_data",
    "estimate_saved_goal_target_date",
    "format_date_label",
    "get_duration_details",
    "get_frequency_details",
    "periodic_rate",
    "projection_interest",
    "projection_roi",
    "roi_at_target",
    "target_date_for_period",
]
