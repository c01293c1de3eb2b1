"""Saved savings goal: model, local store and progress tracking.

A single goal is kept as one JSON document (default
``./.bitbasis/savings_goal.json``). Keys are camelCase so the file can be
exchanged with the web client's stored goal as-is.

Store layout (relative to the data directory):

  ``<data_dir>/savings_goal.json``

Atomicity: writes target ``.tmp`` first and then ``os.replace`` into place.
"""

from __future__ import annotations

import contextlib
import json
import os
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .logging_setup import get_logger
from .projection import ProjectionParams, ProjectionResult, roi_at_target
from .transactions import CanonicalTransaction, TransactionType

_logger = get_logger("bitbasis.goals")

GOAL_FILENAME = "savings_goal.json"


def get_data_dir() -> Path:
    """Return the local data directory.

    Default: ``./.bitbasis`` under the current working directory.
    Override: ``BITBASIS_DATA_DIR`` environment variable (absolute or relative).
    """

    root = os.getenv("BITBASIS_DATA_DIR")
    if root and root.strip():
        return Path(root).expanduser().resolve()
    return (Path.cwd() / ".bitbasis").resolve()


def _naive_local(v: datetime | None) -> datetime | None:
    if v is None or v.tzinfo is None:
        return v
    return v.astimezone().replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class SavedProjection(BaseModel):
    """Calculator inputs captured when the goal was saved."""

    model_config = ConfigDict(strict=True, extra="forbid", populate_by_name=True)

    contribution_amount_usd: float = Field(alias="contributionAmountUSD")
    contribution_frequency: str = Field(alias="contributionFrequency")
    expected_growth_percent: float = Field(alias="expectedGrowthPercent")
    projection_period_months: int = Field(alias="projectionPeriodMonths")
    projection_period_years: float = Field(alias="projectionPeriodYears")
    target_btc_amount: float = Field(alias="targetBtcAmount")
    current_btc_price_usd: float = Field(alias="currentBtcPriceUSD")
    inflation_rate_percent: float = Field(default=0.0, alias="inflationRatePercent")

    @field_validator("contribution_frequency")
    @classmethod
    def _known_frequency(cls, v: str) -> str:
        if v not in ("monthly", "weekly"):
            raise ValueError("contributionFrequency must be 'monthly' or 'weekly'")
        return v


class SavedGoal(BaseModel):
    """Top-level schema for the saved goal JSON file."""

    model_config = ConfigDict(strict=True, extra="forbid", populate_by_name=True)

    goal_name: str = Field(alias="goalName")
    start_date: datetime = Field(alias="startDate")
    saved_projection: SavedProjection = Field(alias="savedProjection")

    # Outcomes computed at save time
    estimated_target_date_iso: datetime | None = Field(
        default=None, alias="estimatedTargetDateISO"
    )
    projected_value_at_target: float | None = Field(default=None, alias="projectedValueAtTarget")
    principal_at_target: float | None = Field(default=None, alias="principalAtTarget")
    roi_at_target: float | None = Field(default=None, alias="roiAtTarget")

    @field_validator("goal_name")
    @classmethod
    def _name_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("goalName must be non-empty")
        return v.strip()

    @field_validator("start_date", "estimated_target_date_iso")
    @classmethod
    def _to_naive_local(cls, v: datetime | None) -> datetime | None:
        return _naive_local(v)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2)


def build_saved_goal(name: str, params: ProjectionParams, result: ProjectionResult) -> SavedGoal:
    """Snapshot calculator inputs and target outcomes into a :class:`SavedGoal`."""

    months = params.projection_period_months
    return SavedGoal(
        goal_name=name,
        start_date=params.start_date or datetime.now(),
        saved_projection=SavedProjection(
            contribution_amount_usd=float(params.contribution_amount_usd),
            contribution_frequency=params.contribution_frequency,
            expected_growth_percent=float(params.expected_growth_percent),
            projection_period_months=months,
            projection_period_years=months / 12,
            target_btc_amount=float(params.target_btc_amount),
            current_btc_price_usd=float(params.current_btc_price_usd),
            inflation_rate_percent=float(params.inflation_rate_percent),
        ),
        estimated_target_date_iso=result.estimated_target_date,
        projected_value_at_target=result.projected_value_at_target,
        principal_at_target=result.principal_at_target,
        roi_at_target=roi_at_target(result),
    )


def projection_params_for(goal: SavedGoal) -> ProjectionParams:
    saved = goal.saved_projection
    return ProjectionParams(
        contribution_amount_usd=saved.contribution_amount_usd,
        contribution_frequency=saved.contribution_frequency,
        expected_growth_percent=saved.expected_growth_percent,
        projection_period_months=saved.projection_period_months,
        inflation_rate_percent=saved.inflation_rate_percent,
        target_btc_amount=saved.target_btc_amount,
        current_btc_price_usd=saved.current_btc_price_usd,
        start_date=goal.start_date,
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class GoalStore:
    """Single-record JSON store for the active savings goal."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or get_data_dir() / GOAL_FILENAME

    def load(self) -> SavedGoal | None:
        if not self.path.exists():
            return None
        try:
            return SavedGoal.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError):
            # Unreadable goal: drop it so the next save starts clean.
            _logger.warning(
                "goal_load_failed path=%s; removing corrupt file", os.fspath(self.path), exc_info=True
            )
            with contextlib.suppress(FileNotFoundError):
                self.path.unlink()
            return None

    def save(self, goal: SavedGoal) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp.write_text(goal.to_json(), encoding="utf-8")
            os.replace(tmp, self.path)
        except Exception:
            with contextlib.suppress(FileNotFoundError):
                tmp.unlink()
            raise
        _logger.info("goal_saved name=%r path=%s", goal.goal_name, os.fspath(self.path))
        return self.path

    def delete(self) -> bool:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        _logger.info("goal_deleted path=%s", os.fspath(self.path))
        return True


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GoalProgress:
    btc_progress_percent: float
    accumulated_btc_since_start: float


def compute_goal_progress(
    goal: SavedGoal, transactions: Iterable[CanonicalTransaction]
) -> GoalProgress:
    """BTC stacked since the goal started: buys add, sells subtract."""

    accumulated = 0.0
    for tx in transactions:
        if tx.date is None or tx.date < goal.start_date:
            continue
        if tx.type is TransactionType.BUY:
            accumulated += tx.received_amount or 0.0
        elif tx.type is TransactionType.SELL:
            accumulated -= tx.sent_amount or 0.0

    target = goal.saved_projection.target_btc_amount
    percent = min(100.0, max(0.0, accumulated / target * 100)) if target > 0 else 0.0
    return GoalProgress(btc_progress_percent=percent, accumulated_btc_since_start=accumulated)


__all__ = [
    "GOAL_FILENAME",
    "GoalProgress",
    "GoalStore",
    "SavedGoal",
    "SavedProjection",
    "build_saved_goal",
    "compute_goal_progress",
    "get_data_dir",
    "projection_params_for",
]
