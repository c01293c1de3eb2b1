"""Public interface for the ``bitbasis`` package.

Bitcoin transaction CSV import (column detection, normalization, validation),
savings projection calculators and portfolio cost-basis reporting. This
module only re-exports the stable import surface; the logic lives in the
submodules.
"""

from .goals import GoalProgress, GoalStore, SavedGoal, SavedProjection, compute_goal_progress
from .ingest import CsvData, load_csv, read_csv_text
from .mapping import (
    ColumnMapping,
    Detection,
    TransactionField,
    auto_map_columns,
    can_proceed_from_mapping,
    detect_field_type,
    remap_column,
)
from .normalizers import (
    normalize_transaction_type,
    parse_date,
    parse_number,
    transform_csv_data,
    transform_row,
)
from .portfolio import (
    CostBasisMethod,
    CostBasisResult,
    PortfolioMetrics,
    calculate_cost_basis,
    calculate_portfolio_metrics,
    classify_holdings,
    estimate_tax_liability,
)
from .projection import (
    ChartDataPoint,
    ProjectionParams,
    ProjectionPoint,
    ProjectionResult,
    calculate_projection,
    calculate_recurring_buy_data,
    calculate_sats_goal_data,
)
from .transactions import CanonicalTransaction, Severity, TransactionType, ValidationIssue
from .validation import can_proceed_from_preview, summarize_transactions, validate_transactions

__all__ = [
    # Import pipeline
    "CsvData",
    "load_csv",
    "read_csv_text",
    "ColumnMapping",
    "Detection",
    "TransactionField",
    "auto_map_columns",
    "can_proceed_from_mapping",
    "detect_field_type",
    "remap_column",
    "normalize_transaction_type",
    "parse_date",
    "parse_number",
    "transform_csv_data",
    "transform_row",
    "validate_transactions",
    "can_proceed_from_preview",
    "summarize_transactions",
    # Models / types
    "CanonicalTransaction",
    "Severity",
    "TransactionType",
    "ValidationIssue",
    # Projections and goals
    "ChartDataPoint",
    "ProjectionParams",
    "ProjectionPoint",
    "ProjectionResult",
    "calculate_projection",
    "calculate_recurring_buy_data",
    "calculate_sats_goal_data",
    "GoalProgress",
    "GoalStore",
    "SavedGoal",
    "SavedProjection",
    "compute_goal_progress",
    # Portfolio
    "CostBasisMethod",
    "CostBasisResult",
    "PortfolioMetrics",
    "calculate_cost_basis",
    "calculate_portfolio_metrics",
    "classify_holdings",
    "estimate_tax_liability",
]
