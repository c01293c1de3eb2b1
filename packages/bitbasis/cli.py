"""CLI for the ``bitbasis`` package.

This module exposes callable command handlers (``cmd_import_csv``,
``cmd_sats_goal``, ...) that return process exit codes, plus a Typer-based
console interface wrapping them. Environment variables (``BITBASIS_*``) are
loaded from a local ``.env`` using ``python-dotenv`` before any command runs.
Business logic lives in the library modules; handlers only parse, call and
print.
"""

from __future__ import annotations

import csv
import json
import sys
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging, get_logger

if TYPE_CHECKING:
    from .ingest import CsvData
    from .mapping import ColumnMapping
    from .projection import ChartDataPoint, ProjectionParams

_logger = get_logger("bitbasis.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def _err(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def _parse_start_date(text: str | None, *, what: str = "start date") -> datetime | None:
    if not text:
        return None
    from .normalizers import parse_date

    parsed = parse_date(text)
    if parsed is None:
        raise ValueError(f"invalid {what}: {text!r}")
    return parsed


def _write_or_print(text: str, output: Path | None) -> None:
    if output is None:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    print(f"Wrote {output}")


def _load_and_map(
    csv_path: Path, *, interactive: bool = False
) -> tuple[CsvData, list[ColumnMapping]]:
    """Load a CSV and return ``(data, mappings)``; raises on unreadable input."""

    from .ingest import load_csv
    from .mapping import auto_map_columns

    data = load_csv(csv_path)
    mappings = auto_map_columns(data.headers, data.rows)
    if interactive:
        from .term_ui import review_mappings

        mappings = review_mappings(mappings, data.rows)
    return data, mappings


def _mapping_problems(mappings: Sequence[ColumnMapping]) -> list[str]:
    from .mapping import field_spec, find_duplicate_mappings, missing_required_fields

    problems = [
        f"required field not mapped: {field_spec(f).label}" for f in missing_required_fields(mappings)
    ]
    problems.extend(
        f"{field_spec(d.field).label} is mapped from several columns: {', '.join(d.csv_columns)}"
        for d in find_duplicate_mappings(mappings)
    )
    return problems


def _print_chart(points: Sequence[ChartDataPoint]) -> None:
    from .units import format_currency

    print("date\tperiodic_sats\taccumulated_sats\tbtc_price\tusd_this_period\tcumulative_usd")
    for p in points:
        print(
            f"{p.date}\t{p.periodic_sats}\t{p.accumulated_sats}\t"
            f"{format_currency(p.estimated_btc_price)}\t{format_currency(p.usd_value_this_period)}\t"
            f"{format_currency(p.cumulative_usd_value)}"
        )


# ---- Command handlers --------------------------------------------------------


def cmd_detect_columns(csv_path: Path) -> int:
    """Print the detected field for every CSV column.

    Output is one line per column, ``<column>\\t<field>\\t<confidence>\\t<auto|->``,
    followed by any mapping problems on stderr. Returns ``1`` when the file
    cannot be read.
    """

    from .mapping import detect_field_type, sample_column_values

    try:
        data, mappings = _load_and_map(csv_path)
    except (OSError, ValueError, csv.Error) as e:
        return _err(str(e))

    for m in mappings:
        detection = detect_field_type(m.csv_column, sample_column_values(data.rows, m.csv_column))
        field = m.transaction_field.value if m.transaction_field is not None else "-"
        print(f"{m.csv_column}\t{field}\t{detection.confidence:.2f}\t{'auto' if m.is_confident else '-'}")
    for problem in _mapping_problems(mappings):
        print(f"Warning: {problem}", file=sys.stderr)
    return 0


def cmd_import_csv(
    csv_path: Path,
    *,
    interactive: bool = False,
    output: Path | None = None,
    submit: bool = False,
    endpoint: str | None = None,
) -> int:
    """Map, normalize and validate a CSV, then emit or submit the payload.

    Behavior
    --------
    - Auto-detects column mappings (optionally reviewed interactively).
    - Refuses to continue while a required field is unmapped or a field is
      claimed by several columns.
    - Prints a summary and every validation issue
      (``<id>\\t<severity>\\t<field>\\t<message>``) to stderr.
    - With no blocking errors, writes the JSON payload to ``output`` (stdout
      by default) and, with ``submit``, posts it to the import endpoint.
    """

    from .export import to_submission_payload
    from .normalizers import transform_csv_data
    from .submission import SubmissionError, submit_transactions
    from .validation import (
        can_proceed_from_preview,
        count_by_severity,
        summarize_transactions,
        validate_transactions,
    )
    from .transactions import Severity

    try:
        data, mappings = _load_and_map(csv_path, interactive=interactive)
    except (OSError, ValueError, csv.Error) as e:
        return _err(str(e))
    except (EOFError, KeyboardInterrupt):
        return _err("mapping review cancelled")

    problems = _mapping_problems(mappings)
    if problems:
        return _err("; ".join(problems))

    transactions = transform_csv_data(data.rows, mappings)
    issues = validate_transactions(transactions)
    summary = summarize_transactions(transactions)
    counts = count_by_severity(issues)

    by_type = ", ".join(f"{t.value}={n}" for t, n in sorted(summary.by_type.items()))
    span = (
        f"{summary.earliest:%Y-%m-%d} to {summary.latest:%Y-%m-%d}"
        if summary.earliest and summary.latest
        else "no dates"
    )
    print(
        f"{summary.total} transactions ({by_type}); {span}; "
        f"{counts[Severity.ERROR]} errors, {counts[Severity.WARNING]} warnings",
        file=sys.stderr,
    )
    for issue in issues:
        print(
            f"{issue.transaction_id}\t{issue.severity.value}\t{issue.field}\t{issue.message}",
            file=sys.stderr,
        )

    if not can_proceed_from_preview(transactions, issues):
        return _err(f"{counts[Severity.ERROR]} validation error(s); fix the CSV and re-import")

    payload = to_submission_payload(transactions)
    _logger.info("import_ready path=%s records=%d", csv_path, len(payload))
    if output is not None or not submit:
        _write_or_print(json.dumps({"transactions": payload}, indent=2), output)

    if submit:
        try:
            imported = submit_transactions(transactions, endpoint=endpoint)
        except SubmissionError as e:
            return _err(f"submission failed: {e}")
        print(f"Imported {imported} transactions", file=sys.stderr)
    return 0


def cmd_template(name: str, *, output: Path | None = None) -> int:
    from .export import template_csv

    try:
        text = template_csv(name)
    except KeyError as e:
        return _err(str(e.args[0]))
    _write_or_print(text, output)
    return 0


def cmd_export(csv_path: Path, *, output: Path | None = None) -> int:
    """Re-export an importable CSV as the human-readable transaction table."""

    from .export import export_transactions_csv
    from .normalizers import transform_csv_data

    try:
        data, mappings = _load_and_map(csv_path)
    except (OSError, ValueError, csv.Error) as e:
        return _err(str(e))
    problems = _mapping_problems(mappings)
    if problems:
        return _err("; ".join(problems))

    _write_or_print(export_transactions_csv(transform_csv_data(data.rows, mappings)), output)
    return 0


def cmd_sats_goal(
    btc_goal: float,
    *,
    duration: str = "1_year",
    frequency: str = "weekly",
    btc_price: float,
    price_growth: float = 0.0,
    inflation_rate: float = 0.0,
    adjust_for_inflation: bool = False,
    start_date: str | None = None,
) -> int:
    from .projection import aggregate_chart_data, calculate_sats_goal_data

    try:
        start = _parse_start_date(start_date)
    except ValueError as e:
        return _err(str(e))
    points = calculate_sats_goal_data(
        btc_goal,
        duration,
        frequency,
        btc_price,
        price_growth,
        inflation_rate,
        adjust_for_inflation,
        start_date=start,
    )
    if points is None:
        return _err("BTC goal and price must be positive and the duration at least one period")
    _print_chart(aggregate_chart_data(points, frequency, duration))
    return 0


def cmd_recurring_buy(
    amount_usd: float,
    *,
    duration: str = "1_year",
    frequency: str = "weekly",
    btc_price: float,
    price_growth: float = 0.0,
    inflation_rate: float = 0.0,
    adjust_for_inflation: bool = False,
    start_date: str | None = None,
) -> int:
    from .projection import aggregate_chart_data, calculate_recurring_buy_data

    try:
        start = _parse_start_date(start_date)
    except ValueError as e:
        return _err(str(e))
    points = calculate_recurring_buy_data(
        amount_usd,
        duration,
        frequency,
        btc_price,
        price_growth,
        inflation_rate,
        adjust_for_inflation,
        start_date=start,
    )
    if points is None:
        return _err("amount and BTC price must be positive and the duration at least one period")
    _print_chart(aggregate_chart_data(points, frequency, duration))
    return 0


def _projection_params(
    *,
    contribution: float,
    frequency: str,
    growth: float,
    months: int,
    inflation: float,
    target_btc: float,
    btc_price: float,
    start_date: str | None,
) -> ProjectionParams:
    from .projection import ProjectionParams

    return ProjectionParams(
        contribution_amount_usd=contribution,
        contribution_frequency=frequency,
        expected_growth_percent=growth,
        projection_period_months=months,
        inflation_rate_percent=inflation,
        target_btc_amount=target_btc,
        current_btc_price_usd=btc_price,
        start_date=_parse_start_date(start_date),
    )


def cmd_savings_goal(
    *,
    contribution: float,
    frequency: str = "monthly",
    growth: float = 0.0,
    months: int = 12,
    inflation: float = 0.0,
    target_btc: float = 0.0,
    btc_price: float = 0.0,
    start_date: str | None = None,
) -> int:
    """Run the savings-goal projection and print the outcome and chart points."""

    from .projection import calculate_projection, projection_interest, projection_roi, roi_at_target
    from .units import format_currency

    try:
        params = _projection_params(
            contribution=contribution,
            frequency=frequency,
            growth=growth,
            months=months,
            inflation=inflation,
            target_btc=target_btc,
            btc_price=btc_price,
            start_date=start_date,
        )
        result = calculate_projection(params)
    except ValueError as e:
        return _err(str(e))

    print(f"Projected value:\t{format_currency(result.nominal_value_at_period_end)}")
    print(f"Inflation-adjusted:\t{format_currency(result.adjusted_value_at_period_end)}")
    print(f"Total principal:\t{format_currency(result.principal_at_period_end)}")
    print(f"Total growth:\t{format_currency(projection_interest(result))}")
    print(f"ROI:\t{projection_roi(result):.2f}%")
    if result.target_usd is not None:
        print(f"Target value:\t{format_currency(result.target_usd)}")
        if result.estimated_target_date is not None:
            roi = roi_at_target(result)
            print(f"Target reached:\t{result.estimated_target_date:%Y-%m-%d}")
            print(f"Value at target:\t{format_currency(result.projected_value_at_target)}")
            print(f"Principal at target:\t{format_currency(result.principal_at_target)}")
            if roi is not None:
                print(f"ROI at target:\t{roi:.2f}%")
        else:
            print("Target reached:\tnot within 100 years")
    print("month\tnominal\tadjusted")
    for p in result.data_points:
        print(f"{p.month:g}\t{p.nominal_value:.2f}\t{p.adjusted_value:.2f}")
    return 0


def cmd_goal_save(
    name: str,
    *,
    contribution: float,
    frequency: str = "monthly",
    growth: float = 0.0,
    months: int = 12,
    inflation: float = 0.0,
    target_btc: float = 0.0,
    btc_price: float = 0.0,
    start_date: str | None = None,
) -> int:
    from pydantic import ValidationError

    from .goals import GoalStore, build_saved_goal
    from .projection import calculate_projection

    try:
        params = _projection_params(
            contribution=contribution,
            frequency=frequency,
            growth=growth,
            months=months,
            inflation=inflation,
            target_btc=target_btc,
            btc_price=btc_price,
            start_date=start_date,
        )
        result = calculate_projection(params)
        goal = build_saved_goal(name, params, result)
        path = GoalStore().save(goal)
    except ValidationError as e:
        return _err(f"invalid goal: {e.errors()[0]['msg']}")
    except (OSError, ValueError) as e:
        return _err(str(e))
    print(f"Saved goal {goal.goal_name!r} to {path}")
    return 0


def cmd_goal_show() -> int:
    from .goals import GoalStore
    from .projection import estimate_saved_goal_target_date

    goal = GoalStore().load()
    if goal is None:
        return _err("no saved goal")
    print(goal.to_json())
    estimate = estimate_saved_goal_target_date(goal)
    print(f"Estimated target date:\t{estimate:%Y-%m-%d}" if estimate else "Estimated target date:\tN/A")
    return 0


def cmd_goal_delete() -> int:
    from .goals import GoalStore

    if not GoalStore().delete():
        return _err("no saved goal")
    print("Deleted saved goal")
    return 0


def cmd_goal_progress(csv_path: Path) -> int:
    """Progress toward the saved goal from BTC bought/sold since its start date."""

    from .goals import GoalStore, compute_goal_progress
    from .normalizers import transform_csv_data

    goal = GoalStore().load()
    if goal is None:
        return _err("no saved goal")
    try:
        data, mappings = _load_and_map(csv_path)
    except (OSError, ValueError, csv.Error) as e:
        return _err(str(e))
    problems = _mapping_problems(mappings)
    if problems:
        return _err("; ".join(problems))

    progress = compute_goal_progress(goal, transform_csv_data(data.rows, mappings))
    target = goal.saved_projection.target_btc_amount
    print(f"Goal:\t{goal.goal_name}")
    print(f"Accumulated since start:\t{progress.accumulated_btc_since_start:.8f} BTC")
    print(f"Target:\t{target:.8f} BTC")
    print(f"Progress:\t{progress.btc_progress_percent:.1f}%")
    return 0


def cmd_portfolio(
    csv_path: Path,
    *,
    btc_price: float,
    method: str = "fifo",
    as_of: str | None = None,
) -> int:
    """Holdings, cost basis and estimated tax for the buys/sells in a CSV.

    ``as_of`` moves "now" for the one-year holding-period cutoff.
    """

    from .normalizers import transform_csv_data
    from .portfolio import (
        calculate_cost_basis,
        calculate_portfolio_metrics,
        classify_holdings,
        estimate_tax_liability,
    )
    from .units import format_currency

    try:
        now = _parse_start_date(as_of, what="as-of date")
    except ValueError as e:
        return _err(str(e))
    try:
        data, mappings = _load_and_map(csv_path)
    except (OSError, ValueError, csv.Error) as e:
        return _err(str(e))
    problems = _mapping_problems(mappings)
    if problems:
        return _err("; ".join(problems))

    transactions = transform_csv_data(data.rows, mappings)
    try:
        metrics = calculate_portfolio_metrics(transactions, btc_price)
        basis = calculate_cost_basis(transactions, method, btc_price, now=now)
    except ValueError as e:
        return _err(str(e))
    split = classify_holdings(transactions, now=now)
    tax = estimate_tax_liability(metrics.unrealized_gain, split)

    print(f"Total BTC:\t{metrics.total_btc:.8f}")
    print(f"Current value:\t{format_currency(metrics.current_value)}")
    print(f"Total cost basis:\t{format_currency(metrics.total_cost_basis)}")
    print(f"Average buy price:\t{format_currency(metrics.average_buy_price)}")
    print(f"Total fees:\t{format_currency(metrics.total_fees)}")
    gain = format_currency(metrics.unrealized_gain)
    print(f"Unrealized gain:\t{gain} ({metrics.unrealized_gain_percent:.2f}%)")
    print(f"Short-term holdings:\t{split.short_term:.8f}")
    print(f"Long-term holdings:\t{split.long_term:.8f}")
    print(f"Estimated tax:\t{format_currency(tax.total)}")
    print(f"Method:\t{basis.method.value.upper()}")
    print(f"Remaining cost basis:\t{format_currency(basis.total_cost_basis)}")
    print(f"Average cost:\t{format_currency(basis.average_cost)}")
    print(f"Realized gains:\t{format_currency(basis.realized_gains)}")
    print(f"Lot unrealized gain:\t{format_currency(basis.unrealized_gain)}")
    print(f"Tax if sold (short-term):\t{format_currency(basis.potential_tax_liability_st)}")
    print(f"Tax if sold (long-term):\t{format_currency(basis.potential_tax_liability_lt)}")
    return 0


# ---- Typer-based console interface -------------------------------------------

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Typer inspects these when used as defaults below.
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to a transaction CSV export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
OUTPUT_OPTION: OptionInfo = typer.Option(None, "--output", "-o", help="Write to this file")
DURATION_OPTION: OptionInfo = typer.Option(
    "1_year", help="1_month, 3_month, 6_month, 1_year, 2_year, 3_year, 4_year, 5_year, 10_year"
)
FREQUENCY_OPTION: OptionInfo = typer.Option("weekly", help="daily, weekly, monthly or yearly")
BTC_PRICE_OPTION: OptionInfo = typer.Option(..., "--btc-price", help="Current BTC price in USD")
GROWTH_OPTION: OptionInfo = typer.Option(0.0, help="Expected annual BTC price growth, percent")
INFLATION_OPTION: OptionInfo = typer.Option(0.0, help="Annual inflation rate, percent")
START_DATE_OPTION: OptionInfo = typer.Option(None, help="Start date (defaults to now)")
CONTRIBUTION_OPTION: OptionInfo = typer.Option(..., help="Contribution per period in USD")
CONTRIBUTION_FREQUENCY_OPTION: OptionInfo = typer.Option("monthly", help="monthly or weekly")
MONTHS_OPTION: OptionInfo = typer.Option(12, help="Projection period in months")
TARGET_BTC_OPTION: OptionInfo = typer.Option(0.0, help="Target BTC amount (0 for none)")


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import Bitcoin transaction CSVs and run savings projections. "
        "Loads BITBASIS_* settings from a local .env before running."
    ),
)
goal_app = typer.Typer(no_args_is_help=True, add_completion=False, help="Manage the saved savings goal.")
app.add_typer(goal_app, name="goal")


@app.command("detect-columns")
def detect_columns_cmd(csv_path: Annotated[Path, CSV_PATH_OPTION]) -> None:
    """Show which transaction field each CSV column maps to."""

    raise typer.Exit(cmd_detect_columns(csv_path))


@app.command("import-csv")
def import_csv_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    interactive: bool = typer.Option(False, help="Review every column mapping before importing."),
    output: Path | None = OUTPUT_OPTION,
    submit: bool = typer.Option(False, help="POST the payload to BITBASIS_API_URL."),
    endpoint: str | None = typer.Option(None, help="Override BITBASIS_API_URL."),
) -> None:
    """Validate a CSV and emit (or submit) the import payload."""

    raise typer.Exit(
        cmd_import_csv(
            csv_path, interactive=interactive, output=output, submit=submit, endpoint=endpoint
        )
    )


@app.command("template")
def template_cmd(
    name: str = typer.Argument(..., help="basic or comprehensive"),
    output: Path | None = OUTPUT_OPTION,
) -> None:
    """Print a starter CSV template."""

    raise typer.Exit(cmd_template(name, output=output))


@app.command("export")
def export_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    output: Path | None = OUTPUT_OPTION,
) -> None:
    """Convert an importable CSV into the transaction export table."""

    raise typer.Exit(cmd_export(csv_path, output=output))


@app.command("portfolio")
def portfolio_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    btc_price: float = BTC_PRICE_OPTION,
    method: str = typer.Option("fifo", help="Cost basis method: fifo, lifo or hifo"),
    as_of: str | None = typer.Option(None, help="Value holdings as of this date (defaults to now)"),
) -> None:
    """Holdings, cost basis, realized gains and estimated tax from a CSV."""

    raise typer.Exit(cmd_portfolio(csv_path, btc_price=btc_price, method=method, as_of=as_of))


@app.command("sats-goal")
def sats_goal_cmd(
    btc_goal: float = typer.Option(..., help="BTC to accumulate"),
    duration: str = DURATION_OPTION,
    frequency: str = FREQUENCY_OPTION,
    btc_price: float = BTC_PRICE_OPTION,
    price_growth: float = GROWTH_OPTION,
    inflation_rate: float = INFLATION_OPTION,
    adjust_for_inflation: bool = typer.Option(False, help="Show USD in today's dollars."),
    start_date: str | None = START_DATE_OPTION,
) -> None:
    """Fiat needed per period to reach a fixed BTC goal."""

    raise typer.Exit(
        cmd_sats_goal(
            btc_goal,
            duration=duration,
            frequency=frequency,
            btc_price=btc_price,
            price_growth=price_growth,
            inflation_rate=inflation_rate,
            adjust_for_inflation=adjust_for_inflation,
            start_date=start_date,
        )
    )


@app.command("recurring-buy")
def recurring_buy_cmd(
    amount_usd: float = typer.Option(..., "--amount", help="USD spent per period"),
    duration: str = DURATION_OPTION,
    frequency: str = FREQUENCY_OPTION,
    btc_price: float = BTC_PRICE_OPTION,
    price_growth: float = GROWTH_OPTION,
    inflation_rate: float = INFLATION_OPTION,
    adjust_for_inflation: bool = typer.Option(False, help="Show USD in today's dollars."),
    start_date: str | None = START_DATE_OPTION,
) -> None:
    """Sats stacked by a fixed recurring buy."""

    raise typer.Exit(
        cmd_recurring_buy(
            amount_usd,
            duration=duration,
            frequency=frequency,
            btc_price=btc_price,
            price_growth=price_growth,
            inflation_rate=inflation_rate,
            adjust_for_inflation=adjust_for_inflation,
            start_date=start_date,
        )
    )


@app.command("savings-goal")
def savings_goal_cmd(
    contribution: float = CONTRIBUTION_OPTION,
    frequency: str = CONTRIBUTION_FREQUENCY_OPTION,
    growth: float = GROWTH_OPTION,
    months: int = MONTHS_OPTION,
    inflation: float = INFLATION_OPTION,
    target_btc: float = TARGET_BTC_OPTION,
    btc_price: float = typer.Option(0.0, "--btc-price", help="Current BTC price in USD"),
    start_date: str | None = START_DATE_OPTION,
) -> None:
    """Project recurring contributions and estimate when a BTC target is reached."""

    raise typer.Exit(
        cmd_savings_goal(
            contribution=contribution,
            frequency=frequency,
            growth=growth,
            months=months,
            inflation=inflation,
            target_btc=target_btc,
            btc_price=btc_price,
            start_date=start_date,
        )
    )


@goal_app.command("save")
def goal_save_cmd(
    name: str = typer.Option(..., "--name", help="Goal name"),
    contribution: float = CONTRIBUTION_OPTION,
    frequency: str = CONTRIBUTION_FREQUENCY_OPTION,
    growth: float = GROWTH_OPTION,
    months: int = MONTHS_OPTION,
    inflation: float = INFLATION_OPTION,
    target_btc: float = TARGET_BTC_OPTION,
    btc_price: float = typer.Option(0.0, "--btc-price", help="Current BTC price in USD"),
    start_date: str | None = START_DATE_OPTION,
) -> None:
    """Save (or overwrite) the active savings goal."""

    raise typer.Exit(
        cmd_goal_save(
            name,
            contribution=contribution,
            frequency=frequency,
            growth=growth,
            months=months,
            inflation=inflation,
            target_btc=target_btc,
            btc_price=btc_price,
            start_date=start_date,
        )
    )


@goal_app.command("show")
def goal_show_cmd() -> None:
    """Print the saved goal."""

    raise typer.Exit(cmd_goal_show())


@goal_app.command("delete")
def goal_delete_cmd() -> None:
    """Remove the saved goal."""

    raise typer.Exit(cmd_goal_delete())


@goal_app.command("progress")
def goal_progress_cmd(csv_path: Annotated[Path, CSV_PATH_OPTION]) -> None:
    """Progress toward the saved goal from an imported CSV."""

    raise typer.Exit(cmd_goal_progress(csv_path))


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
