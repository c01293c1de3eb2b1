from datetime import datetime

import pytest

from bitbasis.goals import SavedGoal, SavedProjection
from bitbasis.projection import (
    ProjectionParams,
    ProjectionResult,
    add_periods,
    aggregate_chart_data,
    calculate_projection,
    calculate_recurring_buy_data,
    calculate_sats_goal_data,
    estimate_saved_goal_target_date,
    format_date_label,
    get_duration_details,
    get_frequency_details,
    projection_interest,
    projection_roi,
    roi_at_target,
    target_date_for_period,
)

START = datetime(2024, 1, 15)


def test_sats_goal_converges_exactly_on_goal():
    points = calculate_sats_goal_data(0.1, "1_year", "monthly", 50000, 0, 0, False, start_date=START)
    assert points is not None
    assert len(points) == 12
    assert sum(p.periodic_sats for p in points) == 10_000_000
    assert points[-1].accumulated_sats == 10_000_000
    assert points[0].periodic_sats == 833_333
    assert points[-1].periodic_sats == 833_337
    assert points[-1].cumulative_usd_value == pytest.approx(5000.0)
    assert points[0].date == "Jan '24"


def test_recurring_buy_constant_price():
    points = calculate_recurring_buy_data(100, "1_year", "monthly", 50000, 0, start_date=START)
    assert points is not None
    assert [p.periodic_sats for p in points] == [200_000] * 12
    assert points[-1].accumulated_sats == 2_400_000
    assert points[-1].total_invested == pytest.approx(1200.0)


def test_recurring_buy_values_final_stack_one_period_ahead():
    points = calculate_recurring_buy_data(100, "2_year", "yearly", 10000, 100, start_date=START)
    assert points is not None
    # Price doubles each year: 10k, 20k, then 40k one period past the last buy.
    assert [p.estimated_btc_price for p in points] == pytest.approx([10000, 20000])
    last = points[-1]
    assert last.raw_cumulative_value == pytest.approx(last.accumulated_sats / 1e8 * 40000)


def test_inflation_adjustment_divides_by_factor():
    points = calculate_sats_goal_data(1, "2_year", "yearly", 1000, 0, 10, True, start_date=START)
    assert points is not None
    second = points[1]
    assert second.inflation_adjusted is True
    assert second.inflation_factor == pytest.approx(1.1)
    assert second.usd_value_this_period == pytest.approx(second.raw_usd_value / 1.1)
    assert second.cumulative_usd_value == pytest.approx(second.raw_cumulative_value / 1.1)


@pytest.mark.parametrize(
    "args",
    [
        (0, "1_year", "monthly", 50000, 0),
        (0.1, "1_year", "monthly", 0, 0),
        (0.1, "1_year", "monthly", 50000, -100),
        (float("nan"), "1_year", "monthly", 50000, 0),
    ],
)
def test_calculators_reject_unusable_input(args):
    assert calculate_sats_goal_data(*args) is None
    assert calculate_recurring_buy_data(*args) is None


def test_daily_series_over_half_a_year_is_bucketed_weekly():
    points = calculate_recurring_buy_data(10, "1_year", "daily", 50000, 0, start_date=START)
    assert points is not None
    assert len(points) == 365
    weekly = aggregate_chart_data(points, "daily", "1_year")
    assert len(weekly) == 53
    assert sum(p.periodic_sats for p in weekly) == sum(p.periodic_sats for p in points)
    assert weekly[0].date == points[0].date
    assert weekly[-1].accumulated_sats == points[-1].accumulated_sats


def test_aggregate_leaves_short_or_non_daily_series_alone():
    points = calculate_recurring_buy_data(10, "3_month", "daily", 50000, 0, start_date=START)
    assert points is not None
    assert aggregate_chart_data(points, "daily", "3_month") == points
    assert aggregate_chart_data([], "daily", "1_year") == []


def test_format_date_label():
    d = datetime(2025, 1, 5)
    assert format_date_label(d, "daily", 365) == "Jan 5, '25"
    assert format_date_label(d, "weekly", 104) == "Jan 5, '25"
    assert format_date_label(d, "weekly", 156) == "Jan '25"
    assert format_date_label(d, "monthly", 12) == "Jan '25"


def test_add_periods_clamps_month_end():
    assert add_periods(datetime(2024, 1, 31), "monthly", 1) == datetime(2024, 2, 29)
    assert add_periods(datetime(2024, 1, 1), "weekly", 2) == datetime(2024, 1, 15)
    assert add_periods(datetime(2024, 2, 29), "yearly", 1) == datetime(2025, 2, 28)


def test_lookups_fall_back_to_defaults():
    assert get_duration_details("bogus") == get_duration_details("1_year")
    assert get_frequency_details("bogus").periods_per_year == 52


def test_projection_without_target():
    result = calculate_projection(ProjectionParams(contribution_amount_usd=100, start_date=START))
    assert len(result.data_points) == 13
    assert result.data_points[0].month == 0
    assert result.data_points[-1].month == 12
    assert result.principal_at_period_end == pytest.approx(1200)
    assert result.nominal_value_at_period_end == pytest.approx(1200)
    assert result.target_usd is None
    assert result.estimated_target_date is None
    assert projection_interest(result) == 0
    assert projection_roi(result) == 0


def test_projection_reaches_target():
    params = ProjectionParams(
        contribution_amount_usd=100,
        contribution_frequency="monthly",
        target_btc_amount=0.01,
        current_btc_price_usd=50000,
        start_date=START,
    )
    result = calculate_projection(params)
    assert result.target_usd == pytest.approx(500)
    assert result.target_reached_period == 5
    assert result.principal_at_target == pytest.approx(500)
    assert result.estimated_target_date == datetime(2025, 6, 15)
    assert roi_at_target(result) == pytest.approx(0)


def test_projection_runs_past_period_end_until_target():
    params = ProjectionParams(
        contribution_amount_usd=100,
        projection_period_months=1,
        target_btc_amount=0.1,
        current_btc_price_usd=12000,
        start_date=START,
    )
    result = calculate_projection(params)
    assert result.principal_at_period_end == pytest.approx(100)
    assert result.target_reached_period == 12
    assert result.estimated_target_date == datetime(2025, 1, 15)


def test_short_projection_backfills_midpoint():
    result = calculate_projection(
        ProjectionParams(contribution_amount_usd=100, projection_period_months=1, start_date=START)
    )
    assert [p.month for p in result.data_points] == [0, 0.5, 1]
    assert result.data_points[1].nominal_value == pytest.approx(50)


def test_growth_compounds_each_period():
    result = calculate_projection(
        ProjectionParams(
            contribution_amount_usd=1000,
            contribution_frequency="monthly",
            expected_growth_percent=12,
            projection_period_months=24,
            inflation_rate_percent=3,
            start_date=START,
        )
    )
    assert result.nominal_value_at_period_end > result.principal_at_period_end
    assert result.adjusted_value_at_period_end < result.nominal_value_at_period_end
    assert projection_roi(result) > 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"contribution_amount_usd": 0},
        {"contribution_amount_usd": float("nan")},
        {"projection_period_months": 0},
        {"current_btc_price_usd": -1},
        {"expected_growth_percent": -100},
    ],
)
def test_invalid_projection_params_raise(overrides):
    values = {"contribution_amount_usd": 100}
    values.update(overrides)
    with pytest.raises(ValueError):
        calculate_projection(ProjectionParams(**values))


def test_target_date_for_period_rounds_years_up():
    assert target_date_for_period(START, 12, 12) == datetime(2025, 1, 15)
    assert target_date_for_period(START, 5, 12) == datetime(2025, 6, 15)
    assert target_date_for_period(START, 26, 52) == datetime(2025, 7, 15)


def test_roi_at_target_needs_principal():
    assert roi_at_target(ProjectionResult()) is None
    result = ProjectionResult(projected_value_at_target=1100, principal_at_target=1000)
    assert roi_at_target(result) == pytest.approx(10.0)


def _goal(**projection) -> SavedGoal:
    values = {
        "contribution_amount_usd": 100.0,
        "contribution_frequency": "monthly",
        "expected_growth_percent": 0.0,
        "projection_period_months": 12,
        "projection_period_years": 1.0,
        "target_btc_amount": 0.01,
        "current_btc_price_usd": 50000.0,
    }
    values.update(projection)
    return SavedGoal(goal_name="Stack", start_date=START, saved_projection=SavedProjection(**values))


def test_estimate_saved_goal_target_date():
    assert estimate_saved_goal_target_date(_goal()) == datetime(2025, 6, 15)
    assert estimate_saved_goal_target_date(_goal(target_btc_amount=0.0)) is None
    assert estimate_saved_goal_target_date(_goal(current_btc_price_usd=0.0)) is None
