"""
Tests for comparison.py: full scenario comparison, break-even allowance,
ranking, horizon sweep and cumulative positions.
"""

import math

import pytest

from car_allowance.calculator import monthly_energy, monthly_payment
from car_allowance.comparison import (
    breakeven_allowance,
    calculate_scenario,
    compare_horizons,
    cumulative_positions,
    rank_scenarios,
)
from car_allowance.data.rates import DEFAULT_SCENARIO
from car_allowance.models import Scenario
from car_allowance.tax import taxable_benefit


# ── Helpers ───────────────────────────────────────────────────────────────────

def make_scenario(**kwargs) -> Scenario:
    defaults = dict(DEFAULT_SCENARIO)
    defaults.update(kwargs)
    return Scenario(**defaults)


# ── calculate_scenario ────────────────────────────────────────────────────────

def test_default_scenario_totals():
    scenario = make_scenario()
    result = calculate_scenario(scenario)

    expected_total = monthly_payment(0.05, 5, 200_000) + monthly_energy(scenario) + 800
    assert result.monthly_total == pytest.approx(expected_total)
    assert result.total_months == 36
    assert result.residual_value == pytest.approx(80_000)
    assert result.monthly_allowance_net == pytest.approx(1_230)
    assert result.total_allowance_net == pytest.approx(44_280)
    assert result.net_benefit == pytest.approx(44_280 - expected_total * 36 + 80_000)


def test_company_car_sign_convention():
    result = calculate_scenario(make_scenario())
    company = result.company_car
    assert company.monthly_taxable_value == pytest.approx(3_610)
    assert company.monthly_tax_cost == pytest.approx(3_610 * 0.59)
    assert company.total_tax_cost == pytest.approx(3_610 * 0.59 * 36)
    assert company.net_cost == pytest.approx(-company.total_tax_cost)


def test_difference_and_decision():
    result = calculate_scenario(make_scenario())
    comparison = result.comparison
    assert comparison.difference == pytest.approx(
        result.net_benefit - result.company_car.net_cost
    )
    assert comparison.monthly_difference == pytest.approx(comparison.difference / 36)
    assert comparison.better_option == ("personal" if comparison.difference > 0 else "company")


def test_low_allowance_favours_company_car():
    result = calculate_scenario(make_scenario(employer_allowance=0, residual_pct=0))
    assert result.comparison.better_option == "company"


def test_override_bypasses_formula():
    result = calculate_scenario(make_scenario(company_car_taxable_value=5_000))
    assert result.company_car.monthly_taxable_value == 5_000


def test_zero_override_is_honoured():
    result = calculate_scenario(make_scenario(company_car_taxable_value=0))
    assert result.company_car.monthly_taxable_value == 0
    assert result.company_car.net_cost == 0


def test_missing_override_uses_formula():
    scenario = make_scenario(powertrain="hybrid", price=300_000)
    result = calculate_scenario(scenario)
    assert result.company_car.monthly_taxable_value == pytest.approx(
        taxable_benefit(300_000, 2025, "hybrid")
    )


def test_tie_goes_to_company_car():
    """Zero everything: difference is exactly 0, which is not > 0."""
    scenario = make_scenario(
        finance_years=0, annual_km=0, monthly_maint=0, monthly_insurance=0,
        residual_pct=0, employer_allowance=0, company_car_taxable_value=0,
    )
    result = calculate_scenario(scenario)
    assert result.comparison.difference == 0
    assert result.comparison.better_option == "company"


def test_zero_horizon_does_not_raise():
    scenario = make_scenario(horizon_years=0, residual_pct=0)
    result = calculate_scenario(scenario)
    assert result.total_months == 0
    assert math.isnan(result.comparison.monthly_difference)


def test_zero_horizon_with_residual_gives_infinite_monthly_difference():
    result = calculate_scenario(make_scenario(horizon_years=0))
    assert result.comparison.difference == pytest.approx(80_000)
    assert result.comparison.monthly_difference == math.inf


# ── Break-even allowance ──────────────────────────────────────────────────────

def test_breakeven_closes_the_gap():
    scenario = make_scenario()
    allowance = breakeven_allowance(scenario)
    result = calculate_scenario(scenario.model_copy(update={"employer_allowance": allowance}))
    assert result.comparison.difference == pytest.approx(0, abs=1e-6)


def test_breakeven_with_full_tax_rate():
    scenario = make_scenario(tax_bracket=0.88, national_insurance=0.07, health_tax=0.05)
    assert math.isinf(breakeven_allowance(scenario))


# ── Ranking ───────────────────────────────────────────────────────────────────

def test_rank_scenarios_sorted_by_difference():
    scenarios = [
        make_scenario(name="low", employer_allowance=1_000),
        make_scenario(name="high", employer_allowance=6_000),
        make_scenario(name="mid", employer_allowance=3_000),
    ]
    ranked = rank_scenarios(scenarios)
    assert [r.name for r in ranked] == ["high", "mid", "low"]
    assert [r.rank for r in ranked] == [1, 2, 3]
    assert ranked[0].difference >= ranked[1].difference >= ranked[2].difference


def test_rank_scenarios_carries_breakeven():
    scenario = make_scenario()
    [ranked] = rank_scenarios([scenario])
    assert ranked.breakeven_allowance == pytest.approx(breakeven_allowance(scenario))
    assert ranked.result == calculate_scenario(scenario)


def test_rank_scenarios_empty():
    assert rank_scenarios([]) == []


# ── Horizon sweep ─────────────────────────────────────────────────────────────

def test_compare_horizons():
    scenario = make_scenario()
    results = compare_horizons(scenario, [1, 3, 5])
    assert list(results) == [1, 3, 5]
    assert results[5].total_months == 60
    assert results[3] == calculate_scenario(scenario)
    assert scenario.horizon_years == 3


# ── Cumulative positions ──────────────────────────────────────────────────────

def test_cumulative_positions_end_at_totals():
    result = calculate_scenario(make_scenario())
    personal, company = cumulative_positions(result)
    assert len(personal) == len(company) == 36
    assert personal[-1] == pytest.approx(result.net_benefit)
    assert company[-1] == pytest.approx(result.company_car.net_cost)


def test_cumulative_positions_residual_in_last_month():
    result = calculate_scenario(make_scenario())
    personal, _ = cumulative_positions(result)
    step = result.monthly_allowance_net - result.monthly_total
    assert personal[0] == pytest.approx(step)
    assert personal[-1] - personal[-2] == pytest.approx(step + result.residual_value)


def test_cumulative_positions_zero_horizon():
    result = calculate_scenario(make_scenario(horizon_years=0))
    assert cumulative_positions(result) == ([], [])
