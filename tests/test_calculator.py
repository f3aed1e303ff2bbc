"""
Numerical tests for calculator.py: loan payment and energy cost.
"""

import math

import pytest

from car_allowance.calculator import (
    monthly_cost_breakdown,
    monthly_energy,
    monthly_payment,
    safe_div,
)
from car_allowance.comparison import calculate_scenario
from car_allowance.data.rates import DEFAULT_SCENARIO
from car_allowance.models import Scenario


# ── Helpers ───────────────────────────────────────────────────────────────────

def make_scenario(**kwargs) -> Scenario:
    defaults = dict(DEFAULT_SCENARIO)
    defaults.update(kwargs)
    return Scenario(**defaults)


# ── Loan payment ──────────────────────────────────────────────────────────────

def test_annuity_formula():
    """Standard annuity payment: P*r/(1-(1+r)^-n)."""
    P = 200_000
    r = 0.05 / 12
    n = 60

    expected = P * r / (1 - (1 + r) ** -n)
    assert monthly_payment(0.05, 5, P) == pytest.approx(expected, abs=0.01)
    assert monthly_payment(0.05, 5, P) == pytest.approx(3774.25, abs=0.01)


def test_zero_rate_is_straight_line():
    assert monthly_payment(0.0, 5, 120_000) == pytest.approx(2_000.0)


def test_cash_purchase_has_no_payment():
    assert monthly_payment(0.05, 0, 200_000) == 0.0
    assert monthly_payment(0.0, 0, 200_000) == 0.0


def test_total_paid_covers_principal():
    """With a positive rate the payments sum to more than the principal."""
    payment = monthly_payment(0.07, 4, 150_000)
    assert payment * 48 > 150_000


def test_negative_rate_does_not_raise():
    payment = monthly_payment(-0.02, 3, 100_000)
    assert math.isfinite(payment)
    assert payment * 36 < 100_000


def test_huge_rate_does_not_overflow():
    """Growth factor beyond float range: payment tends to r * P."""
    assert monthly_payment(12.0, 100, 1_000) == pytest.approx(1_000.0)


def test_huge_rate_scenario_still_compares():
    result = calculate_scenario(make_scenario(apr=12.0, finance_years=100))
    assert result.monthly_payment == pytest.approx(200_000.0)
    assert result.comparison.better_option == "company"


# ── Division helper ───────────────────────────────────────────────────────────

def test_safe_div_regular():
    assert safe_div(10, 4) == 2.5


def test_safe_div_by_zero():
    assert safe_div(5, 0) == math.inf
    assert safe_div(-5, 0) == -math.inf
    assert math.isnan(safe_div(0, 0))


# ── Energy ────────────────────────────────────────────────────────────────────

def test_electric_energy():
    """3,000 kWh/year: 80% at 0.5 + 20% at 1.5 = 2,100/year."""
    assert monthly_energy(make_scenario(powertrain="electric")) == pytest.approx(175.0)


def test_electric_without_consumption_is_zero():
    scenario = make_scenario(powertrain="electric", kwh_per_100=None)
    assert monthly_energy(scenario) == 0.0


def test_ice_energy():
    """20,000 km at 15 km/l = 1,333.3 l/year at 7.0."""
    scenario = make_scenario(powertrain="ice")
    assert monthly_energy(scenario) == pytest.approx(20_000 / 15 * 7 / 12)


def test_ice_ignores_electric_inputs():
    a = make_scenario(powertrain="ice", kwh_per_100=15)
    b = make_scenario(powertrain="ice", kwh_per_100=None, elec_public_price=9.0)
    assert monthly_energy(a) == pytest.approx(monthly_energy(b))


def test_ice_without_efficiency_is_zero():
    assert monthly_energy(make_scenario(powertrain="ice", km_per_liter=None)) == 0.0


def test_hybrid_splits_distance():
    scenario = make_scenario(powertrain="hybrid")
    electric = (1_500 * 0.8 * 0.5 + 1_500 * 0.2 * 1.5) / 12
    fuel = 10_000 / 15 * 7 / 12
    assert monthly_energy(scenario) == pytest.approx(electric + fuel)


def test_hybrid_zero_efficiency_has_no_fuel_channel():
    scenario = make_scenario(powertrain="hybrid", km_per_liter=0)
    assert monthly_energy(scenario) == pytest.approx(87.5)


def test_nan_efficiency_has_no_fuel_channel():
    scenario = make_scenario(powertrain="ice", km_per_liter=float("nan"))
    assert monthly_energy(scenario) == 0.0


def test_nan_consumption_is_zero():
    scenario = make_scenario(powertrain="electric", kwh_per_100=float("nan"))
    assert monthly_energy(scenario) == 0.0


# ── Breakdown ─────────────────────────────────────────────────────────────────

def test_breakdown_components():
    scenario = make_scenario()
    breakdown = monthly_cost_breakdown(scenario)
    assert list(breakdown) == ["loan", "energy", "maintenance", "insurance"]
    assert breakdown["loan"] == pytest.approx(monthly_payment(0.05, 5, 200_000))
    assert breakdown["energy"] == pytest.approx(175.0)
    assert breakdown["maintenance"] == 500.0
    assert breakdown["insurance"] == 300.0
