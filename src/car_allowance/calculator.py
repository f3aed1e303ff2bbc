"""
Core personal-ownership math: loan amortization and monthly energy cost.

Key conventions:
- Financing term and horizon are whole years, converted to months by * 12.
- finance_years == 0 is a cash purchase: no monthly loan payment.
- Missing consumption figures count as zero consumption, never an error.
- Hybrids split distance 50/50 between electricity and fuel (HYBRID_ELECTRIC_SHARE).
- Division by zero follows IEEE semantics (inf / nan) instead of raising, so the
  engine always returns a result.
"""

import math

from car_allowance.data.rates import HYBRID_ELECTRIC_SHARE
from car_allowance.models import Scenario


def safe_div(numerator: float, denominator: float) -> float:
    """Float division returning ±inf or nan on a zero denominator."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        sign = math.copysign(1.0, numerator) * math.copysign(1.0, denominator)
        return math.copysign(math.inf, sign)
    return numerator / denominator


def monthly_payment(apr: float, years: int, principal: float) -> float:
    """
    Fixed monthly loan payment (PMT).

    years == 0 -> 0 (cash purchase).
    apr == 0   -> straight-line principal / n.
    otherwise  -> r * P / (1 - (1 + r)^-n) with r = apr / 12, n = years * 12.
    """
    if years == 0:
        return 0.0

    r = apr / 12
    n = years * 12

    if r == 0:
        return safe_div(principal, n)

    try:
        growth = (1 + r) ** n
    except OverflowError:
        growth = math.inf
    discount = safe_div(1.0, growth)
    return safe_div(r * principal, 1 - discount)


def _present(value: float | None) -> float:
    """Unset, zero or NaN inputs count as zero consumption."""
    if not value or math.isnan(value):
        return 0.0
    return value


def _monthly_electric_cost(scenario: Scenario, kwh_year: float) -> float:
    home_cost = kwh_year * scenario.home_charge_share * scenario.elec_home_price
    public_cost = kwh_year * (1 - scenario.home_charge_share) * scenario.elec_public_price
    return (home_cost + public_cost) / 12


def _monthly_fuel_cost(scenario: Scenario, km_year: float) -> float:
    # Unset, zero or NaN efficiency means no fuel channel
    km_per_liter = _present(scenario.km_per_liter)
    liters_year = km_year / km_per_liter if km_per_liter else 0.0
    return liters_year * scenario.fuel_price / 12


def monthly_energy(scenario: Scenario) -> float:
    """Monthly electricity / fuel spend for the scenario's powertrain."""
    kwh_year = scenario.annual_km / 100 * _present(scenario.kwh_per_100)

    if scenario.powertrain == "electric":
        return _monthly_electric_cost(scenario, kwh_year)

    if scenario.powertrain == "hybrid":
        electric = _monthly_electric_cost(scenario, kwh_year * HYBRID_ELECTRIC_SHARE)
        fuel = _monthly_fuel_cost(
            scenario, scenario.annual_km * (1 - HYBRID_ELECTRIC_SHARE)
        )
        return electric + fuel

    return _monthly_fuel_cost(scenario, scenario.annual_km)


def monthly_cost_breakdown(scenario: Scenario) -> dict[str, float]:
    """
    Monthly running cost of the personal car split by component.

    Keys: loan, energy, maintenance, insurance (values sum to the monthly total).
    """
    return {
        "loan": monthly_payment(scenario.apr, scenario.finance_years, scenario.price),
        "energy": monthly_energy(scenario),
        "maintenance": scenario.monthly_maint,
        "insurance": scenario.monthly_insurance,
    }
