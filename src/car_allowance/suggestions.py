"""
Input-form suggestions: contribution rates from the income-tax bracket and a
maintenance estimate from vehicle age, powertrain and price.

These only pre-fill inputs; the engine never calls them.
"""

from datetime import date

from car_allowance.data.rates import (
    HEALTH_TAX_BY_BRACKET,
    HEALTH_TAX_DEFAULT,
    MAINTENANCE_BUDGET_FACTOR,
    MAINTENANCE_BUDGET_PRICE,
    MAINTENANCE_BY_AGE,
    MAINTENANCE_LUXURY_FACTOR,
    MAINTENANCE_LUXURY_PRICE,
    NATIONAL_INSURANCE_BY_BRACKET,
    NATIONAL_INSURANCE_DEFAULT,
)


def _lookup(bracket: float, table: list[tuple[float, float]], default: float) -> float:
    for upper, rate in table:
        if bracket <= upper:
            return rate
    return default


def suggest_national_insurance(tax_bracket: float) -> float:
    """Typical social-insurance rate for an employee in the given bracket."""
    return _lookup(tax_bracket, NATIONAL_INSURANCE_BY_BRACKET, NATIONAL_INSURANCE_DEFAULT)


def suggest_health_tax(tax_bracket: float) -> float:
    """Health tax: reduced rate up to the average wage, full rate above."""
    return _lookup(tax_bracket, HEALTH_TAX_BY_BRACKET, HEALTH_TAX_DEFAULT)


def suggest_monthly_maintenance(
    year: int,
    powertrain: str,
    price: float,
    current_year: int | None = None,
) -> int:
    """
    Monthly maintenance estimate.

    Age bands (current_year - year): <= 3, <= 5, older.
    Price adjustment: x1.3 above 250,000; x0.8 below 150,000.
    """
    if current_year is None:
        current_year = date.today().year
    age = current_year - (year or current_year)

    new, mid, old = MAINTENANCE_BY_AGE.get(powertrain, MAINTENANCE_BY_AGE["ice"])
    if age <= 3:
        base = new
    elif age <= 5:
        base = mid
    else:
        base = old

    if price > MAINTENANCE_LUXURY_PRICE:
        base *= MAINTENANCE_LUXURY_FACTOR
    elif 0 < price < MAINTENANCE_BUDGET_PRICE:
        base *= MAINTENANCE_BUDGET_FACTOR

    return round(base)
