"""
Company-car benefit taxation and net allowance.

Statutory taxable benefit (per BENEFIT_SCHEDULES):
  - Price is capped at the schedule's price_cap.
  - Base value = capped price x monthly_rate.
  - Electric: minus deduction_electric, floored at 0.
  - Hybrid:   minus deduction_hybrid, floored at 0.
  - ICE:      no deduction.
  - The registration year is accepted but does not enter the formula.

Employee tax on both the allowance and the benefit uses one combined rate:
income-tax bracket + social insurance + health tax, held constant for the
whole horizon (no progressive modelling inside this rate).
"""

from car_allowance.data.rates import (
    BENEFIT_SCHEDULES,
    CURRENT_TAX_YEAR,
    BenefitSchedule,
)


def get_schedule(tax_year: int = CURRENT_TAX_YEAR) -> BenefitSchedule:
    """Return the statutory benefit schedule for a tax year."""
    try:
        return BENEFIT_SCHEDULES[tax_year]
    except KeyError:
        raise KeyError(
            f"No benefit schedule for tax year {tax_year}; "
            f"known years: {sorted(BENEFIT_SCHEDULES)}"
        ) from None


def taxable_benefit(
    price: float,
    year: int,
    powertrain: str,
    schedule: BenefitSchedule | None = None,
) -> float:
    """
    Monthly taxable value of an employer-provided vehicle.

    Args:
        price:      Vehicle list price.
        year:       Registration year (unused by the statutory formula).
        powertrain: "electric" | "hybrid" | "ice".
        schedule:   Statutory constants; defaults to the current tax year.
    """
    if schedule is None:
        schedule = get_schedule()

    effective_price = min(price, schedule["price_cap"])
    value = effective_price * schedule["monthly_rate"]

    if powertrain == "electric":
        value = max(0.0, value - schedule["deduction_electric"])
    elif powertrain == "hybrid":
        value = max(0.0, value - schedule["deduction_hybrid"])

    return value


def total_tax_rate(
    tax_bracket: float,
    national_insurance: float,
    health_tax: float,
) -> float:
    """Combined marginal rate: simple sum of the three components."""
    return tax_bracket + national_insurance + health_tax


def net_allowance(gross_monthly: float, tax_rate: float) -> float:
    """Monthly allowance left after the combined tax rate."""
    return gross_monthly * (1 - tax_rate)
