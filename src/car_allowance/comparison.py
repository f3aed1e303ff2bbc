"""
Personal car vs. company car: compose the cost models and decide.

Sign convention: benefits are positive, costs negative.
  net_benefit (personal) = net allowance received - running costs + residual value
  company net cost       = -(tax paid on the statutory benefit)
  difference             = net_benefit - company net cost  (> 0 favours personal)
"""

from dataclasses import dataclass

from car_allowance.calculator import monthly_energy, monthly_payment, safe_div
from car_allowance.data.rates import BenefitSchedule
from car_allowance.models import (
    CalculationResult,
    CompanyCarResult,
    ComparisonSummary,
    Scenario,
)
from car_allowance.tax import net_allowance, taxable_benefit, total_tax_rate


def calculate_scenario(
    scenario: Scenario,
    schedule: BenefitSchedule | None = None,
) -> CalculationResult:
    """
    Full comparison for one scenario. Pure and total: invalid numbers propagate
    as inf / nan instead of raising.
    """
    # Personal car
    payment = monthly_payment(scenario.apr, scenario.finance_years, scenario.price)
    energy = monthly_energy(scenario)
    monthly_total = (
        payment + energy + scenario.monthly_maint + scenario.monthly_insurance
    )

    residual_value = scenario.price * (scenario.residual_pct / 100)
    total_months = scenario.horizon_years * 12

    tax_rate = total_tax_rate(
        scenario.tax_bracket, scenario.national_insurance, scenario.health_tax
    )
    monthly_allowance_net = net_allowance(scenario.employer_allowance, tax_rate)
    total_allowance_net = monthly_allowance_net * total_months

    net_benefit = total_allowance_net - monthly_total * total_months + residual_value

    # Company car: an explicit override (including 0) bypasses the statutory formula
    if scenario.company_car_taxable_value is not None:
        monthly_taxable_value = scenario.company_car_taxable_value
    else:
        monthly_taxable_value = taxable_benefit(
            scenario.price, scenario.year, scenario.powertrain, schedule
        )
    monthly_tax_cost = monthly_taxable_value * tax_rate
    total_tax_cost = monthly_tax_cost * total_months
    company_net_cost = -total_tax_cost

    difference = net_benefit - company_net_cost

    return CalculationResult(
        monthly_payment=payment,
        monthly_energy=energy,
        monthly_total=monthly_total,
        residual_value=residual_value,
        net_benefit=net_benefit,
        total_months=total_months,
        monthly_allowance_net=monthly_allowance_net,
        total_allowance_net=total_allowance_net,
        company_car=CompanyCarResult(
            monthly_taxable_value=monthly_taxable_value,
            monthly_tax_cost=monthly_tax_cost,
            total_tax_cost=total_tax_cost,
            net_cost=company_net_cost,
        ),
        comparison=ComparisonSummary(
            difference=difference,
            better_option="personal" if difference > 0 else "company",
            monthly_difference=safe_div(difference, total_months),
        ),
    )


def breakeven_allowance(
    scenario: Scenario,
    schedule: BenefitSchedule | None = None,
) -> float:
    """
    Gross monthly allowance at which both options come out equal.

    The difference is linear in the allowance:
        difference(A) = A * (1 - t) * M - monthly_total * M + residual + total_tax_cost
    so difference(A) = 0 at
        A = (monthly_total * M - residual - total_tax_cost) / ((1 - t) * M)

    Returns inf or nan when the combined tax rate is 1 (nothing of the allowance
    is kept) or the horizon is zero.
    """
    result = calculate_scenario(scenario, schedule)
    months = result.total_months
    keep_rate = 1 - scenario.total_tax_rate

    needed = (
        result.monthly_total * months
        - result.residual_value
        - result.company_car.total_tax_cost
    )
    return safe_div(needed, keep_rate * months)


@dataclass
class RankedScenario:
    rank: int
    name: str
    difference: float            # personal - company over the horizon
    monthly_difference: float
    better_option: str
    breakeven_allowance: float   # gross allowance at which both options tie
    scenario: Scenario
    result: CalculationResult


def rank_scenarios(
    scenarios: list[Scenario],
    schedule: BenefitSchedule | None = None,
) -> list[RankedScenario]:
    """
    Run calculate_scenario for every scenario.
    Returns results sorted descending by difference (strongest case for taking
    the allowance first).
    """
    ranked: list[RankedScenario] = []

    for scenario in scenarios:
        result = calculate_scenario(scenario, schedule)
        ranked.append(
            RankedScenario(
                rank=0,  # assigned after sorting
                name=scenario.name,
                difference=result.comparison.difference,
                monthly_difference=result.comparison.monthly_difference,
                better_option=result.comparison.better_option,
                breakeven_allowance=breakeven_allowance(scenario, schedule),
                scenario=scenario,
                result=result,
            )
        )

    ranked.sort(key=lambda r: r.difference, reverse=True)
    for i, r in enumerate(ranked):
        r.rank = i + 1

    return ranked


def compare_horizons(
    scenario: Scenario,
    horizons: list[int],
    schedule: BenefitSchedule | None = None,
) -> dict[int, CalculationResult]:
    """Re-run the scenario for each horizon (years); other inputs unchanged."""
    return {
        years: calculate_scenario(
            scenario.model_copy(update={"horizon_years": years}), schedule
        )
        for years in horizons
    }


def cumulative_positions(
    result: CalculationResult,
) -> tuple[list[float], list[float]]:
    """
    Month-by-month cumulative net position of both options.

    Personal: net allowance minus running costs each month; the residual value
    is realised in the final month.
    Company:  tax on the taxable benefit each month.

    The final entries equal result.net_benefit and result.company_car.net_cost.
    """
    personal: list[float] = []
    company: list[float] = []

    monthly_personal = result.monthly_allowance_net - result.monthly_total
    monthly_company = -result.company_car.monthly_tax_cost

    running_personal = 0.0
    running_company = 0.0
    for month in range(1, result.total_months + 1):
        running_personal += monthly_personal
        running_company += monthly_company
        if month == result.total_months:
            running_personal += result.residual_value
        personal.append(running_personal)
        company.append(running_company)

    return personal, company
