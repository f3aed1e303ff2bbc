"""
Boundary validation for scenarios coming from the CLI, the GUI or a file.

The engine itself accepts anything and lets bad numbers propagate; callers use
validate_scenario / ensure_valid before running a comparison.
"""

from car_allowance.models import Scenario

_RATE_FIELDS = (
    "apr",
    "home_charge_share",
    "tax_bracket",
    "national_insurance",
    "health_tax",
)

_NON_NEGATIVE_FIELDS = (
    "annual_km",
    "elec_home_price",
    "elec_public_price",
    "fuel_price",
    "monthly_maint",
    "monthly_insurance",
    "employer_allowance",
)


class ScenarioValidationError(ValueError):
    """Raised when a scenario is outside the range the comparison makes sense for."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = problems
        super().__init__("; ".join(problems))


def validate_scenario(scenario: Scenario) -> list[str]:
    """Return a list of human-readable problems (empty when the scenario is usable)."""
    problems: list[str] = []

    if scenario.price <= 0:
        problems.append("price must be positive")
    if scenario.finance_years < 0:
        problems.append("finance_years cannot be negative")
    if scenario.horizon_years <= 0:
        problems.append("horizon_years must be positive")
    if not 0 <= scenario.residual_pct <= 100:
        problems.append("residual_pct must be between 0 and 100")

    for field in _RATE_FIELDS:
        value = getattr(scenario, field)
        if not 0 <= value <= 1:
            problems.append(f"{field} must be between 0 and 1, got {value}")

    for field in _NON_NEGATIVE_FIELDS:
        if getattr(scenario, field) < 0:
            problems.append(f"{field} cannot be negative")

    for field in ("kwh_per_100", "km_per_liter", "company_car_taxable_value"):
        value = getattr(scenario, field)
        if value is not None and value < 0:
            problems.append(f"{field} cannot be negative")

    if scenario.total_tax_rate > 1:
        problems.append(
            f"combined tax rate {scenario.total_tax_rate:.1%} exceeds 100%"
        )

    return problems


def ensure_valid(scenario: Scenario) -> Scenario:
    """Return the scenario unchanged, or raise ScenarioValidationError."""
    problems = validate_scenario(scenario)
    if problems:
        raise ScenarioValidationError(problems)
    return scenario
