"""
Hardcoded statutory schedules and form defaults for tax year 2025.
Update these values when the tax authority publishes a new schedule.
"""

from typing import TypedDict

RATES_DATE = "2025-01-01"

# ── Powertrains ───────────────────────────────────────────────────────────────
POWERTRAINS: list[str] = ["electric", "hybrid", "ice"]

POWERTRAIN_LABELS: dict[str, str] = {
    "electric": "Electric",
    "hybrid":   "Hybrid",
    "ice":      "Internal combustion",
}

# ── Statutory taxable benefit (company car) ──────────────────────────────────
# Monthly taxable value = min(price, price_cap) * monthly_rate, minus a fixed
# monthly deduction for electric and (non-plug-in) hybrid vehicles, floored at 0.

class BenefitSchedule(TypedDict):
    price_cap: float            # list price ceiling used for the computation
    monthly_rate: float         # share of capped price imputed per month
    deduction_electric: float   # monthly deduction for electric vehicles
    deduction_hybrid: float     # monthly deduction for hybrid vehicles


BENEFIT_SCHEDULES: dict[int, BenefitSchedule] = {
    2025: {
        "price_cap":          583_100,
        "monthly_rate":       0.0248,   # 2.48% per month
        "deduction_electric": 1_350,
        "deduction_hybrid":   560,
    },
}

CURRENT_TAX_YEAR = 2025

# ── Energy ────────────────────────────────────────────────────────────────────
# Hybrids are modelled as a fixed 50/50 split of distance between the electric
# and the fuel channel. Known approximation, not derived from usage.
HYBRID_ELECTRIC_SHARE = 0.5

# ── History ───────────────────────────────────────────────────────────────────
HISTORY_MAX_ENTRIES = 10

# ── Form defaults ─────────────────────────────────────────────────────────────
DEFAULT_SCENARIO: dict[str, object] = {
    "name":              "My car",
    "year":              2025,
    "powertrain":        "electric",
    "price":             200_000.0,
    "finance_years":     5,
    "apr":               0.05,
    "annual_km":         20_000.0,
    "kwh_per_100":       15.0,
    "km_per_liter":      15.0,
    "elec_home_price":   0.5,
    "elec_public_price": 1.5,
    "home_charge_share": 0.8,
    "fuel_price":        7.0,
    "monthly_maint":     500.0,
    "monthly_insurance": 300.0,
    "residual_pct":      40.0,
    "employer_allowance": 3_000.0,
    "horizon_years":     3,
    "tax_bracket":       0.47,
    "national_insurance": 0.07,
    "health_tax":        0.05,
}

# ── Suggestion tables ─────────────────────────────────────────────────────────
# (max income-tax bracket, suggested rate); first matching row wins.
NATIONAL_INSURANCE_BY_BRACKET: list[tuple[float, float]] = [
    (0.14, 0.0004),   # very low income, minimal contribution
    (0.20, 0.035),
]
NATIONAL_INSURANCE_DEFAULT = 0.07   # standard rate, capped at high incomes

HEALTH_TAX_BY_BRACKET: list[tuple[float, float]] = [
    (0.20, 0.031),    # up to the average wage
]
HEALTH_TAX_DEFAULT = 0.05

# Monthly maintenance by powertrain for ages (<= 3y, <= 5y, older)
MAINTENANCE_BY_AGE: dict[str, tuple[float, float, float]] = {
    "electric": (400, 550, 800),
    "hybrid":   (550, 750, 1_000),
    "ice":      (650, 900, 1_250),
}
MAINTENANCE_LUXURY_PRICE = 250_000     # above: x1.3
MAINTENANCE_LUXURY_FACTOR = 1.3
MAINTENANCE_BUDGET_PRICE = 150_000     # below: x0.8
MAINTENANCE_BUDGET_FACTOR = 0.8
