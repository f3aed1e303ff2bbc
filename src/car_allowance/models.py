"""Pydantic v2 models for the car allowance calculator."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from car_allowance.data.rates import POWERTRAINS


class Scenario(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str                          # Display / history label only
    year: int                          # Registration year (informational)
    powertrain: str                    # "electric" | "hybrid" | "ice"
    price: float                       # Vehicle price
    finance_years: int                 # Loan term in years (0 = cash purchase)
    apr: float                         # Annual interest rate (0.05 = 5%)
    annual_km: float                   # Distance driven per year
    kwh_per_100: float | None = None   # Electricity use per 100 km (electric/hybrid)
    km_per_liter: float | None = None  # Fuel efficiency (ice/hybrid)
    elec_home_price: float             # Price per kWh at home
    elec_public_price: float           # Price per kWh at public chargers
    home_charge_share: float           # Fraction of charging done at home (0..1)
    fuel_price: float                  # Price per liter
    monthly_maint: float               # Maintenance, taken as given
    monthly_insurance: float           # Insurance, taken as given
    residual_pct: float                # Resale value at horizon end, % of price
    employer_allowance: float          # Monthly gross cash allowance
    horizon_years: int                 # Analysis period in years
    tax_bracket: float                 # Marginal income-tax rate
    national_insurance: float          # Social-insurance contribution rate
    health_tax: float                  # Health-tax contribution rate
    company_car_taxable_value: float | None = None  # Manual statutory override

    @field_validator("powertrain")
    @classmethod
    def validate_powertrain(cls, v: str) -> str:
        if v not in POWERTRAINS:
            raise ValueError(f"powertrain must be one of {POWERTRAINS}, got {v!r}")
        return v

    @property
    def total_tax_rate(self) -> float:
        return self.tax_bracket + self.national_insurance + self.health_tax


class CompanyCarResult(BaseModel):
    model_config = ConfigDict(ser_json_inf_nan="constants")

    monthly_taxable_value: float   # Statutory (or overridden) monthly benefit
    monthly_tax_cost: float        # Tax actually paid on the benefit per month
    total_tax_cost: float          # Over the whole horizon
    net_cost: float                # -total_tax_cost (costs are negative)


class ComparisonSummary(BaseModel):
    model_config = ConfigDict(ser_json_inf_nan="constants")

    difference: float                              # personal - company (> 0 favours personal)
    better_option: Literal["personal", "company"]
    monthly_difference: float                      # difference / total_months


class CalculationResult(BaseModel):
    # inf / nan survive a JSON round trip
    model_config = ConfigDict(ser_json_inf_nan="constants")

    # Personal car (with allowance)
    monthly_payment: float
    monthly_energy: float
    monthly_total: float           # payment + energy + maintenance + insurance
    residual_value: float
    net_benefit: float
    total_months: int
    monthly_allowance_net: float   # allowance after all taxes
    total_allowance_net: float

    company_car: CompanyCarResult
    comparison: ComparisonSummary

    def to_flat_dict(self) -> dict[str, float | int | str]:
        """Flatten nested sections into dotted keys, e.g. ``company_car.net_cost``."""
        flat: dict[str, float | int | str] = {}
        for key, value in self.model_dump().items():
            if isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    flat[f"{key}.{sub_key}"] = sub_value
            else:
                flat[key] = value
        return flat


class HistoryEntry(BaseModel):
    scenario: Scenario
    calculation: CalculationResult
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
