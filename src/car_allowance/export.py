"""
Export of a comparison: JSON document, flat CSV rows and a plain-text report.
"""

import csv
import io
import json
import logging
from datetime import date
from pathlib import Path

from car_allowance.data.rates import POWERTRAIN_LABELS, RATES_DATE
from car_allowance.models import CalculationResult, Scenario

logger = logging.getLogger(__name__)


def _fmt_money(amount: float) -> str:
    return f"{amount:,.0f}"


def _fmt_pct(rate: float) -> str:
    return f"{rate * 100:.1f}%"


def default_export_name(scenario: Scenario, suffix: str = "json") -> str:
    """e.g. car-calculation-My car-2025-03-01.json"""
    return f"car-calculation-{scenario.name}-{date.today().isoformat()}.{suffix}"


# ── JSON ──────────────────────────────────────────────────────────────────────

def export_json(scenario: Scenario, result: CalculationResult, path: Path) -> Path:
    """Write {"scenario": ..., "calculation": ...} as indented JSON."""
    document = {
        "scenario": scenario.model_dump(mode="json"),
        "calculation": result.model_dump(mode="json"),
    }
    # allow_nan keeps inf / nan from a degenerate scenario as JSON constants
    path.write_text(
        json.dumps(document, indent=2, ensure_ascii=False, allow_nan=True),
        encoding="utf-8",
    )
    logger.info("Exported JSON to %s", path)
    return path


def import_scenario(path: Path) -> Scenario:
    """
    Read the scenario back from an exported JSON document (or a bare scenario
    object). The stored calculation is ignored; callers recompute.
    """
    document = json.loads(path.read_text(encoding="utf-8"))
    if "scenario" in document:
        document = document["scenario"]
    return Scenario.model_validate(document)


# ── CSV ───────────────────────────────────────────────────────────────────────

def flat_row(scenario: Scenario, result: CalculationResult) -> dict[str, object]:
    """One spreadsheet row: scenario inputs prefixed `scenario.` plus flat results."""
    row: dict[str, object] = {
        f"scenario.{key}": value for key, value in scenario.model_dump().items()
    }
    row.update(result.to_flat_dict())
    return row


def export_csv(
    rows: list[tuple[Scenario, CalculationResult]],
    path: Path | None = None,
) -> str:
    """Render rows as CSV; also write to `path` when given. Returns the CSV text."""
    flat = [flat_row(scenario, result) for scenario, result in rows]
    buffer = io.StringIO()
    if flat:
        writer = csv.DictWriter(buffer, fieldnames=list(flat[0]))
        writer.writeheader()
        writer.writerows(flat)
    text = buffer.getvalue()
    if path is not None:
        path.write_text(text, encoding="utf-8", newline="")
        logger.info("Exported %d CSV rows to %s", len(flat), path)
    return text


# ── Plain-text report ─────────────────────────────────────────────────────────

def generate_report_text(scenario: Scenario, result: CalculationResult) -> str:
    """Plain-text report, same content as the CLI summary."""
    company = result.company_car
    comparison = result.comparison
    override = scenario.company_car_taxable_value is not None
    if comparison.better_option == "personal":
        winner = "Personal car (take the allowance)"
    else:
        winner = "Company car"

    lines = [
        "Car Allowance vs. Company Car Report",
        f"Generated: {date.today().isoformat()}",
        f"Statutory schedule: {RATES_DATE}",
        "=" * 60,
        "",
        "SCENARIO",
        f"  Name:                {scenario.name}",
        f"  Year:                {scenario.year}",
        f"  Powertrain:          {POWERTRAIN_LABELS.get(scenario.powertrain, scenario.powertrain)}",
        f"  Price:               {_fmt_money(scenario.price)}",
        f"  Financing:           {scenario.finance_years} years at {_fmt_pct(scenario.apr)}",
        f"  Annual distance:     {_fmt_money(scenario.annual_km)} km",
        f"  Employer allowance:  {_fmt_money(scenario.employer_allowance)} / month",
        f"  Horizon:             {scenario.horizon_years} years",
        f"  Combined tax rate:   {_fmt_pct(scenario.total_tax_rate)}",
        "",
        "PERSONAL CAR",
        f"  Loan payment:        {_fmt_money(result.monthly_payment)} / month",
        f"  Energy:              {_fmt_money(result.monthly_energy)} / month",
        f"  Maintenance:         {_fmt_money(scenario.monthly_maint)} / month",
        f"  Insurance:           {_fmt_money(scenario.monthly_insurance)} / month",
        f"  Total running cost:  {_fmt_money(result.monthly_total)} / month",
        f"  Net allowance:       {_fmt_money(result.monthly_allowance_net)} / month",
        f"  Residual value:      {_fmt_money(result.residual_value)}",
        f"  Net over horizon:    {_fmt_money(result.net_benefit)}",
        "",
        "COMPANY CAR",
        f"  Taxable value:       {_fmt_money(company.monthly_taxable_value)} / month"
        + ("  (manual override)" if override else ""),
        f"  Tax on benefit:      {_fmt_money(company.monthly_tax_cost)} / month",
        f"  Net over horizon:    {_fmt_money(company.net_cost)}",
        "",
        "RECOMMENDATION",
        f"  {winner}",
        f"  Difference:          {_fmt_money(comparison.difference)} "
        f"({_fmt_money(comparison.monthly_difference)} / month)",
    ]
    return "\n".join(lines)


def export_report(scenario: Scenario, result: CalculationResult, path: Path) -> Path:
    path.write_text(generate_report_text(scenario, result), encoding="utf-8")
    logger.info("Exported report to %s", path)
    return path
