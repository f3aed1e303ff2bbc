"""
Interactive Rich CLI for the car allowance vs. company car calculator.

Flow:
  1. Banner (schedule date + staleness warning)
  2. Optional: start from a saved scenario or a history entry
  3. Scenario prompts (vehicle, financing, usage, energy, costs, taxes)
  4. Personal car / company car / recommendation panels
  5. Horizon sweep table
  6. History table (last calculations, newest first)
  7. Optional save + export (report, JSON, CSV)
"""

import logging
import sys
from datetime import date, datetime
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table
from rich.text import Text

from car_allowance.comparison import (
    breakeven_allowance,
    calculate_scenario,
    compare_horizons,
)
from car_allowance.data.rates import (
    DEFAULT_SCENARIO,
    POWERTRAIN_LABELS,
    POWERTRAINS,
    RATES_DATE,
    BenefitSchedule,
)
from car_allowance.export import (
    default_export_name,
    export_csv,
    export_json,
    export_report,
)
from car_allowance.history import HistoryStore, ScenarioStore
from car_allowance.models import CalculationResult, Scenario
from car_allowance.settings import Settings
from car_allowance.suggestions import (
    suggest_health_tax,
    suggest_monthly_maintenance,
    suggest_national_insurance,
)
from car_allowance.tax import get_schedule
from car_allowance.validation import ScenarioValidationError, ensure_valid

console = Console()
logger = logging.getLogger(__name__)

SWEEP_HORIZONS = [1, 2, 3, 4, 5, 7]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _fmt_money(amount: float) -> str:
    return f"{amount:,.0f}"


def _fmt_pct(rate: float) -> str:
    return f"{rate * 100:.1f}%"


def _signed(amount: float) -> str:
    colour = "green" if amount > 0 else "red"
    return f"[{colour}]{_fmt_money(amount)}[/{colour}]"


# ── Step 1: Banner ────────────────────────────────────────────────────────────

def show_banner(tax_year: int) -> None:
    rates_date_obj = datetime.strptime(RATES_DATE, "%Y-%m-%d").date()
    age_days = (date.today() - rates_date_obj).days

    title = Text("Car Allowance vs. Company Car", style="bold cyan")
    subtitle = Text(
        f"Statutory schedule {tax_year} (as of {RATES_DATE})", style="dim"
    )

    staleness = ""
    if age_days > 365:
        staleness = (
            f"\n[bold red]WARNING:[/bold red] The benefit schedule is {age_days} days old. "
            "Price cap, rate and deductions may have changed for the current tax year."
        )

    console.print(Panel(f"{title}\n{subtitle}{staleness}", expand=False, border_style="cyan"))
    console.print()


# ── Step 2: Starting point ────────────────────────────────────────────────────

def choose_starting_point(history: HistoryStore, store: ScenarioStore) -> dict:
    """Return field defaults: form defaults, a saved scenario, or a history entry."""
    names = store.names()
    if names and Confirm.ask("  Load a saved scenario?", default=False):
        name = Prompt.ask("  Scenario", choices=names, default=names[0])
        scenario = store.load(name)
        if scenario is not None:
            return scenario.model_dump()

    if len(history) and Confirm.ask("  Start from a recent calculation?", default=False):
        show_history(history)
        index = IntPrompt.ask("  Entry #", default=1)
        if 1 <= index <= len(history):
            return history.get(index - 1).scenario.model_dump()
        console.print("[yellow]No such entry, using defaults.[/yellow]")

    return dict(DEFAULT_SCENARIO)


# ── Step 3: Scenario input ────────────────────────────────────────────────────

def _optional_float(label: str, default: float | None) -> float | None:
    raw = Prompt.ask(f"{label} (blank = none)", default="" if default is None else str(default))
    raw = raw.strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        console.print("[red]Not a number, leaving empty.[/red]")
        return None


def prompt_scenario(defaults: dict) -> dict:
    d = defaults
    console.print("[bold]Step 1: Vehicle[/bold]\n")
    name = Prompt.ask("  Name", default=str(d["name"]))
    year = IntPrompt.ask("  Registration year", default=int(d["year"]))
    powertrain = Prompt.ask("  Powertrain", choices=POWERTRAINS, default=str(d["powertrain"]))
    price = FloatPrompt.ask("  Price", default=float(d["price"]))

    console.print("\n[bold]Step 2: Financing[/bold]\n")
    finance_years = IntPrompt.ask("  Finance term (years, 0 = cash)", default=int(d["finance_years"]))
    apr = FloatPrompt.ask("  Annual interest rate (%)", default=float(d["apr"]) * 100) / 100

    console.print("\n[bold]Step 3: Usage & energy[/bold]\n")
    annual_km = FloatPrompt.ask("  Annual distance (km)", default=float(d["annual_km"]))
    kwh_per_100 = None
    elec_home_price = float(d["elec_home_price"])
    elec_public_price = float(d["elec_public_price"])
    home_charge_share = float(d["home_charge_share"])
    if powertrain in ("electric", "hybrid"):
        kwh_per_100 = _optional_float("  Consumption (kWh/100 km)", d.get("kwh_per_100"))
        elec_home_price = FloatPrompt.ask("  Home electricity price (per kWh)", default=elec_home_price)
        elec_public_price = FloatPrompt.ask("  Public charging price (per kWh)", default=elec_public_price)
        home_charge_share = FloatPrompt.ask(
            "  Share charged at home (%)", default=home_charge_share * 100
        ) / 100
    km_per_liter = None
    fuel_price = float(d["fuel_price"])
    if powertrain in ("ice", "hybrid"):
        km_per_liter = _optional_float("  Fuel efficiency (km/l)", d.get("km_per_liter"))
        fuel_price = FloatPrompt.ask("  Fuel price (per liter)", default=fuel_price)

    console.print("\n[bold]Step 4: Running costs[/bold]\n")
    suggested_maint = suggest_monthly_maintenance(year, powertrain, price)
    console.print(f"  [dim]Suggested maintenance for this vehicle: {suggested_maint}/month[/dim]")
    monthly_maint = FloatPrompt.ask("  Monthly maintenance", default=float(d["monthly_maint"]))
    monthly_insurance = FloatPrompt.ask("  Monthly insurance", default=float(d["monthly_insurance"]))
    residual_pct = FloatPrompt.ask("  Residual value at horizon end (%)", default=float(d["residual_pct"]))

    console.print("\n[bold]Step 5: Employer & taxes[/bold]\n")
    employer_allowance = FloatPrompt.ask("  Monthly gross allowance", default=float(d["employer_allowance"]))
    horizon_years = IntPrompt.ask("  Horizon (years)", default=int(d["horizon_years"]))
    tax_bracket = FloatPrompt.ask("  Income-tax bracket (%)", default=float(d["tax_bracket"]) * 100) / 100
    national_insurance = FloatPrompt.ask(
        "  Social insurance (%)", default=suggest_national_insurance(tax_bracket) * 100
    ) / 100
    health_tax = FloatPrompt.ask(
        "  Health tax (%)", default=suggest_health_tax(tax_bracket) * 100
    ) / 100
    override = _optional_float(
        "  Manual monthly taxable value", d.get("company_car_taxable_value")
    )
    console.print()

    return dict(
        name=name,
        year=year,
        powertrain=powertrain,
        price=price,
        finance_years=finance_years,
        apr=apr,
        annual_km=annual_km,
        kwh_per_100=kwh_per_100,
        km_per_liter=km_per_liter,
        elec_home_price=elec_home_price,
        elec_public_price=elec_public_price,
        home_charge_share=home_charge_share,
        fuel_price=fuel_price,
        monthly_maint=monthly_maint,
        monthly_insurance=monthly_insurance,
        residual_pct=residual_pct,
        employer_allowance=employer_allowance,
        horizon_years=horizon_years,
        tax_bracket=tax_bracket,
        national_insurance=national_insurance,
        health_tax=health_tax,
        company_car_taxable_value=override,
    )


def build_scenario(defaults: dict) -> Scenario:
    """Prompt until the answers form a valid scenario."""
    while True:
        answers = prompt_scenario(defaults)
        try:
            return ensure_valid(Scenario(**answers))
        except ScenarioValidationError as e:
            for problem in e.problems:
                console.print(f"[red]Invalid input: {problem}[/red]")
        except ValidationError as e:
            console.print(f"[red]Invalid input: {e}[/red]")
        console.print("Please re-enter the scenario.\n")
        defaults = {**defaults, **answers}


# ── Step 4: Results ───────────────────────────────────────────────────────────

def show_results(scenario: Scenario, result: CalculationResult, breakeven: float) -> None:
    personal = (
        f"  Loan payment:          {_fmt_money(result.monthly_payment)} / month\n"
        f"  Energy:                {_fmt_money(result.monthly_energy)} / month\n"
        f"  Maintenance:           {_fmt_money(scenario.monthly_maint)} / month\n"
        f"  Insurance:             {_fmt_money(scenario.monthly_insurance)} / month\n"
        f"  ─────────────────────────────────────\n"
        f"  Total running cost:    [bold]{_fmt_money(result.monthly_total)}[/bold] / month\n\n"
        f"  Allowance after tax:   [green]{_fmt_money(result.monthly_allowance_net)}[/green] / month"
        f"  [dim](combined rate {_fmt_pct(scenario.total_tax_rate)})[/dim]\n"
        f"  Residual value:        {_fmt_money(result.residual_value)}\n"
        f"  Net over {result.total_months} months:   {_signed(result.net_benefit)}"
    )
    label = POWERTRAIN_LABELS.get(scenario.powertrain, scenario.powertrain)
    console.print(
        Panel(personal, title=f"Personal car (allowance): {scenario.name}, {label}, {scenario.year}",
              border_style="blue")
    )

    company = result.company_car
    source = (
        "[dim](manual override)[/dim]"
        if scenario.company_car_taxable_value is not None
        else "[dim](statutory)[/dim]"
    )
    company_text = (
        f"  Monthly taxable value: {_fmt_money(company.monthly_taxable_value)} {source}\n"
        f"  Tax on benefit:        [red]{_fmt_money(company.monthly_tax_cost)}[/red] / month\n"
        f"  Net over {result.total_months} months:   {_signed(company.net_cost)}"
    )
    console.print(Panel(company_text, title="Company car", border_style="magenta"))

    comparison = result.comparison
    if comparison.better_option == "personal":
        verdict = "[bold green]Take the allowance and buy privately[/bold green]"
    else:
        verdict = "[bold magenta]Keep the company car[/bold magenta]"
    verdict_text = (
        f"  {verdict}\n\n"
        f"  Difference:            {_signed(comparison.difference)}"
        f"  ({_fmt_money(comparison.monthly_difference)} / month)\n"
        f"  Break-even allowance:  {_fmt_money(breakeven)} / month gross"
    )
    console.print(
        Panel(verdict_text, title=f"Recommendation after {scenario.horizon_years} years",
              border_style="green")
    )
    console.print()


# ── Step 5: Horizon sweep ─────────────────────────────────────────────────────

def show_horizon_sweep(scenario: Scenario, schedule: BenefitSchedule) -> None:
    table = Table(title="Same scenario over different horizons", border_style="blue")
    table.add_column("Years", justify="center", style="bold")
    table.add_column("Personal net", justify="right")
    table.add_column("Company net", justify="right")
    table.add_column("Difference", justify="right")
    table.add_column("Better", justify="center")

    for years, r in compare_horizons(scenario, SWEEP_HORIZONS, schedule).items():
        style = "bold cyan" if years == scenario.horizon_years else ""
        table.add_row(
            str(years),
            _fmt_money(r.net_benefit),
            _fmt_money(r.company_car.net_cost),
            _fmt_money(r.comparison.difference),
            r.comparison.better_option,
            style=style,
        )

    console.print(table)
    console.print("  [dim]cyan = your selected horizon[/dim]\n")


# ── Step 6: History ───────────────────────────────────────────────────────────

def show_history(history: HistoryStore) -> None:
    table = Table(title="Recent calculations", border_style="dim")
    table.add_column("#", justify="center")
    table.add_column("Name")
    table.add_column("Year", justify="center")
    table.add_column("When")
    table.add_column("Net (personal)", justify="right")
    table.add_column("Monthly cost", justify="right")
    table.add_column("Allowance", justify="right")

    for i, entry in enumerate(history.entries, start=1):
        table.add_row(
            str(i),
            entry.scenario.name,
            str(entry.scenario.year),
            entry.timestamp.astimezone().strftime("%d %b %H:%M"),
            _signed(entry.calculation.net_benefit),
            _fmt_money(entry.calculation.monthly_total),
            _fmt_money(entry.scenario.employer_allowance),
        )

    console.print(table)
    console.print()


# ── Step 7: Save & export ─────────────────────────────────────────────────────

def save_and_export(
    scenario: Scenario,
    result: CalculationResult,
    store: ScenarioStore,
) -> None:
    if Confirm.ask("  Save this scenario?", default=False):
        store.save(scenario)
        console.print(f"  [green]Saved as {scenario.name!r}[/green]")

    if not Confirm.ask("  Export results?", default=False):
        return

    fmt = Prompt.ask("  Format", choices=["txt", "json", "csv"], default="txt")
    path = Path(Prompt.ask("  Output file path", default=default_export_name(scenario, fmt)))
    try:
        if fmt == "json":
            export_json(scenario, result, path)
        elif fmt == "csv":
            export_csv([(scenario, result)], path)
        else:
            export_report(scenario, result, path)
    except OSError as exc:
        console.print(f"  [red]Export failed: {exc}[/red]")
        return
    console.print(f"  [green]Saved to {path.resolve()}[/green]")


# ── Main entry point ──────────────────────────────────────────────────────────

def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)
    history = HistoryStore(settings.history_path, max_entries=settings.history_limit)
    store = ScenarioStore(settings.scenarios_path)

    try:
        schedule = get_schedule(settings.tax_year)
        show_banner(settings.tax_year)

        defaults = choose_starting_point(history, store)
        scenario = build_scenario(defaults)

        console.print("[dim]Comparing...[/dim]")
        result = calculate_scenario(scenario, schedule)
        show_results(scenario, result, breakeven_allowance(scenario, schedule))
        show_horizon_sweep(scenario, schedule)

        try:
            history.add(scenario, result)
        except OSError as exc:
            logger.error("Could not write history: %s", exc)
        show_history(history)

        save_and_export(scenario, result, store)

        console.print("\n[bold cyan]Done.[/bold cyan]")

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
