"""
PyQt6 GUI for the car allowance vs. company car calculator.

Layout:
  QMainWindow
  └── QSplitter (horizontal)
      ├── QScrollArea  ← InputPanel (scenario parameters)
      └── QTabWidget   ← results tabs
            ├── Tab 0: Summary (personal car, company car, recommendation)
            ├── Tab 1: Cost Breakdown (monthly pie + horizon totals)
            ├── Tab 2: Cumulative Position (personal vs company over time)
            └── Tab 3: History (last calculations, double-click to reload)

Signal flow:
  InputPanel.scenario_ready(Scenario)      live, on every valid edit
    → CarAllowanceWindow._on_scenario_ready() → calculate_scenario() → _update_tabs()
  InputPanel.calculate_requested(Scenario) Calculate button
    → same, plus HistoryStore.add()
  HistoryTableWidget.scenario_selected(Scenario)
    → InputPanel.load_scenario()
"""

import logging
import sys
from pathlib import Path

from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg
from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter
from pydantic import ValidationError
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QColor, QFont
from PyQt6.QtWidgets import (
    QApplication,
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QFrame,
    QGroupBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QScrollArea,
    QSpinBox,
    QSplitter,
    QTabWidget,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from car_allowance.calculator import monthly_cost_breakdown
from car_allowance.comparison import (
    breakeven_allowance,
    calculate_scenario,
    cumulative_positions,
)
from car_allowance.data.rates import (
    DEFAULT_SCENARIO,
    POWERTRAIN_LABELS,
    POWERTRAINS,
    RATES_DATE,
)
from car_allowance.export import (
    default_export_name,
    export_csv,
    export_json,
    export_report,
    import_scenario,
)
from car_allowance.history import HistoryStore, ScenarioStore
from car_allowance.models import CalculationResult, HistoryEntry, Scenario
from car_allowance.settings import Settings
from car_allowance.suggestions import (
    suggest_health_tax,
    suggest_monthly_maintenance,
    suggest_national_insurance,
)
from car_allowance.tax import get_schedule
from car_allowance.validation import ScenarioValidationError, ensure_valid

logger = logging.getLogger(__name__)

# ── Tab index constants ───────────────────────────────────────────────────────
TAB_SUMMARY = 0

_GREEN = QColor("#b7e4a7")   # personal car wins
_PINK = QColor("#f4c2d7")    # company car wins


# ── Small helpers ─────────────────────────────────────────────────────────────

def _money_fmt(x: float, _: object) -> str:
    """Compact axis label: 1,500,000 → '1.5M', 50,000 → '50k'."""
    if abs(x) >= 1_000_000:
        return f"{x / 1_000_000:.1f}M"
    return f"{x / 1_000:.0f}k"


def _money(value: float) -> str:
    return f"{value:,.0f}"


def _bold(text: str) -> QLabel:
    lbl = QLabel(text)
    f = QFont()
    f.setBold(True)
    lbl.setFont(f)
    return lbl


def _hline() -> QFrame:
    line = QFrame()
    line.setFrameShape(QFrame.Shape.HLine)
    line.setFrameShadow(QFrame.Shadow.Sunken)
    return line


# ── Summary panel (Tab 0) ─────────────────────────────────────────────────────

class SummaryPanelWidget(QWidget):
    """
    Tab 0, three QGroupBox panels: personal car, company car, recommendation.
    Rebuilt from scratch on every refresh().
    """

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.Shape.NoFrame)

        self._container = QWidget()
        self._vlayout = QVBoxLayout(self._container)
        self._vlayout.setSpacing(16)
        self._vlayout.setContentsMargins(12, 12, 12, 12)
        self._vlayout.addStretch()

        scroll.setWidget(self._container)
        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)
        outer.addWidget(scroll)

    def refresh(
        self,
        scenario: Scenario,
        result: CalculationResult,
        breakeven: float,
    ) -> None:
        while self._vlayout.count():
            item = self._vlayout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()

        self._vlayout.addWidget(self._build_recommendation_group(scenario, result, breakeven))
        self._vlayout.addWidget(self._build_personal_group(scenario, result))
        self._vlayout.addWidget(self._build_company_group(scenario, result))
        self._vlayout.addStretch()

    def _build_personal_group(self, scenario: Scenario, result: CalculationResult) -> QGroupBox:
        box = QGroupBox("Personal Car (take the allowance)")
        form = QFormLayout(box)
        form.setSpacing(6)

        form.addRow(QLabel("Loan payment / month:"), QLabel(_money(result.monthly_payment)))
        form.addRow(QLabel("Energy / month:"), QLabel(_money(result.monthly_energy)))
        form.addRow(QLabel("Maintenance / month:"), QLabel(_money(scenario.monthly_maint)))
        form.addRow(QLabel("Insurance / month:"), QLabel(_money(scenario.monthly_insurance)))
        form.addRow(_bold("Running cost / month:"), _bold(_money(result.monthly_total)))
        form.addRow(_hline())
        form.addRow(
            QLabel(f"Allowance after tax ({scenario.total_tax_rate:.1%}):"),
            QLabel(_money(result.monthly_allowance_net)),
        )
        form.addRow(QLabel("Residual value at horizon end:"), QLabel(_money(result.residual_value)))
        form.addRow(
            _bold(f"Net over {result.total_months} months:"),
            _bold(_money(result.net_benefit)),
        )
        return box

    def _build_company_group(self, scenario: Scenario, result: CalculationResult) -> QGroupBox:
        company = result.company_car
        box = QGroupBox("Company Car")
        form = QFormLayout(box)
        form.setSpacing(6)

        source = "manual" if scenario.company_car_taxable_value is not None else "statutory"
        form.addRow(
            QLabel(f"Taxable value / month ({source}):"),
            QLabel(_money(company.monthly_taxable_value)),
        )
        form.addRow(QLabel("Tax on benefit / month:"), QLabel(_money(company.monthly_tax_cost)))
        form.addRow(
            _bold(f"Net over {result.total_months} months:"),
            _bold(_money(company.net_cost)),
        )

        note = QLabel(
            f"Statutory schedule as of {RATES_DATE}. The taxable value is a share of "
            "the capped list price, reduced for electric and hybrid vehicles."
        )
        note.setWordWrap(True)
        note.setStyleSheet("color: #555; font-size: 11px;")
        form.addRow(note)
        return box

    def _build_recommendation_group(
        self,
        scenario: Scenario,
        result: CalculationResult,
        breakeven: float,
    ) -> QGroupBox:
        comparison = result.comparison
        personal = comparison.better_option == "personal"

        box = QGroupBox(f"Recommendation after {scenario.horizon_years} years")
        colour = _GREEN if personal else _PINK
        box.setStyleSheet(f"QGroupBox {{ background: {colour.name()}; }}")
        form = QFormLayout(box)
        form.setSpacing(6)

        verdict = "Take the allowance and buy privately" if personal else "Keep the company car"
        form.addRow(_bold(verdict))
        form.addRow(QLabel("Difference (personal − company):"), QLabel(_money(comparison.difference)))
        form.addRow(QLabel("Per month:"), QLabel(_money(comparison.monthly_difference)))
        form.addRow(QLabel("Break-even gross allowance:"), QLabel(_money(breakeven)))
        return box


# ── Cost breakdown charts (Tab 1) ─────────────────────────────────────────────

class CostBreakdownChartWidget(QWidget):
    """
    Tab 1: Where the money goes.

    Left subplot : monthly running cost pie (loan, energy, maintenance, insurance).
    Right subplot: horizon totals of gross allowance, running costs, residual value.
    """

    _PIE_LABELS = ["Loan", "Energy", "Maintenance", "Insurance"]
    _PIE_COLORS = ["#3b82f6", "#10b981", "#f59e0b", "#ef4444"]

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._fig = Figure(constrained_layout=True)
        self._canvas = FigureCanvasQTAgg(self._fig)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addWidget(self._canvas)

    def refresh(self, scenario: Scenario, result: CalculationResult) -> None:
        self._fig.clear()
        ax_pie, ax_bar = self._fig.subplots(1, 2)

        breakdown = monthly_cost_breakdown(scenario)
        slices = [
            (label, value, colour)
            for label, value, colour in zip(self._PIE_LABELS, breakdown.values(), self._PIE_COLORS)
            if value > 0
        ]
        if slices:
            labels, sizes, colours = zip(*slices)
            ax_pie.pie(sizes, labels=labels, colors=colours, autopct="%1.1f%%", startangle=140)
        ax_pie.set_title(f"Monthly cost: {_money(result.monthly_total)}", fontsize=10)

        names = ["Allowance (gross)", "Running costs", "Residual value"]
        amounts = [
            scenario.employer_allowance * result.total_months,
            result.monthly_total * result.total_months,
            result.residual_value,
        ]
        ax_bar.bar(names, amounts, color=["#10b981", "#ef4444", "#3b82f6"])
        ax_bar.set_title(f"Totals over {result.total_months} months", fontsize=10)
        ax_bar.yaxis.set_major_formatter(FuncFormatter(_money_fmt))
        ax_bar.tick_params(axis="x", labelsize=8)

        self._canvas.draw()


# ── Cumulative position chart (Tab 2) ─────────────────────────────────────────

class CumulativeChartWidget(QWidget):
    """
    Tab 2: Cumulative net position of both options, month by month.
    The residual value shows as a jump in the personal line at the last month.
    """

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._fig = Figure(constrained_layout=True)
        self._canvas = FigureCanvasQTAgg(self._fig)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addWidget(self._canvas)

    def refresh(self, result: CalculationResult) -> None:
        self._fig.clear()
        ax = self._fig.add_subplot(111)

        personal, company = cumulative_positions(result)
        months = list(range(1, len(personal) + 1))

        ax.plot(months, personal, color="#3b82f6", linewidth=2, label="Personal car")
        ax.plot(months, company, color="#d946ef", linewidth=2, label="Company car")
        ax.axhline(0, color="#888", linewidth=0.8)

        ax.set_xlabel("Month")
        ax.set_ylabel("Cumulative net position")
        ax.set_title("Cumulative Net Position")
        ax.yaxis.set_major_formatter(FuncFormatter(_money_fmt))
        ax.legend(loc="lower left", fontsize=9)

        self._canvas.draw()


# ── History table (Tab 3) ─────────────────────────────────────────────────────

class HistoryTableWidget(QWidget):
    """
    Tab 3: recent calculations, newest first. Double-click a row to load its
    scenario back into the input panel.
    """

    scenario_selected = pyqtSignal(object)   # Scenario
    clear_requested = pyqtSignal()

    _HEADERS = ["Name", "Year", "When", "Net (personal)", "Monthly cost", "Allowance", "Better"]

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._entries: list[HistoryEntry] = []

        self.table = QTableWidget(0, len(self._HEADERS))
        self.table.setHorizontalHeaderLabels(self._HEADERS)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.table.setSelectionMode(QTableWidget.SelectionMode.SingleSelection)
        self.table.verticalHeader().setVisible(False)
        hdr = self.table.horizontalHeader()
        hdr.setSectionResizeMode(QHeaderView.ResizeMode.ResizeToContents)
        hdr.setStretchLastSection(True)
        self.table.cellDoubleClicked.connect(self._on_double_clicked)

        self.clear_btn = QPushButton("Clear history")
        self.clear_btn.clicked.connect(lambda: self.clear_requested.emit())

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addWidget(self.table)
        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(self.clear_btn)
        layout.addLayout(buttons)

    def refresh(self, entries: list[HistoryEntry]) -> None:
        self._entries = list(entries)
        self.table.clearContents()
        self.table.setRowCount(len(self._entries))

        RIGHT = Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter

        for row, entry in enumerate(self._entries):
            calc = entry.calculation
            cells = [
                (entry.scenario.name, Qt.AlignmentFlag.AlignVCenter),
                (str(entry.scenario.year), Qt.AlignmentFlag.AlignCenter),
                (entry.timestamp.astimezone().strftime("%d %b %H:%M"), Qt.AlignmentFlag.AlignVCenter),
                (_money(calc.net_benefit), RIGHT),
                (_money(calc.monthly_total), RIGHT),
                (_money(entry.scenario.employer_allowance), RIGHT),
                (calc.comparison.better_option, Qt.AlignmentFlag.AlignCenter),
            ]
            bg = _GREEN if calc.comparison.better_option == "personal" else _PINK
            for col, (text, align) in enumerate(cells):
                item = QTableWidgetItem(text)
                item.setTextAlignment(align)
                item.setBackground(bg)
                self.table.setItem(row, col, item)

        self.clear_btn.setEnabled(bool(self._entries))

    def _on_double_clicked(self, row: int, _column: int) -> None:
        if 0 <= row < len(self._entries):
            self.scenario_selected.emit(self._entries[row].scenario)


# ── Input panel ───────────────────────────────────────────────────────────────

class InputPanel(QWidget):
    """
    Left-panel scenario form.

    Emits scenario_ready(Scenario) whenever the inputs change and are valid,
    calculate_requested(Scenario) when the Calculate button is pressed, and
    scenario_invalid(str) with the first validation problem otherwise.
    """

    scenario_ready = pyqtSignal(object)        # Scenario
    calculate_requested = pyqtSignal(object)   # Scenario
    scenario_invalid = pyqtSignal(str)

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._loading = False   # suppress recalculation while filling fields
        self._setup_ui()
        self._connect_signals()
        self.load_scenario(Scenario(**DEFAULT_SCENARIO))

    # ── UI construction ───────────────────────────────────────────────────────

    @staticmethod
    def _spin(
        lo: float,
        hi: float,
        step: float,
        decimals: int = 0,
        suffix: str = "",
    ) -> QDoubleSpinBox:
        box = QDoubleSpinBox()
        box.setRange(lo, hi)
        box.setSingleStep(step)
        box.setDecimals(decimals)
        box.setGroupSeparatorShown(True)
        if suffix:
            box.setSuffix(suffix)
        return box

    def _setup_ui(self) -> None:
        outer = QVBoxLayout(self)
        outer.setContentsMargins(14, 14, 14, 14)
        outer.setSpacing(10)

        title = QLabel("Scenario")
        title.setStyleSheet("font-size: 15px; font-weight: bold;")
        outer.addWidget(title)
        outer.addWidget(_hline())

        form = QFormLayout()
        form.setRowWrapPolicy(QFormLayout.RowWrapPolicy.WrapLongRows)
        form.setSpacing(8)
        form.setLabelAlignment(Qt.AlignmentFlag.AlignRight)

        # Vehicle
        self.name = QLineEdit()
        form.addRow("Name:", self.name)
        self.year = QSpinBox()
        self.year.setRange(1980, 2100)
        form.addRow("Registration year:", self.year)
        self.powertrain = QComboBox()
        for key in POWERTRAINS:
            self.powertrain.addItem(POWERTRAIN_LABELS[key], key)
        form.addRow("Powertrain:", self.powertrain)
        self.price = self._spin(0, 5_000_000, 5_000)
        form.addRow("Price:", self.price)

        # Financing
        self.finance_years = QSpinBox()
        self.finance_years.setRange(0, 10)
        self.finance_years.setSuffix(" years")
        self.finance_years.setToolTip("0 = cash purchase, no loan payment.")
        form.addRow("Finance term:", self.finance_years)
        self.apr = self._spin(0, 30, 0.25, 2, " %")
        form.addRow("Interest rate:", self.apr)

        # Usage & energy
        self.annual_km = self._spin(0, 200_000, 1_000, suffix=" km")
        form.addRow("Annual distance:", self.annual_km)
        self.kwh_per_100 = self._spin(0, 100, 0.5, 1, " kWh/100km")
        form.addRow("Consumption:", self.kwh_per_100)
        self.km_per_liter = self._spin(0, 100, 0.5, 1, " km/l")
        form.addRow("Fuel efficiency:", self.km_per_liter)
        self.elec_home_price = self._spin(0, 10, 0.05, 2)
        form.addRow("Home kWh price:", self.elec_home_price)
        self.elec_public_price = self._spin(0, 10, 0.05, 2)
        form.addRow("Public kWh price:", self.elec_public_price)
        self.home_charge_share = self._spin(0, 100, 5, 0, " %")
        form.addRow("Charged at home:", self.home_charge_share)
        self.fuel_price = self._spin(0, 50, 0.1, 2)
        form.addRow("Fuel price:", self.fuel_price)

        # Running costs
        self.monthly_maint = self._spin(0, 20_000, 50)
        self.suggest_maint_btn = QPushButton("Suggest")
        maint_row = QHBoxLayout()
        maint_row.addWidget(self.monthly_maint)
        maint_row.addWidget(self.suggest_maint_btn)
        form.addRow("Maintenance / month:", maint_row)
        self.monthly_insurance = self._spin(0, 20_000, 50)
        form.addRow("Insurance / month:", self.monthly_insurance)
        self.residual_pct = self._spin(0, 100, 5, 0, " %")
        form.addRow("Residual value:", self.residual_pct)

        # Employer & taxes
        self.employer_allowance = self._spin(0, 100_000, 100)
        form.addRow("Allowance / month:", self.employer_allowance)
        self.horizon_years = QSpinBox()
        self.horizon_years.setRange(1, 15)
        self.horizon_years.setSuffix(" years")
        form.addRow("Horizon:", self.horizon_years)
        self.tax_bracket = self._spin(0, 100, 1, 1, " %")
        form.addRow("Income-tax bracket:", self.tax_bracket)
        self.national_insurance = self._spin(0, 100, 0.5, 2, " %")
        form.addRow("Social insurance:", self.national_insurance)
        self.health_tax = self._spin(0, 100, 0.5, 2, " %")
        form.addRow("Health tax:", self.health_tax)
        self.suggest_rates_btn = QPushButton("Suggest contribution rates")
        form.addRow(self.suggest_rates_btn)

        self.override_check = QCheckBox("Manual taxable value")
        self.override_value = self._spin(0, 100_000, 50)
        self.override_value.setEnabled(False)
        form.addRow(self.override_check, self.override_value)

        outer.addLayout(form)
        outer.addSpacing(4)

        self.calc_btn = QPushButton("Calculate")
        self.calc_btn.setStyleSheet(
            "QPushButton { font-weight: bold; padding: 7px; }"
            "QPushButton:hover { background: #0078d7; color: white; }"
        )
        outer.addWidget(self.calc_btn)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #cc0000; font-size: 11px;")
        self.error_label.setWordWrap(True)
        outer.addWidget(self.error_label)

        outer.addStretch()

    # ── Signal wiring ─────────────────────────────────────────────────────────

    def _value_widgets(self) -> list[QWidget]:
        return [
            self.year, self.price, self.finance_years, self.apr, self.annual_km,
            self.kwh_per_100, self.km_per_liter, self.elec_home_price,
            self.elec_public_price, self.home_charge_share, self.fuel_price,
            self.monthly_maint, self.monthly_insurance, self.residual_pct,
            self.employer_allowance, self.horizon_years, self.tax_bracket,
            self.national_insurance, self.health_tax, self.override_value,
        ]

    def _connect_signals(self) -> None:
        for widget in self._value_widgets():
            widget.valueChanged.connect(self._recalculate)
        self.name.editingFinished.connect(self._recalculate)
        self.powertrain.currentIndexChanged.connect(self._on_powertrain_changed)
        self.override_check.toggled.connect(self._on_override_toggled)
        self.suggest_maint_btn.clicked.connect(self._on_suggest_maintenance)
        self.suggest_rates_btn.clicked.connect(self._on_suggest_rates)
        self.calc_btn.clicked.connect(self._on_calculate_clicked)

    # ── Slot handlers ─────────────────────────────────────────────────────────

    def _on_powertrain_changed(self) -> None:
        """Only the energy fields of the selected powertrain are editable."""
        powertrain = self.powertrain.currentData()
        electric = powertrain in ("electric", "hybrid")
        fuel = powertrain in ("ice", "hybrid")
        for widget in (self.kwh_per_100, self.elec_home_price,
                       self.elec_public_price, self.home_charge_share):
            widget.setEnabled(electric)
        for widget in (self.km_per_liter, self.fuel_price):
            widget.setEnabled(fuel)
        self._recalculate()

    def _on_override_toggled(self, checked: bool) -> None:
        self.override_value.setEnabled(checked)
        self._recalculate()

    def _on_suggest_maintenance(self) -> None:
        self.monthly_maint.setValue(
            suggest_monthly_maintenance(
                self.year.value(), self.powertrain.currentData(), self.price.value()
            )
        )

    def _on_suggest_rates(self) -> None:
        bracket = self.tax_bracket.value() / 100
        self._loading = True
        self.national_insurance.setValue(suggest_national_insurance(bracket) * 100)
        self._loading = False
        self.health_tax.setValue(suggest_health_tax(bracket) * 100)

    def _on_calculate_clicked(self) -> None:
        scenario = self._validated_scenario()
        if scenario is not None:
            self.calculate_requested.emit(scenario)

    # ── Validation & calculation ──────────────────────────────────────────────

    def _recalculate(self) -> None:
        if self._loading:
            return
        scenario = self._validated_scenario()
        if scenario is not None:
            self.scenario_ready.emit(scenario)

    def _validated_scenario(self) -> Scenario | None:
        self.error_label.setText("")
        try:
            return ensure_valid(self._build_scenario())
        except ScenarioValidationError as exc:
            msg = exc.problems[0]
        except ValidationError as exc:
            msg = exc.errors()[0]["msg"]
        self.error_label.setText(msg)
        self.scenario_invalid.emit(msg)
        return None

    def _build_scenario(self) -> Scenario:
        powertrain = self.powertrain.currentData()
        electric = powertrain in ("electric", "hybrid")
        fuel = powertrain in ("ice", "hybrid")
        return Scenario(
            name=self.name.text().strip() or str(DEFAULT_SCENARIO["name"]),
            year=self.year.value(),
            powertrain=powertrain,
            price=self.price.value(),
            finance_years=self.finance_years.value(),
            apr=self.apr.value() / 100,
            annual_km=self.annual_km.value(),
            kwh_per_100=self.kwh_per_100.value() if electric else None,
            km_per_liter=self.km_per_liter.value() if fuel else None,
            elec_home_price=self.elec_home_price.value(),
            elec_public_price=self.elec_public_price.value(),
            home_charge_share=self.home_charge_share.value() / 100,
            fuel_price=self.fuel_price.value(),
            monthly_maint=self.monthly_maint.value(),
            monthly_insurance=self.monthly_insurance.value(),
            residual_pct=self.residual_pct.value(),
            employer_allowance=self.employer_allowance.value(),
            horizon_years=self.horizon_years.value(),
            tax_bracket=self.tax_bracket.value() / 100,
            national_insurance=self.national_insurance.value() / 100,
            health_tax=self.health_tax.value() / 100,
            company_car_taxable_value=(
                self.override_value.value() if self.override_check.isChecked() else None
            ),
        )

    def current_scenario(self) -> Scenario | None:
        """Return the current Scenario if valid, else None."""
        try:
            return ensure_valid(self._build_scenario())
        except (ScenarioValidationError, ValidationError):
            return None

    def load_scenario(self, scenario: Scenario) -> None:
        """Fill every field from a scenario, then recalculate once."""
        self._loading = True
        self.name.setText(scenario.name)
        self.year.setValue(scenario.year)
        self.powertrain.setCurrentIndex(max(0, self.powertrain.findData(scenario.powertrain)))
        self.price.setValue(scenario.price)
        self.finance_years.setValue(scenario.finance_years)
        self.apr.setValue(scenario.apr * 100)
        self.annual_km.setValue(scenario.annual_km)
        self.kwh_per_100.setValue(scenario.kwh_per_100 or 0.0)
        self.km_per_liter.setValue(scenario.km_per_liter or 0.0)
        self.elec_home_price.setValue(scenario.elec_home_price)
        self.elec_public_price.setValue(scenario.elec_public_price)
        self.home_charge_share.setValue(scenario.home_charge_share * 100)
        self.fuel_price.setValue(scenario.fuel_price)
        self.monthly_maint.setValue(scenario.monthly_maint)
        self.monthly_insurance.setValue(scenario.monthly_insurance)
        self.residual_pct.setValue(scenario.residual_pct)
        self.employer_allowance.setValue(scenario.employer_allowance)
        self.horizon_years.setValue(scenario.horizon_years)
        self.tax_bracket.setValue(scenario.tax_bracket * 100)
        self.national_insurance.setValue(scenario.national_insurance * 100)
        self.health_tax.setValue(scenario.health_tax * 100)
        has_override = scenario.company_car_taxable_value is not None
        self.override_check.setChecked(has_override)
        self.override_value.setEnabled(has_override)
        self.override_value.setValue(scenario.company_car_taxable_value or 0.0)
        self._loading = False
        self._on_powertrain_changed()


# ── Main window ───────────────────────────────────────────────────────────────

class CarAllowanceWindow(QMainWindow):
    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__()
        self.settings = settings or Settings()
        self.schedule = get_schedule(self.settings.tax_year)
        self.history = HistoryStore(
            self.settings.history_path, max_entries=self.settings.history_limit
        )
        self.store = ScenarioStore(self.settings.scenarios_path)

        self.setWindowTitle("Car Allowance vs. Company Car")
        self.setMinimumSize(1200, 750)

        # Computation results, populated by _on_scenario_ready, read by tabs
        self._scenario: Scenario | None = None
        self._result: CalculationResult | None = None

        # ── Toolbar ───────────────────────────────────────────────────────────
        toolbar = self.addToolBar("Main")
        toolbar.setMovable(False)
        self._open_action = toolbar.addAction("Open Scenario…")
        self._open_action.triggered.connect(self._on_open)
        self._save_action = toolbar.addAction("Save Scenario")
        self._save_action.triggered.connect(self._on_save)
        self._export_action = toolbar.addAction("Export…")
        self._export_action.triggered.connect(self._on_export)
        self._set_result_actions_enabled(False)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.setChildrenCollapsible(False)

        # Left: input panel (emits an initial scenario before signals are wired)
        self.input_panel = InputPanel()
        self.input_scroll = QScrollArea()
        self.input_scroll.setWidgetResizable(True)
        self.input_scroll.setMinimumWidth(340)
        self.input_scroll.setMaximumWidth(500)
        self.input_scroll.setWidget(self.input_panel)
        splitter.addWidget(self.input_scroll)

        # Right: tabbed results
        self.tabs = QTabWidget()
        self.summary_panel = SummaryPanelWidget()
        self.cost_breakdown_chart = CostBreakdownChartWidget()
        self.cumulative_chart = CumulativeChartWidget()
        self.history_table = HistoryTableWidget()
        self.tabs.addTab(self.summary_panel, "Summary")
        self.tabs.addTab(self.cost_breakdown_chart, "Cost Breakdown")
        self.tabs.addTab(self.cumulative_chart, "Cumulative Position")
        self.tabs.addTab(self.history_table, "History")
        splitter.addWidget(self.tabs)

        splitter.setSizes([380, 820])
        self.setCentralWidget(splitter)

        self.statusBar().showMessage("Enter scenario parameters on the left and press Calculate.")

        self.input_panel.scenario_ready.connect(self._on_scenario_ready)
        self.input_panel.calculate_requested.connect(self._on_calculate_requested)
        self.input_panel.scenario_invalid.connect(
            lambda msg: self.statusBar().showMessage(f"Invalid input: {msg}")
        )
        self.history_table.scenario_selected.connect(self._on_history_selected)
        self.history_table.clear_requested.connect(self._on_clear_history)

        self.history_table.refresh(self.history.entries)
        initial = self.input_panel.current_scenario()
        if initial is not None:
            self._on_scenario_ready(initial)

    def _set_result_actions_enabled(self, enabled: bool) -> None:
        self._save_action.setEnabled(enabled)
        self._export_action.setEnabled(enabled)

    # ── Computation ───────────────────────────────────────────────────────────

    def _on_scenario_ready(self, scenario: Scenario) -> None:
        """Run the comparison and update all tabs."""
        self._scenario = scenario
        self._result = calculate_scenario(scenario, self.schedule)

        self.setWindowTitle(
            f"{scenario.name} · {POWERTRAIN_LABELS[scenario.powertrain]} · "
            f"{scenario.horizon_years}y"
        )
        comparison = self._result.comparison
        self.statusBar().showMessage(
            f"Better option: {comparison.better_option}  |  "
            f"Difference {comparison.difference:,.0f}  |  "
            f"{comparison.monthly_difference:,.0f} / month"
        )
        self._set_result_actions_enabled(True)
        self._update_tabs()

    def _on_calculate_requested(self, scenario: Scenario) -> None:
        self._on_scenario_ready(scenario)
        try:
            self.history.add(scenario, self._result)
        except OSError as exc:
            logger.error("Could not write history: %s", exc)
            self.statusBar().showMessage(f"Could not write history: {exc}")
        self.history_table.refresh(self.history.entries)
        self.tabs.setCurrentIndex(TAB_SUMMARY)

    def _update_tabs(self) -> None:
        if self._scenario is None or self._result is None:
            return
        breakeven = breakeven_allowance(self._scenario, self.schedule)
        self.summary_panel.refresh(self._scenario, self._result, breakeven)
        self.cost_breakdown_chart.refresh(self._scenario, self._result)
        self.cumulative_chart.refresh(self._result)

    # ── History ───────────────────────────────────────────────────────────────

    def _on_history_selected(self, scenario: Scenario) -> None:
        self.input_panel.load_scenario(scenario)
        self.statusBar().showMessage(f"Loaded {scenario.name!r} from history")

    def _on_clear_history(self) -> None:
        try:
            self.history.clear()
        except OSError as exc:
            self.statusBar().showMessage(f"Could not clear history: {exc}")
        self.history_table.refresh(self.history.entries)

    # ── Files ─────────────────────────────────────────────────────────────────

    def _on_save(self) -> None:
        if self._scenario is None:
            return
        try:
            key = self.store.save(self._scenario)
        except OSError as exc:
            self.statusBar().showMessage(f"Save failed: {exc}")
            return
        self.statusBar().showMessage(f"Scenario saved as {key!r}")

    def _on_open(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Scenario", "", "JSON files (*.json);;All files (*)"
        )
        if not path:
            return
        try:
            scenario = import_scenario(Path(path))
        except (OSError, ValueError) as exc:
            self.statusBar().showMessage(f"Could not open {path}: {exc}")
            return
        self.input_panel.load_scenario(scenario)

    def _on_export(self) -> None:
        """Save dialog; the chosen filter decides the format."""
        if self._scenario is None or self._result is None:
            return
        path, chosen = QFileDialog.getSaveFileName(
            self,
            "Export",
            default_export_name(self._scenario, "txt"),
            "Text report (*.txt);;JSON (*.json);;CSV (*.csv)",
        )
        if not path:
            return
        target = Path(path)
        try:
            if target.suffix == ".json" or chosen.startswith("JSON"):
                export_json(self._scenario, self._result, target)
            elif target.suffix == ".csv" or chosen.startswith("CSV"):
                export_csv([(self._scenario, self._result)], target)
            else:
                export_report(self._scenario, self._result, target)
            self.statusBar().showMessage(f"Exported to {path}")
        except OSError as exc:
            self.statusBar().showMessage(f"Export failed: {exc}")


# ── Entry point ───────────────────────────────────────────────────────────────

def main() -> None:
    settings = Settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.WARNING))
    app = QApplication(sys.argv)
    app.setApplicationName("Car Allowance Calculator")
    window = CarAllowanceWindow(settings)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
