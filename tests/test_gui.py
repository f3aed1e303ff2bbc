"""
GUI smoke tests: panels, charts, history table, input form and main window.
Uses offscreen Qt rendering.
"""

import pytest

from car_allowance.comparison import breakeven_allowance, calculate_scenario
from car_allowance.data.rates import DEFAULT_SCENARIO
from car_allowance.history import HistoryStore
from car_allowance.models import Scenario
from car_allowance.settings import Settings


# ── Fixtures ──────────────────────────────────────────────────────────────────

def make_scenario(**kwargs) -> Scenario:
    defaults = dict(DEFAULT_SCENARIO)
    defaults.update(kwargs)
    return Scenario(**defaults)


@pytest.fixture(scope="module")
def qt_app():
    """Single QApplication instance for all GUI tests in this module."""
    from PyQt6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path)


# ── SummaryPanelWidget ────────────────────────────────────────────────────────

class TestSummaryPanelWidget:
    def test_refresh_builds_groups(self, qt_app):
        from PyQt6.QtWidgets import QGroupBox
        from car_allowance.gui import SummaryPanelWidget
        widget = SummaryPanelWidget()
        scenario = make_scenario()
        widget.refresh(scenario, calculate_scenario(scenario), breakeven_allowance(scenario))
        assert len(widget._container.findChildren(QGroupBox)) >= 3

    def test_refresh_twice_with_override(self, qt_app):
        from car_allowance.gui import SummaryPanelWidget
        widget = SummaryPanelWidget()
        for scenario in (make_scenario(), make_scenario(company_car_taxable_value=0)):
            widget.refresh(scenario, calculate_scenario(scenario), breakeven_allowance(scenario))


# ── Charts ────────────────────────────────────────────────────────────────────

class TestCostBreakdownChartWidget:
    def test_refresh(self, qt_app):
        from car_allowance.gui import CostBreakdownChartWidget
        widget = CostBreakdownChartWidget()
        scenario = make_scenario()
        widget.refresh(scenario, calculate_scenario(scenario))
        assert len(widget._fig.axes) == 2

    def test_refresh_clears_previous(self, qt_app):
        from car_allowance.gui import CostBreakdownChartWidget
        widget = CostBreakdownChartWidget()
        scenario = make_scenario(powertrain="ice")
        result = calculate_scenario(scenario)
        widget.refresh(scenario, result)
        widget.refresh(scenario, result)
        assert len(widget._fig.axes) == 2

    def test_refresh_all_costs_zero(self, qt_app):
        from car_allowance.gui import CostBreakdownChartWidget
        widget = CostBreakdownChartWidget()
        scenario = make_scenario(
            finance_years=0, annual_km=0, monthly_maint=0, monthly_insurance=0
        )
        widget.refresh(scenario, calculate_scenario(scenario))


class TestCumulativeChartWidget:
    def test_refresh(self, qt_app):
        from car_allowance.gui import CumulativeChartWidget
        widget = CumulativeChartWidget()
        widget.refresh(calculate_scenario(make_scenario()))
        ax = widget._fig.axes[0]
        assert len(ax.lines[0].get_xdata()) == 36


# ── History table ─────────────────────────────────────────────────────────────

class TestHistoryTableWidget:
    def test_refresh_rows(self, qt_app, tmp_path):
        from car_allowance.gui import HistoryTableWidget
        store = HistoryStore(tmp_path / "history.json")
        for name in ("a", "b"):
            scenario = make_scenario(name=name)
            store.add(scenario, calculate_scenario(scenario))
        widget = HistoryTableWidget()
        widget.refresh(store.entries)
        assert widget.table.rowCount() == 2
        assert widget.table.item(0, 0).text() == "b"
        assert widget.clear_btn.isEnabled()

    def test_double_click_emits_scenario(self, qt_app, tmp_path):
        from car_allowance.gui import HistoryTableWidget
        store = HistoryStore(tmp_path / "history.json")
        scenario = make_scenario(name="pick me")
        store.add(scenario, calculate_scenario(scenario))
        widget = HistoryTableWidget()
        widget.refresh(store.entries)

        received = []
        widget.scenario_selected.connect(received.append)
        widget.table.cellDoubleClicked.emit(0, 0)
        assert received == [scenario]


# ── InputPanel ────────────────────────────────────────────────────────────────

class TestInputPanel:
    def test_defaults_are_valid(self, qt_app):
        from car_allowance.gui import InputPanel
        panel = InputPanel()
        scenario = panel.current_scenario()
        assert scenario is not None
        assert scenario.powertrain == "electric"
        assert scenario.apr == pytest.approx(0.05)
        assert scenario.km_per_liter is None

    def test_load_scenario_round_trip(self, qt_app):
        from car_allowance.gui import InputPanel
        panel = InputPanel()
        stored = make_scenario(
            name="Hybrid", powertrain="hybrid", company_car_taxable_value=1_500
        )
        panel.load_scenario(stored)
        scenario = panel.current_scenario()
        assert scenario.powertrain == "hybrid"
        assert scenario.company_car_taxable_value == pytest.approx(1_500)
        assert scenario.kwh_per_100 == pytest.approx(15)
        assert scenario.km_per_liter == pytest.approx(15)

    def test_invalid_input_reports_error(self, qt_app):
        from car_allowance.gui import InputPanel
        panel = InputPanel()
        errors = []
        panel.scenario_invalid.connect(errors.append)
        panel.price.setValue(0)
        assert errors
        assert "price" in panel.error_label.text()

    def test_suggest_rates(self, qt_app):
        from car_allowance.gui import InputPanel
        panel = InputPanel()
        panel.tax_bracket.setValue(10)
        panel.suggest_rates_btn.click()
        assert panel.national_insurance.value() == pytest.approx(0.04)
        assert panel.health_tax.value() == pytest.approx(3.1)


# ── Main window ───────────────────────────────────────────────────────────────

class TestCarAllowanceWindow:
    def test_initial_calculation(self, qt_app, settings):
        from car_allowance.gui import CarAllowanceWindow
        window = CarAllowanceWindow(settings)
        assert window._result is not None
        assert window.tabs.count() == 4

    def test_calculate_adds_history(self, qt_app, settings):
        from car_allowance.gui import CarAllowanceWindow
        window = CarAllowanceWindow(settings)
        window.input_panel.calc_btn.click()
        assert len(window.history) == 1
        assert window.history_table.table.rowCount() == 1
        assert settings.history_path.exists()

    def test_edit_recalculates_without_history(self, qt_app, settings):
        from car_allowance.gui import CarAllowanceWindow
        window = CarAllowanceWindow(settings)
        window.input_panel.employer_allowance.setValue(10_000)
        assert window._scenario.employer_allowance == 10_000
        assert len(window.history) == 0

    def test_save_scenario(self, qt_app, settings):
        from car_allowance.gui import CarAllowanceWindow
        window = CarAllowanceWindow(settings)
        window._on_save()
        assert window.store.names() == [DEFAULT_SCENARIO["name"]]
