"""
Tests for suggestions.py: form pre-fill heuristics.
"""

import pytest

from car_allowance.suggestions import (
    suggest_health_tax,
    suggest_monthly_maintenance,
    suggest_national_insurance,
)


@pytest.mark.parametrize(
    "bracket, expected",
    [(0.10, 0.0004), (0.14, 0.0004), (0.20, 0.035), (0.31, 0.07), (0.47, 0.07)],
)
def test_national_insurance(bracket, expected):
    assert suggest_national_insurance(bracket) == expected


@pytest.mark.parametrize("bracket, expected", [(0.14, 0.031), (0.20, 0.031), (0.35, 0.05)])
def test_health_tax(bracket, expected):
    assert suggest_health_tax(bracket) == expected


def test_maintenance_new_mid_price_electric():
    assert suggest_monthly_maintenance(2024, "electric", 200_000, current_year=2025) == 400


def test_maintenance_age_bands():
    assert suggest_monthly_maintenance(2021, "ice", 200_000, current_year=2025) == 900
    assert suggest_monthly_maintenance(2015, "ice", 200_000, current_year=2025) == 1_250


def test_maintenance_luxury_and_budget():
    assert suggest_monthly_maintenance(2025, "hybrid", 300_000, current_year=2025) == 715
    assert suggest_monthly_maintenance(2025, "hybrid", 100_000, current_year=2025) == 440


def test_maintenance_unknown_price_unadjusted():
    assert suggest_monthly_maintenance(2025, "electric", 0, current_year=2025) == 400
