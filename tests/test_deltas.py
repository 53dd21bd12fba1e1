"""
Unit tests for period deltas (seller_analytics/period_comparison/deltas.py):
    - calculate_delta(): absolute/percent change and direction
    - expense metrics (invert=True)
    - format_delta_percent() / format_delta_absolute()

Run with:
    pytest tests/test_deltas.py -v
"""

import math

import pytest

from seller_analytics.period_comparison.deltas import (
    Direction,
    calculate_delta,
    format_delta_absolute,
    format_delta_percent,
)


class TestCalculateDelta:
    def test_growth_is_positive(self):
        delta = calculate_delta(120.0, 100.0)
        assert delta.absolute == pytest.approx(20.0)
        assert delta.percent == pytest.approx(20.0)
        assert delta.direction == Direction.POSITIVE

    def test_decline_is_negative(self):
        delta = calculate_delta(80.0, 100.0)
        assert delta.percent == pytest.approx(-20.0)
        assert delta.direction == Direction.NEGATIVE

    def test_expense_decrease_is_positive(self):
        delta = calculate_delta(90.0, 100.0, invert=True)
        assert delta.percent == pytest.approx(-10.0)
        assert delta.direction == Direction.POSITIVE

    def test_expense_increase_is_negative(self):
        delta = calculate_delta(110.0, 100.0, invert=True)
        assert delta.direction == Direction.NEGATIVE

    def test_negative_baseline_improvement(self):
        # Loss shrinking from -100 to -90 is an improvement
        delta = calculate_delta(-90.0, -100.0)
        assert delta.percent == pytest.approx(10.0)
        assert delta.direction == Direction.POSITIVE

    def test_zero_previous_has_no_percent(self):
        delta = calculate_delta(500.0, 0)
        assert delta.absolute == pytest.approx(500.0)
        assert delta.percent is None
        assert delta.direction == Direction.NEUTRAL
        assert not delta.has_comparison

    @pytest.mark.parametrize("current, previous", [
        (None, 100.0),
        (100.0, None),
        (None, None),
        (math.nan, 100.0),
        (100.0, float('nan')),
    ])
    def test_missing_side_returns_none(self, current, previous):
        assert calculate_delta(current, previous) is None

    def test_tiny_change_is_neutral(self):
        delta = calculate_delta(100.05, 100.0)
        assert delta.direction == Direction.NEUTRAL

    def test_neutral_is_not_flipped_for_expenses(self):
        delta = calculate_delta(100.05, 100.0, invert=True)
        assert delta.direction == Direction.NEUTRAL

    def test_custom_neutral_threshold(self):
        delta = calculate_delta(104.0, 100.0, neutral_threshold=5.0)
        assert delta.direction == Direction.NEUTRAL

    def test_direction_flipped(self):
        assert Direction.POSITIVE.flipped() == Direction.NEGATIVE
        assert Direction.NEGATIVE.flipped() == Direction.POSITIVE
        assert Direction.NEUTRAL.flipped() == Direction.NEUTRAL


class TestFormatDeltaPercent:
    @pytest.mark.parametrize("percent, expected", [
        (17.8, "+17.8%"),
        (-5.23, "-5.2%"),
        (0.0, "+0.0%"),
        (999.0, "+999.0%"),
        (1500.0, "999+%"),
        (-1500.0, "-999+%"),
    ])
    def test_formatting(self, percent, expected):
        assert format_delta_percent(percent) == expected

    def test_missing_is_dash(self):
        assert format_delta_percent(None) == "—"
        assert format_delta_percent(float('nan')) == "—"

    def test_custom_cap(self):
        assert format_delta_percent(150.0, cap=100.0) == "100+%"


class TestFormatDeltaAbsolute:
    def test_currency(self):
        assert format_delta_absolute(22670.0, "₽") == "+22,670 ₽"

    def test_negative_without_unit(self):
        assert format_delta_absolute(-1234.4) == "-1,234"

    def test_missing_is_dash(self):
        assert format_delta_absolute(None, "₽") == "—"
