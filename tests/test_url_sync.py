"""
Unit tests for URL period sync (seller_analytics/period_comparison/url_sync.py):
    - parse_period_from_params(): priority URL > stored preference > default
    - malformed values fall back to defaults
    - write_period_to_params(): active key only, unrelated params untouched
    - read -> write -> read keeps the active period

Run with:
    pytest tests/test_url_sync.py -v
"""

import pytest

from seller_analytics.period_comparison.periods import PeriodKey
from seller_analytics.period_comparison.url_sync import (
    PeriodSelection,
    parse_period_from_params,
    write_period_to_params,
)

DEFAULT_WEEK = PeriodKey.week(2026, 5)


class TestParsePeriod:
    def test_defaults(self):
        selection = parse_period_from_params({}, DEFAULT_WEEK)
        assert selection.period_type == 'week'
        assert str(selection.week) == '2026-W05'
        assert str(selection.month) == '2026-01'
        assert selection.active_period == DEFAULT_WEEK

    def test_month_from_url(self):
        selection = parse_period_from_params({'type': 'month', 'month': '2025-11'}, DEFAULT_WEEK)
        assert str(selection.active_period) == '2025-11'

    def test_week_from_url(self):
        selection = parse_period_from_params({'week': '2026-W03'}, DEFAULT_WEEK)
        assert str(selection.active_period) == '2026-W03'

    @pytest.mark.parametrize("raw", ['invalid-week', '2026-W60', '2026-01', ''])
    def test_invalid_week_falls_back(self, raw):
        selection = parse_period_from_params({'week': raw}, DEFAULT_WEEK)
        assert selection.week == DEFAULT_WEEK

    def test_invalid_month_falls_back(self):
        selection = parse_period_from_params({'type': 'month', 'month': '2026-13'}, DEFAULT_WEEK)
        assert str(selection.active_period) == '2026-01'

    def test_stored_type_used_without_url_type(self):
        selection = parse_period_from_params({}, DEFAULT_WEEK, stored_type='month')
        assert selection.period_type == 'month'

    def test_url_type_beats_stored_type(self):
        selection = parse_period_from_params({'type': 'week'}, DEFAULT_WEEK, stored_type='month')
        assert selection.period_type == 'week'

    def test_invalid_url_type(self):
        selection = parse_period_from_params({'type': 'quarter'}, DEFAULT_WEEK, stored_type='month')
        assert selection.period_type == 'month'
        selection = parse_period_from_params({'type': 'quarter'}, DEFAULT_WEEK)
        assert selection.period_type == 'week'

    def test_list_values(self):
        selection = parse_period_from_params({'week': ['2026-W02', '2026-W03']}, DEFAULT_WEEK)
        assert str(selection.week) == '2026-W02'


class TestWriteParams:
    def test_week_selection(self):
        selection = parse_period_from_params({}, DEFAULT_WEEK)
        assert write_period_to_params({}, selection) == {'type': 'week', 'week': '2026-W05'}

    def test_switch_to_month_drops_week(self):
        params = {'week': '2026-W05', 'utm_source': 'mail'}
        selection = parse_period_from_params(params, DEFAULT_WEEK).with_period_type('month')
        updated = write_period_to_params(params, selection)
        assert updated == {'type': 'month', 'month': '2026-01', 'utm_source': 'mail'}

    def test_input_not_mutated(self):
        params = {'week': '2026-W05'}
        selection = parse_period_from_params(params, DEFAULT_WEEK).with_period_type('month')
        write_period_to_params(params, selection)
        assert params == {'week': '2026-W05'}

    @pytest.mark.parametrize("period", [
        PeriodKey.week(2026, 1),
        PeriodKey.week(2020, 53),
        PeriodKey.month(2025, 12),
    ])
    def test_round_trip(self, period):
        selection = parse_period_from_params({}, DEFAULT_WEEK).with_period(period)
        reparsed = parse_period_from_params(write_period_to_params({}, selection), DEFAULT_WEEK)
        assert reparsed.active_period == selection.active_period
        assert reparsed.period_type == selection.period_type


class TestPeriodSelection:
    def test_with_period_switches_type(self):
        selection = parse_period_from_params({}, DEFAULT_WEEK).with_period(PeriodKey.month(2025, 10))
        assert selection.period_type == 'month'
        assert selection.week == DEFAULT_WEEK

    def test_with_period_type_rejects_unknown(self):
        selection = PeriodSelection('week', DEFAULT_WEEK, PeriodKey.month(2026, 1))
        with pytest.raises(ValueError):
            selection.with_period_type('quarter')
