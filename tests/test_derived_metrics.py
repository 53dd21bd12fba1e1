"""
Unit tests for derived metrics (seller_analytics/period_comparison/derived_metrics.py):
    - theoretical profit (all-or-nothing completeness)
    - gross profit / margin behind the COGS coverage gate
    - DRR / DRRz / storage ratio / COGS coverage
    - aggregate_finance_summaries() for multi-week periods

Run with:
    pytest tests/test_derived_metrics.py -v
"""

import math

import pytest

from seller_analytics.period_comparison.derived_metrics import (
    REASON_LOW_COGS_COVERAGE,
    aggregate_finance_summaries,
    calculate_cogs_coverage,
    calculate_drr,
    calculate_drrz,
    calculate_gross_profit,
    calculate_margin_pct,
    calculate_storage_ratio,
    calculate_theoretical_margin_pct,
    calculate_theoretical_profit,
)

# ─── Helpers ─────────────────────────────────────────────────────────────────

JANUARY_WEEKS = [
    {'week': '2026-W01', 'sale_gross_total': 150000.2, 'payout_total': 100000.0,
     'cogs_total': 45000.0, 'cogs_coverage_pct': 95.0},
    {'week': '2026-W02', 'sale_gross_total': 170000.3, 'payout_total': 110000.0,
     'cogs_total': 47000.0, 'cogs_coverage_pct': 88.5},
    {'week': '2026-W03', 'sale_gross_total': 180000.1, 'payout_total': 120000.0,
     'cogs_total': 48200.0, 'cogs_coverage_pct': 92.0},
    {'week': '2026-W04', 'sale_gross_total': 176244.2, 'payout_total': 115000.0,
     'cogs_total': 47000.0, 'cogs_coverage_pct': 90.0},
]


class TestTheoreticalProfit:
    def test_all_inputs_present(self):
        result = calculate_theoretical_profit(84377, 35818, 3728, 17566, 2024)
        assert result.value == pytest.approx(25241)
        assert result.is_complete
        assert result.missing_inputs == frozenset()
        assert len(result.breakdown) == 5

    def test_single_input_is_not_a_profit(self):
        result = calculate_theoretical_profit(None, None, 2102.66, None, None)
        assert result.value is None
        assert not result.is_complete
        assert not result.is_available
        assert result.missing_inputs == {'orders_amount', 'cogs', 'logistics_cost', 'storage_cost'}
        assert result.breakdown == {'advertising_spend': pytest.approx(2102.66)}

    def test_nan_counts_as_missing(self):
        result = calculate_theoretical_profit(1000, 200, math.nan, 50, 10)
        assert result.value is None
        assert result.missing_inputs == {'advertising_spend'}

    def test_zeros_are_valid_inputs(self):
        result = calculate_theoretical_profit(0, 0, 0, 0, 0)
        assert result.is_complete
        assert result.value == 0

    def test_negative_profit(self):
        result = calculate_theoretical_profit(1000, 800, 300, 100, 50)
        assert result.value == pytest.approx(-250)

    def test_theoretical_margin(self):
        result = calculate_theoretical_margin_pct(25241, 84377)
        assert result.value == pytest.approx(25241 / 84377 * 100)

    def test_theoretical_margin_without_profit(self):
        result = calculate_theoretical_margin_pct(None, 84377)
        assert result.value is None
        assert result.missing_inputs == {'profit'}


class TestCoverageGate:
    def test_gross_profit_above_threshold(self):
        result = calculate_gross_profit(1000, 400, 90)
        assert result.value == pytest.approx(600)
        assert result.reason is None

    def test_gross_profit_at_threshold(self):
        assert calculate_gross_profit(1000, 400, 80).value == pytest.approx(600)

    def test_low_coverage_suppresses_value(self):
        result = calculate_gross_profit(1000, 400, 50)
        assert result.value is None
        assert result.is_complete
        assert result.reason == REASON_LOW_COGS_COVERAGE
        assert result.breakdown == {'payout_total': 1000.0, 'cogs_total': 400.0}

    def test_unknown_coverage_is_missing_input(self):
        result = calculate_gross_profit(1000, 400, None)
        assert not result.is_complete
        assert result.missing_inputs == {'cogs_coverage_pct'}

    def test_missing_cogs(self):
        result = calculate_gross_profit(1000, None, 95)
        assert result.missing_inputs == {'cogs_total'}

    def test_custom_threshold(self):
        assert calculate_gross_profit(1000, 400, 50, threshold=40).value == pytest.approx(600)

    def test_margin(self):
        result = calculate_margin_pct(600, 2000, 90)
        assert result.value == pytest.approx(30.0)

    def test_margin_zero_net_sales(self):
        result = calculate_margin_pct(600, 0, 90)
        assert result.value is None
        assert result.missing_inputs == {'net_sales'}

    def test_margin_low_coverage(self):
        result = calculate_margin_pct(600, 2000, 10)
        assert result.value is None
        assert result.reason == REASON_LOW_COGS_COVERAGE


class TestRatios:
    def test_drr(self):
        assert calculate_drr(200, 1000).value == pytest.approx(20.0)

    def test_drrz(self):
        assert calculate_drrz(200, 4000).value == pytest.approx(5.0)

    def test_storage_ratio(self):
        assert calculate_storage_ratio(50, 1000).value == pytest.approx(5.0)

    def test_zero_denominator(self):
        result = calculate_drr(200, 0)
        assert result.value is None
        assert result.missing_inputs == {'net_sales'}
        assert result.breakdown == {'advertising_spend': 200.0}

    @pytest.mark.parametrize("with_cogs, total, expected", [
        (8, 10, 80.0),
        (10, 10, 100.0),
        (0, 0, 0.0),
        (None, 10, 0.0),
        (5, None, 0.0),
    ])
    def test_cogs_coverage(self, with_cogs, total, expected):
        assert calculate_cogs_coverage(with_cogs, total) == pytest.approx(expected)


class TestAggregateFinanceSummaries:
    def test_sums_weeks(self):
        summary = aggregate_finance_summaries(JANUARY_WEEKS)
        assert summary['sale_gross_total'] == pytest.approx(676244.8)
        assert summary['cogs_total'] == pytest.approx(187200.0)
        assert summary['payout_total'] == pytest.approx(445000.0)

    def test_coverage_is_minimum(self):
        summary = aggregate_finance_summaries(JANUARY_WEEKS)
        assert summary['cogs_coverage_pct'] == pytest.approx(88.5)

    def test_recomputed_profit_and_margin(self):
        summary = aggregate_finance_summaries(JANUARY_WEEKS)
        assert summary['gross_profit'] == pytest.approx(257800.0)
        assert summary['margin_pct'] == pytest.approx(257800.0 / 676244.8 * 100)

    def test_week_labels_joined(self):
        summary = aggregate_finance_summaries(JANUARY_WEEKS[:2])
        assert summary['week'] == '2026-W01, 2026-W02'

    def test_one_low_coverage_week_gates_month(self):
        weeks = [dict(w) for w in JANUARY_WEEKS]
        weeks[2]['cogs_coverage_pct'] = 60.0
        summary = aggregate_finance_summaries(weeks)
        assert summary['cogs_coverage_pct'] == pytest.approx(60.0)
        assert summary['gross_profit'] is None
        assert summary['margin_pct'] is None
        assert summary['sale_gross_total'] == pytest.approx(676244.8)

    def test_field_missing_everywhere_stays_none(self):
        weeks = [dict(w, logistics_cost_total=None) for w in JANUARY_WEEKS]
        summary = aggregate_finance_summaries(weeks)
        assert summary['logistics_cost_total'] is None

    def test_coverage_from_product_counts(self):
        weeks = [
            {'week': '2026-W01', 'products_total': 10, 'products_with_cogs': 9},
            {'week': '2026-W02', 'products_total': 10, 'products_with_cogs': 7},
        ]
        summary = aggregate_finance_summaries(weeks)
        assert summary['cogs_coverage_pct'] == pytest.approx(80.0)

    @pytest.mark.parametrize("weeks", [[], None, [{}, None]])
    def test_empty_input(self, weeks):
        assert aggregate_finance_summaries(weeks) is None
