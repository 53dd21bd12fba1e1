# seller_analytics/period_comparison/metrics.py
"""
Metrics for period comparison cards

VERSION: 1.0.0
- One flat payload dict per period (see data_loader.build_period_payload)
- Derived metrics via derived_metrics (completeness tracked, never raises)
- Cards carry current/previous values and a DeltaValue (None when either
  side is missing)
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .constants import (
    COMPARISON_METRICS,
    EXPENSE_METRICS,
    METRIC_LABELS,
    METRIC_FORMATS,
    COGS_COVERAGE_THRESHOLD_PCT,
    NEUTRAL_DELTA_THRESHOLD_PCT,
)
from .deltas import DeltaValue, calculate_delta
from .derived_metrics import (
    DerivedMetricResult,
    calculate_theoretical_profit,
    calculate_theoretical_margin_pct,
    calculate_gross_profit,
    calculate_margin_pct,
    calculate_drr,
    calculate_drrz,
    calculate_storage_ratio,
    calculate_cogs_coverage,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparisonCard:
    metric: str
    label: str
    current: Optional[float]
    previous: Optional[float]
    delta: Optional[DeltaValue]
    inverted: bool
    fmt: str


def _coverage_of(payload: Dict) -> Optional[float]:
    coverage = payload.get('cogs_coverage_pct')
    if coverage is None and payload.get('products_total') is not None:
        coverage = calculate_cogs_coverage(payload.get('products_with_cogs'), payload.get('products_total'))
    return coverage


def build_period_summary(
    payload: Optional[Dict],
    coverage_threshold: float = COGS_COVERAGE_THRESHOLD_PCT,
) -> Dict[str, DerivedMetricResult]:
    """All derived metrics of one period payload."""
    payload = payload or {}
    coverage = _coverage_of(payload)

    theoretical_profit = calculate_theoretical_profit(
        payload.get('orders_amount'),
        payload.get('orders_cogs'),
        payload.get('advertising_spend'),
        payload.get('logistics_cost'),
        payload.get('storage_cost'),
    )
    gross_profit = calculate_gross_profit(
        payload.get('payout_total'), payload.get('cogs_total'), coverage, coverage_threshold
    )

    # Margin needs the arithmetic profit even when the display value is gated
    raw_profit = None
    if 'payout_total' in gross_profit.breakdown and 'cogs_total' in gross_profit.breakdown:
        raw_profit = gross_profit.breakdown['payout_total'] - gross_profit.breakdown['cogs_total']

    coverage_result = DerivedMetricResult(
        value=coverage,
        is_complete=coverage is not None,
        missing_inputs=frozenset() if coverage is not None else frozenset({'cogs_coverage_pct'}),
    )

    return {
        'theoretical_profit': theoretical_profit,
        'theoretical_margin_pct': calculate_theoretical_margin_pct(
            theoretical_profit.value, payload.get('orders_amount')
        ),
        'gross_profit': gross_profit,
        'margin_pct': calculate_margin_pct(
            raw_profit, payload.get('sale_gross_total'), coverage, coverage_threshold
        ),
        'drr': calculate_drr(payload.get('advertising_spend'), payload.get('sale_gross_total')),
        'drrz': calculate_drrz(payload.get('advertising_spend'), payload.get('orders_amount')),
        'storage_ratio': calculate_storage_ratio(payload.get('storage_cost'), payload.get('sale_gross_total')),
        'cogs_coverage': coverage_result,
    }


class PeriodComparisonMetrics:
    """
    Build comparison cards for two period payloads.

    Usage:
        metrics = PeriodComparisonMetrics()
        cards = metrics.build_cards(current_payload, previous_payload)
    """

    def __init__(
        self,
        metrics: List[str] = None,
        coverage_threshold: float = COGS_COVERAGE_THRESHOLD_PCT,
        neutral_threshold: float = NEUTRAL_DELTA_THRESHOLD_PCT,
    ):
        self.metrics = metrics or COMPARISON_METRICS
        self.coverage_threshold = coverage_threshold
        self.neutral_threshold = neutral_threshold

    def metric_values(self, payload: Optional[Dict]) -> Dict[str, Optional[float]]:
        """Card values of one period; None where unavailable."""
        if not payload:
            return {metric: None for metric in METRIC_LABELS}

        summary = build_period_summary(payload, self.coverage_threshold)
        return {
            'revenue': payload.get('sale_gross_total'),
            'profit': summary['gross_profit'].value,
            'margin_pct': summary['margin_pct'].value,
            'orders': payload.get('orders_amount'),
            'logistics': payload.get('logistics_cost'),
            'storage': payload.get('storage_cost'),
            'advertising': payload.get('advertising_spend'),
            'cogs': payload.get('cogs_total'),
            'theoretical_profit': summary['theoretical_profit'].value,
            'theoretical_margin_pct': summary['theoretical_margin_pct'].value,
            'drr': summary['drr'].value,
            'drrz': summary['drrz'].value,
            'storage_ratio': summary['storage_ratio'].value,
            'cogs_coverage': summary['cogs_coverage'].value,
        }

    def build_cards(self, current: Optional[Dict], previous: Optional[Dict]) -> List[ComparisonCard]:
        current_values = self.metric_values(current)
        previous_values = self.metric_values(previous)

        cards = []
        for metric in self.metrics:
            inverted = metric in EXPENSE_METRICS
            curr = current_values.get(metric)
            prev = previous_values.get(metric)
            cards.append(ComparisonCard(
                metric=metric,
                label=METRIC_LABELS.get(metric, metric),
                current=curr,
                previous=prev,
                delta=calculate_delta(curr, prev, invert=inverted, neutral_threshold=self.neutral_threshold),
                inverted=inverted,
                fmt=METRIC_FORMATS.get(metric, 'number'),
            ))
        return cards
