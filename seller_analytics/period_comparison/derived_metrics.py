# seller_analytics/period_comparison/derived_metrics.py
"""
Derived Metrics Calculator

VERSION: 1.0.0

Composite business metrics computed from optional upstream numbers.
Every result reports completeness: a value is only produced when all of its
inputs are present (None and NaN count as missing, a zero denominator counts
as a missing input). Nothing here raises for missing data.

Formulas:
    theoretical profit = orders - cogs - advertising - logistics - storage
    gross profit       = payout - cogs            (COGS coverage gate)
    margin %           = gross profit / net sales (COGS coverage gate)
    DRR                = advertising / net sales * 100
    DRRz               = advertising / orders * 100
    storage ratio      = storage / revenue * 100
    coverage           = items with COGS / total items * 100
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

import pandas as pd

from .constants import COGS_COVERAGE_THRESHOLD_PCT, THEORETICAL_PROFIT_INPUTS

logger = logging.getLogger(__name__)

REASON_LOW_COGS_COVERAGE = 'low_cogs_coverage'


@dataclass(frozen=True)
class DerivedMetricResult:
    value: Optional[float]
    is_complete: bool
    missing_inputs: FrozenSet[str] = frozenset()
    breakdown: Dict[str, float] = field(default_factory=dict)
    reason: Optional[str] = None

    @property
    def is_available(self) -> bool:
        """True when there is a value to display."""
        return self.value is not None


def _is_missing(value) -> bool:
    return value is None or bool(pd.isna(value))


def _incomplete(missing, breakdown=None) -> DerivedMetricResult:
    return DerivedMetricResult(
        value=None,
        is_complete=False,
        missing_inputs=frozenset(missing),
        breakdown=breakdown or {},
    )


def _ratio_pct(numerator_name: str, numerator, denominator_name: str, denominator) -> DerivedMetricResult:
    """numerator / denominator * 100 with zero denominator treated as missing."""
    missing = []
    breakdown = {}

    if _is_missing(numerator):
        missing.append(numerator_name)
    else:
        breakdown[numerator_name] = float(numerator)

    if _is_missing(denominator) or denominator == 0:
        missing.append(denominator_name)
    else:
        breakdown[denominator_name] = float(denominator)

    if missing:
        return _incomplete(missing, breakdown)

    return DerivedMetricResult(
        value=float(numerator) / float(denominator) * 100,
        is_complete=True,
        breakdown=breakdown,
    )


def _coverage_gate(
    result: DerivedMetricResult,
    cogs_coverage_pct: Optional[float],
    threshold: float,
) -> DerivedMetricResult:
    """Suppress a complete result computed from mostly-missing cost data."""
    if not result.is_complete:
        return result

    if _is_missing(cogs_coverage_pct):
        return _incomplete(['cogs_coverage_pct'], result.breakdown)

    if cogs_coverage_pct < threshold:
        logger.debug(f"COGS coverage {cogs_coverage_pct:.1f}% below {threshold}%, value suppressed")
        return DerivedMetricResult(
            value=None,
            is_complete=True,
            breakdown=result.breakdown,
            reason=REASON_LOW_COGS_COVERAGE,
        )

    return result


# =============================================================================
# THEORETICAL PROFIT
# =============================================================================

def calculate_theoretical_profit(
    orders_amount: Optional[float],
    cogs: Optional[float],
    advertising_spend: Optional[float],
    logistics_cost: Optional[float],
    storage_cost: Optional[float],
) -> DerivedMetricResult:
    """
    Theoretical profit of the orders placed in a period.

    All-or-nothing: any missing input gives value None. No partial sum is
    ever reported as if it were the profit.
    """
    inputs = {
        'orders_amount': orders_amount,
        'cogs': cogs,
        'advertising_spend': advertising_spend,
        'logistics_cost': logistics_cost,
        'storage_cost': storage_cost,
    }

    missing = [name for name in THEORETICAL_PROFIT_INPUTS if _is_missing(inputs[name])]
    breakdown = {
        name: float(inputs[name])
        for name in THEORETICAL_PROFIT_INPUTS
        if not _is_missing(inputs[name])
    }

    if missing:
        return _incomplete(missing, breakdown)

    value = (
        breakdown['orders_amount']
        - breakdown['cogs']
        - breakdown['advertising_spend']
        - breakdown['logistics_cost']
        - breakdown['storage_cost']
    )
    return DerivedMetricResult(value=value, is_complete=True, breakdown=breakdown)


def calculate_theoretical_margin_pct(
    profit: Optional[float],
    orders_amount: Optional[float],
) -> DerivedMetricResult:
    return _ratio_pct('profit', profit, 'orders_amount', orders_amount)


# =============================================================================
# GROSS PROFIT / MARGIN (COGS coverage gate)
# =============================================================================

def calculate_gross_profit(
    payout_total: Optional[float],
    cogs_total: Optional[float],
    cogs_coverage_pct: Optional[float],
    threshold: float = COGS_COVERAGE_THRESHOLD_PCT,
) -> DerivedMetricResult:
    missing = []
    breakdown = {}
    for name, value in (('payout_total', payout_total), ('cogs_total', cogs_total)):
        if _is_missing(value):
            missing.append(name)
        else:
            breakdown[name] = float(value)

    if missing:
        return _incomplete(missing, breakdown)

    result = DerivedMetricResult(
        value=breakdown['payout_total'] - breakdown['cogs_total'],
        is_complete=True,
        breakdown=breakdown,
    )
    return _coverage_gate(result, cogs_coverage_pct, threshold)


def calculate_margin_pct(
    gross_profit: Optional[float],
    net_sales: Optional[float],
    cogs_coverage_pct: Optional[float],
    threshold: float = COGS_COVERAGE_THRESHOLD_PCT,
) -> DerivedMetricResult:
    result = _ratio_pct('gross_profit', gross_profit, 'net_sales', net_sales)
    return _coverage_gate(result, cogs_coverage_pct, threshold)


# =============================================================================
# COST RATIOS
# =============================================================================

def calculate_drr(advertising_spend: Optional[float], net_sales: Optional[float]) -> DerivedMetricResult:
    """DRR: advertising share of net sales."""
    return _ratio_pct('advertising_spend', advertising_spend, 'net_sales', net_sales)


def calculate_drrz(advertising_spend: Optional[float], orders_amount: Optional[float]) -> DerivedMetricResult:
    """DRRz: advertising share of gross orders revenue."""
    return _ratio_pct('advertising_spend', advertising_spend, 'orders_amount', orders_amount)


def calculate_storage_ratio(storage_cost: Optional[float], revenue: Optional[float]) -> DerivedMetricResult:
    return _ratio_pct('storage_cost', storage_cost, 'revenue', revenue)


def calculate_cogs_coverage(items_with_cogs: Optional[int], total_items: Optional[int]) -> float:
    """Percentage of catalog items with a cost basis; 0.0 when there are no items."""
    if _is_missing(total_items) or total_items == 0 or _is_missing(items_with_cogs):
        return 0.0
    return items_with_cogs / total_items * 100


# =============================================================================
# MULTI-WEEK AGGREGATION
# =============================================================================

def aggregate_finance_summaries(
    weeks: List[Dict],
    threshold: float = COGS_COVERAGE_THRESHOLD_PCT,
) -> Optional[Dict]:
    """
    Fold weekly finance summaries (e.g. the weeks of a month) into one.

    - numeric fields are summed; a field absent from every week stays None
    - cogs_coverage_pct is the MINIMUM across weeks, so one incomplete week
      makes the whole month incomplete
    - gross_profit (payout - cogs) and margin_pct (gross profit / net sales)
      are recomputed from the totals through the coverage gate

    Returns:
        Aggregated summary dict, or None for an empty list
    """
    weeks = [w for w in (weeks or []) if w]
    if not weeks:
        return None

    df = pd.DataFrame(weeks)
    summary = {}

    for col in df.columns:
        if col in ('week', 'cogs_coverage_pct', 'gross_profit', 'margin_pct'):
            continue
        values = pd.to_numeric(df[col], errors='coerce')
        total = values.sum(min_count=1)
        summary[col] = None if pd.isna(total) else float(total)

    summary['week'] = ', '.join(str(w) for w in df['week'].dropna()) if 'week' in df.columns else None

    if 'cogs_coverage_pct' in df.columns:
        coverage = pd.to_numeric(df['cogs_coverage_pct'], errors='coerce').min()
        coverage = None if pd.isna(coverage) else float(coverage)
    elif summary.get('products_total') is not None:
        coverage = calculate_cogs_coverage(summary.get('products_with_cogs'), summary['products_total'])
    else:
        coverage = None
    summary['cogs_coverage_pct'] = coverage

    gross_profit = calculate_gross_profit(
        summary.get('payout_total'), summary.get('cogs_total'), coverage, threshold
    )
    summary['gross_profit'] = gross_profit.value

    payout = summary.get('payout_total')
    cogs_total = summary.get('cogs_total')
    raw_profit = None if payout is None or cogs_total is None else payout - cogs_total
    margin = calculate_margin_pct(raw_profit, summary.get('sale_gross_total'), coverage, threshold)
    summary['margin_pct'] = margin.value

    logger.debug(
        f"Aggregated {len(weeks)} week(s): coverage={coverage}, "
        f"gross_profit={summary['gross_profit']}, margin_pct={summary['margin_pct']}"
    )
    return summary
