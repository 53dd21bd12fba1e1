# seller_analytics/period_comparison/__init__.py
"""
Period Comparison Module
Week-over-week / month-over-month comparison engine for the seller dashboard.

VERSION: 1.0.0
- Period resolution on ISO weeks and calendar months
- Deltas with direction (expense metrics inverted)
- Derived metrics with completeness tracking
- Daily table aggregation, sorting and totals
- Preferences, URL sync and sync-status polling
"""

# Core
from .periods import (
    PeriodKey,
    ComparisonMode,
    ComparisonPeriods,
    resolve_comparison_periods,
    last_completed_week,
    local_now,
    month_from_week,
    weeks_in_month,
    previous_period,
    week_range,
    period_date_range,
    format_period_label,
    short_period_label,
)
from .deltas import Direction, DeltaValue, calculate_delta, format_delta_percent, format_delta_absolute
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
    aggregate_finance_summaries,
)
from .daily_table import (
    ColumnDef,
    SortState,
    DailyTable,
    DAILY_COLUMNS,
    next_sort_state,
    sort_rows,
    compute_totals,
    get_day_of_week,
    create_empty_daily_row,
    fill_missing_days,
    aggregate_daily_metrics,
)
from .metrics import ComparisonCard, PeriodComparisonMetrics, build_period_summary

# State & sync
from .preferences import (
    PreferenceBridge,
    InMemoryPreferenceStore,
    JsonFilePreferenceStore,
    SessionStatePreferenceStore,
    create_preference_bridge,
)
from .url_sync import (
    PeriodSelection,
    parse_period_from_params,
    write_period_to_params,
    read_period_from_query_params,
    sync_period_to_query_params,
)
from .sync_status import (
    SyncState,
    SyncStatus,
    SyncStatusTracker,
    SyncStatusPoller,
    STATUS_CONFIG,
    is_valid_transition,
)
from .data_loader import PeriodDataLoader, RequestSequencer, build_period_payload

# Fragments
from .fragments import (
    comparison_cards_fragment,
    daily_breakdown_fragment,
    daily_chart_fragment,
    sync_status_fragment,
)

# Constants
from .constants import (
    PERIOD_TYPES,
    PERIOD_TYPE_WEEK,
    PERIOD_TYPE_MONTH,
    COMPARISON_MODES,
    VIEW_MODES,
    COMPARISON_METRICS,
    EXPENSE_METRICS,
    COGS_COVERAGE_THRESHOLD_PCT,
    NEUTRAL_DELTA_THRESHOLD_PCT,
    DELTA_DISPLAY_CAP_PCT,
    CACHE_TTL_SECONDS,
    SYNC_POLL_INTERVAL_SECONDS,
    DEBUG_TIMING,
    CACHE_KEY_TIMING,
)

__all__ = [
    # Core
    'PeriodKey', 'ComparisonMode', 'ComparisonPeriods', 'resolve_comparison_periods',
    'last_completed_week', 'local_now', 'month_from_week', 'weeks_in_month', 'previous_period',
    'week_range', 'period_date_range', 'format_period_label', 'short_period_label',
    'Direction', 'DeltaValue', 'calculate_delta', 'format_delta_percent', 'format_delta_absolute',
    'DerivedMetricResult',
    'calculate_theoretical_profit', 'calculate_theoretical_margin_pct',
    'calculate_gross_profit', 'calculate_margin_pct',
    'calculate_drr', 'calculate_drrz', 'calculate_storage_ratio', 'calculate_cogs_coverage',
    'aggregate_finance_summaries',
    'ColumnDef', 'SortState', 'DailyTable', 'DAILY_COLUMNS',
    'next_sort_state', 'sort_rows', 'compute_totals',
    'get_day_of_week', 'create_empty_daily_row', 'fill_missing_days', 'aggregate_daily_metrics',
    'ComparisonCard', 'PeriodComparisonMetrics', 'build_period_summary',

    # State & sync
    'PreferenceBridge', 'InMemoryPreferenceStore', 'JsonFilePreferenceStore',
    'SessionStatePreferenceStore', 'create_preference_bridge',
    'PeriodSelection', 'parse_period_from_params', 'write_period_to_params',
    'read_period_from_query_params', 'sync_period_to_query_params',
    'SyncState', 'SyncStatus', 'SyncStatusTracker', 'SyncStatusPoller',
    'STATUS_CONFIG', 'is_valid_transition',
    'PeriodDataLoader', 'RequestSequencer', 'build_period_payload',

    # Fragments
    'comparison_cards_fragment', 'daily_breakdown_fragment',
    'daily_chart_fragment', 'sync_status_fragment',

    # Constants
    'PERIOD_TYPES', 'PERIOD_TYPE_WEEK', 'PERIOD_TYPE_MONTH', 'COMPARISON_MODES', 'VIEW_MODES',
    'COMPARISON_METRICS', 'EXPENSE_METRICS',
    'COGS_COVERAGE_THRESHOLD_PCT', 'NEUTRAL_DELTA_THRESHOLD_PCT', 'DELTA_DISPLAY_CAP_PCT',
    'CACHE_TTL_SECONDS', 'SYNC_POLL_INTERVAL_SECONDS', 'DEBUG_TIMING', 'CACHE_KEY_TIMING',
]

__version__ = '1.0.0'
