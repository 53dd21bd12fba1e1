# seller_analytics/period_comparison/constants.py
"""
Constants for the Period Comparison module

VERSION: 1.0.0
"""

# =============================================================================
# PERIOD DEFINITIONS
# =============================================================================
PERIOD_TYPE_WEEK = 'week'
PERIOD_TYPE_MONTH = 'month'
PERIOD_TYPES = [PERIOD_TYPE_WEEK, PERIOD_TYPE_MONTH]
DEFAULT_PERIOD_TYPE = PERIOD_TYPE_WEEK

COMPARISON_MODES = ['WoW', 'MoM']
DEFAULT_COMPARISON_MODE = 'WoW'

# Weekly reports are formed on marketplace wall-clock time
DEFAULT_TIMEZONE = 'Europe/Moscow'

# Last completed week switches from W-2 to W-1 on Tuesday at this hour
LAST_COMPLETED_WEEK_CUTOFF_HOUR = 12

# =============================================================================
# BUSINESS THRESHOLDS (overridable via config app settings)
# =============================================================================
COGS_COVERAGE_THRESHOLD_PCT = 80.0
NEUTRAL_DELTA_THRESHOLD_PCT = 0.1
DELTA_DISPLAY_CAP_PCT = 999.0

# =============================================================================
# URL CONTRACT (query parameter names)
# =============================================================================
URL_PARAM_WEEK = 'week'
URL_PARAM_MONTH = 'month'
URL_PARAM_TYPE = 'type'

# =============================================================================
# PREFERENCE KEYS (prefixed sa_ to avoid collision with other widgets)
# =============================================================================
PREF_KEY_VIEW_MODE = 'sa_dashboard_view_mode'
PREF_KEY_LEGEND = 'sa_daily_chart_legend'
PREF_KEY_COMPARISON_MODE = 'sa_comparison_mode'
PREF_KEY_SECTIONS = 'sa_collapsed_sections'
PREF_KEY_PERIOD_TYPE = 'sa_dashboard_period_type'

VIEW_MODES = ['cards', 'table']
DEFAULT_VIEW_MODE = 'cards'

# =============================================================================
# SESSION STATE KEYS
# =============================================================================
CACHE_KEY_PERIODS = '_sa_period_cache'
CACHE_KEY_SYNC_TRACKER = '_sa_sync_tracker'
CACHE_KEY_DAILY_SORT = '_sa_daily_sort'
CACHE_KEY_PREFERENCES = '_sa_preferences'
CACHE_KEY_TIMING = '_sa_timing'
CACHE_KEY_SEQUENCER = '_sa_request_sequencer'
CACHE_KEY_SYNC_POLLER = '_sa_sync_poller'

# =============================================================================
# CACHE / POLLING
# =============================================================================
CACHE_TTL_SECONDS = 300
SYNC_POLL_INTERVAL_SECONDS = 60

# =============================================================================
# COMPARISON METRICS
# =============================================================================
COMPARISON_METRICS = [
    'revenue',
    'orders',
    'profit',
    'margin_pct',
    'theoretical_profit',
    'theoretical_margin_pct',
    'drr',
    'drrz',
    'logistics',
    'storage',
    'storage_ratio',
    'cogs_coverage',
]

# Cards per row in the comparison section
CARDS_PER_ROW = 4

# Expense-type metrics: a decrease is the desired outcome
EXPENSE_METRICS = {'logistics', 'storage', 'advertising', 'cogs', 'drr', 'drrz', 'storage_ratio'}

METRIC_LABELS = {
    'revenue': 'Выручка',
    'profit': 'Прибыль',
    'margin_pct': 'Маржа',
    'orders': 'Заказы',
    'logistics': 'Логистика',
    'storage': 'Хранение',
    'advertising': 'Реклама',
    'cogs': 'Себестоимость',
    'theoretical_profit': 'Теор. прибыль',
    'theoretical_margin_pct': 'Теор. маржа',
    'drr': 'ДРР',
    'drrz': 'ДРРз',
    'storage_ratio': 'Доля хранения',
    'cogs_coverage': 'Покрытие COGS',
}

METRIC_FORMATS = {
    'revenue': 'currency',
    'profit': 'currency',
    'margin_pct': 'percent',
    'orders': 'currency',
    'logistics': 'currency',
    'storage': 'currency',
    'advertising': 'currency',
    'cogs': 'currency',
    'theoretical_profit': 'currency',
    'theoretical_margin_pct': 'percent',
    'drr': 'percent',
    'drrz': 'percent',
    'storage_ratio': 'percent',
    'cogs_coverage': 'percent',
}

# =============================================================================
# THEORETICAL PROFIT INPUTS (order matters for missing-input reporting)
# =============================================================================
THEORETICAL_PROFIT_INPUTS = [
    'orders_amount',
    'cogs',
    'advertising_spend',
    'logistics_cost',
    'storage_cost',
]

# =============================================================================
# COLOR SCHEME
# =============================================================================
COLORS = {
    "primary": "#1f77b4",
    "secondary": "#aec7e8",
    "positive": "#28a745",
    "negative": "#dc3545",
    "neutral": "#9CA3AF",
    "orders": "#FFA500",
    "sales": "#1f77b4",
    "advertising": "#800080",
    "logistics": "#17becf",
    "storage": "#8c564b",
    "theoretical_profit": "#2ca02c",
}

CHART_HEIGHT = 320

# =============================================================================
# METRIC DISPLAY
# =============================================================================
EMPTY_VALUE = "—"

MONTH_NAMES = {
    'ru': [
        'Январь', 'Февраль', 'Март', 'Апрель', 'Май', 'Июнь',
        'Июль', 'Август', 'Сентябрь', 'Октябрь', 'Ноябрь', 'Декабрь',
    ],
    'en': [
        'January', 'February', 'March', 'April', 'May', 'June',
        'July', 'August', 'September', 'October', 'November', 'December',
    ],
}

MONTH_ABBR = {
    'ru': ['янв', 'фев', 'мар', 'апр', 'май', 'июн', 'июл', 'авг', 'сен', 'окт', 'ноя', 'дек'],
    'en': ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec'],
}

WEEK_LABEL = {'ru': 'Неделя', 'en': 'Week'}

# =============================================================================
# DEBUG SETTINGS
# Use environment variable to enable: SA_DEBUG_TIMING=true
# =============================================================================
import os as _os
DEBUG_TIMING = _os.getenv('SA_DEBUG_TIMING', 'false').lower() == 'true'
