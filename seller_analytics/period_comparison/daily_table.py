# seller_analytics/period_comparison/daily_table.py
"""
Daily breakdown table: row aggregation, sorting and totals.

VERSION: 1.0.0

Rows are one calendar day each, keyed by ISO date string (YYYY-MM-DD).
Sorting is stable; descending order is the exact reverse of ascending order.
Totals are computed once from the original row set and never depend on the
current sort.

Missing data:
- a source that was not delivered at all (None) leaves its columns NaN
- a delivered source that has no row for some day contributes 0 for that day
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

import numpy as np
import pandas as pd

from .derived_metrics import calculate_theoretical_profit

logger = logging.getLogger(__name__)

SORT_ASC = 'asc'
SORT_DESC = 'desc'

TOTAL_LABEL = 'Total'

# Column kinds
KIND_DATE = 'date'
KIND_WEEKDAY = 'weekday'
KIND_NUMBER = 'number'
KIND_CURRENCY = 'currency'
KIND_PERCENT = 'percent'
KIND_TEXT = 'text'

SUMMABLE_KINDS = (KIND_NUMBER, KIND_CURRENCY)


# =============================================================================
# COLUMN DEFINITIONS
# =============================================================================

@dataclass(frozen=True)
class ColumnDef:
    key: str
    label: str
    sortable: bool = True
    colorize: bool = False
    width: Optional[str] = None
    align: str = 'right'
    kind: str = KIND_NUMBER


DAILY_COLUMNS: List[ColumnDef] = [
    ColumnDef('date', 'Дата', align='left', kind=KIND_DATE, width='small'),
    ColumnDef('day_of_week', 'День', sortable=False, align='center', kind=KIND_WEEKDAY, width='small'),
    ColumnDef('orders', 'Заказы', kind=KIND_CURRENCY),
    ColumnDef('orders_count', 'Кол-во заказов', kind=KIND_NUMBER),
    ColumnDef('orders_cogs', 'Себестоимость заказов', kind=KIND_CURRENCY),
    ColumnDef('sales', 'Продажи', kind=KIND_CURRENCY),
    ColumnDef('sales_cogs', 'Себестоимость продаж', kind=KIND_CURRENCY),
    ColumnDef('advertising', 'Реклама', kind=KIND_CURRENCY),
    ColumnDef('logistics', 'Логистика', kind=KIND_CURRENCY),
    ColumnDef('storage', 'Хранение', kind=KIND_CURRENCY),
    ColumnDef('theoretical_profit', 'Теор. прибыль', colorize=True, kind=KIND_CURRENCY),
]

DAILY_METRIC_COLUMNS = [
    'orders', 'orders_count', 'orders_cogs', 'sales', 'sales_cogs',
    'advertising', 'logistics', 'storage', 'theoretical_profit',
]

WEEKDAY_ABBR = {1: 'Пн', 2: 'Вт', 3: 'Ср', 4: 'Чт', 5: 'Пт', 6: 'Сб', 7: 'Вс'}

# Upstream field -> daily column, per source
ORDERS_FIELDS = {'total_amount': 'orders', 'total_orders': 'orders_count', 'cogs_total': 'orders_cogs'}
FINANCE_FIELDS = {
    'wb_sales_gross': 'sales',
    'cogs_total': 'sales_cogs',
    'logistics_cost': 'logistics',
    'storage_cost': 'storage',
}
ADVERTISING_FIELDS = {'total_spend': 'advertising'}


def get_column(key: str, columns: Iterable[ColumnDef] = None) -> Optional[ColumnDef]:
    for col in (columns or DAILY_COLUMNS):
        if col.key == key:
            return col
    return None


# =============================================================================
# SORTING
# =============================================================================

@dataclass(frozen=True)
class SortState:
    column: str
    direction: str = SORT_DESC

    @property
    def ascending(self) -> bool:
        return self.direction == SORT_ASC

    def toggled(self) -> 'SortState':
        return SortState(self.column, SORT_DESC if self.ascending else SORT_ASC)


def next_sort_state(state: Optional[SortState], column: str) -> SortState:
    """Same column flips direction; a new column starts descending."""
    if state is not None and state.column == column:
        return state.toggled()
    return SortState(column, SORT_DESC)


def _canonical_text(value, kind: str):
    if value is None or pd.isna(value):
        return None
    text = str(value)
    return text[:10] if kind == KIND_DATE else text


def _sort_key(series: pd.Series, kind: str) -> pd.Series:
    if kind in (KIND_DATE, KIND_TEXT):
        # ISO dates compare correctly as text
        return series.map(lambda v: _canonical_text(v, kind))
    return pd.to_numeric(series, errors='coerce')


def sort_rows(df: pd.DataFrame, columns: List[ColumnDef], state: Optional[SortState]) -> pd.DataFrame:
    """
    Stable sort by one column.

    Missing values go last in ascending order; descending is the ascending
    sequence reversed, so they come first there.
    """
    if df is None or df.empty or state is None:
        return df

    col = get_column(state.column, columns)
    if col is None or not col.sortable or col.key not in df.columns:
        logger.debug(f"Ignoring sort on unknown/unsortable column: {state.column}")
        return df

    ascending = df.sort_values(
        by=col.key,
        key=lambda s: _sort_key(s, col.kind),
        kind='mergesort',
        na_position='last',
    )

    if state.ascending:
        return ascending.reset_index(drop=True)
    return ascending.iloc[::-1].reset_index(drop=True)


# =============================================================================
# TOTALS
# =============================================================================

def compute_totals(df: pd.DataFrame, columns: List[ColumnDef]) -> Dict[str, object]:
    """
    Totals row: numeric/currency columns summed, the date column labelled
    "Total", weekday and percent columns left empty.
    """
    totals = {}
    for col in columns:
        if col.kind == KIND_DATE:
            totals[col.key] = TOTAL_LABEL
        elif col.kind in SUMMABLE_KINDS and df is not None and col.key in df.columns:
            total = pd.to_numeric(df[col.key], errors='coerce').sum(min_count=1)
            totals[col.key] = None if pd.isna(total) else float(total)
        else:
            totals[col.key] = None
    return totals


class DailyTable:
    """
    Daily rows with a cached totals row and a current sort.

    Usage:
        table = DailyTable(rows_df)
        view = table.toggle_sort('orders')   # desc
        view = table.toggle_sort('orders')   # asc
        table.totals                         # unchanged by sorting
    """

    def __init__(self, rows: pd.DataFrame, columns: List[ColumnDef] = None,
                 sort_state: Optional[SortState] = None):
        self.columns = columns or DAILY_COLUMNS
        self._rows = rows.reset_index(drop=True).copy() if rows is not None else pd.DataFrame()
        self.totals = compute_totals(self._rows, self.columns)
        self.sort_state = sort_state

    @property
    def rows(self) -> pd.DataFrame:
        """Rows in their original order."""
        return self._rows

    @property
    def is_empty(self) -> bool:
        return self._rows.empty

    def sorted_rows(self) -> pd.DataFrame:
        return sort_rows(self._rows, self.columns, self.sort_state)

    def sort(self, state: Optional[SortState]) -> pd.DataFrame:
        self.sort_state = state
        return self.sorted_rows()

    def toggle_sort(self, column: str) -> pd.DataFrame:
        return self.sort(next_sort_state(self.sort_state, column))

    def to_display_frame(self, include_totals: bool = True) -> pd.DataFrame:
        """Sorted rows plus the totals row, restricted to the table columns."""
        keys = [c.key for c in self.columns]
        view = self.sorted_rows().reindex(columns=keys)
        if include_totals and not view.empty:
            view = pd.concat([view, pd.DataFrame([self.totals], columns=keys)], ignore_index=True)
        return view


# =============================================================================
# DAY HELPERS
# =============================================================================

def get_day_of_week(iso_date: str) -> int:
    """ISO weekday, Monday=1 .. Sunday=7. Raises ValueError on bad input."""
    if not isinstance(iso_date, str):
        raise ValueError(f"Expected ISO date string, got {type(iso_date).__name__}")
    return date.fromisoformat(iso_date[:10]).isoweekday()


def create_empty_daily_row(iso_date: str) -> Dict[str, object]:
    row = {'date': iso_date, 'day_of_week': get_day_of_week(iso_date)}
    row.update({col: 0.0 for col in DAILY_METRIC_COLUMNS})
    return row


def _empty_daily_frame() -> pd.DataFrame:
    df = pd.DataFrame(columns=['date', 'day_of_week'] + DAILY_METRIC_COLUMNS)
    return df.astype({col: float for col in DAILY_METRIC_COLUMNS})


def _apply_theoretical_profit(df: pd.DataFrame) -> pd.DataFrame:
    def _profit(row):
        result = calculate_theoretical_profit(
            row.get('orders'), row.get('orders_cogs'), row.get('advertising'),
            row.get('logistics'), row.get('storage'),
        )
        return result.value if result.is_complete else np.nan

    df['theoretical_profit'] = df.apply(_profit, axis=1) if not df.empty else pd.Series(dtype=float)
    return df


def fill_missing_days(
    df: Optional[pd.DataFrame],
    start_date: str,
    end_date: str,
    delivered: Optional[Set[str]] = None,
) -> pd.DataFrame:
    """
    Continuous ascending date range from start to end (inclusive).

    Days without a row are zero-filled. A column that exists in the input but
    is empty for every day (source not delivered) stays NaN.

    delivered: columns whose source answered; only these are zero-filled.
    Without it, every column with data is treated as delivered, and all
    columns when there are no rows.
    """
    dates = pd.date_range(start_date, end_date, freq='D').strftime('%Y-%m-%d').tolist()

    existing = df.copy() if df is not None and not df.empty else _empty_daily_frame()
    for col in DAILY_METRIC_COLUMNS:
        if col not in existing.columns:
            existing[col] = np.nan
    existing['date'] = existing['date'].astype(str).str[:10]
    existing = existing.drop_duplicates('date', keep='last').set_index('date')

    had_rows = not existing.empty
    filled = existing.reindex(dates)
    absent = ~filled.index.isin(existing.index)

    if delivered is not None:
        zero_cols = [col for col in DAILY_METRIC_COLUMNS if col in delivered and col != 'theoretical_profit']
    else:
        zero_cols = [
            col for col in DAILY_METRIC_COLUMNS
            if col != 'theoretical_profit' and (not had_rows or existing[col].notna().any())
        ]
    filled.loc[absent, zero_cols] = 0.0

    filled.index.name = 'date'
    filled = filled.reset_index()
    filled['day_of_week'] = [get_day_of_week(d) for d in filled['date']]
    filled = _apply_theoretical_profit(filled)

    return filled[['date', 'day_of_week'] + DAILY_METRIC_COLUMNS]


def _source_frame(records, fields: Dict[str, str]):
    """
    Normalize one per-day source.

    Returns:
        (frame, sent_columns); (None, empty set) when the source was not
        delivered. A field the source never sends stays NaN, not zero.
    """
    if records is None:
        return None, set()

    df = pd.DataFrame(list(records))
    if df.empty or 'date' not in df.columns:
        return pd.DataFrame(columns=['date'] + list(fields.values())), set(fields.values())

    df['date'] = df['date'].astype(str).str[:10]
    present = {src: dst for src, dst in fields.items() if src in df.columns}
    df = df[['date'] + list(present)].rename(columns=present)
    for dst in present.values():
        df[dst] = pd.to_numeric(df[dst], errors='coerce')

    for dst in fields.values():
        if dst not in df.columns:
            df[dst] = np.nan

    return df.groupby('date', as_index=False).sum(min_count=1), set(present.values())


def aggregate_daily_metrics(
    orders: Optional[list],
    finance: Optional[list],
    advertising: Optional[list],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> pd.DataFrame:
    """
    Outer-merge the three per-day sources by date and compute per-day
    theoretical profit through the completeness gate.

    orders:      [{date, total_amount, total_orders, cogs_total?}]
    finance:     [{date, wb_sales_gross, cogs_total, logistics_cost, storage_cost}]
    advertising: [{date, total_spend}]

    With start_date/end_date the result covers the whole range.
    """
    sources = [
        (*_source_frame(orders, ORDERS_FIELDS), ORDERS_FIELDS),
        (*_source_frame(finance, FINANCE_FIELDS), FINANCE_FIELDS),
        (*_source_frame(advertising, ADVERTISING_FIELDS), ADVERTISING_FIELDS),
    ]

    all_dates = set()
    delivered = set()
    for frame, sent, _ in sources:
        if frame is not None:
            all_dates.update(frame['date'].tolist())
            delivered.update(sent)

    result = pd.DataFrame({'date': sorted(all_dates)})

    for frame, sent, fields in sources:
        targets = list(fields.values())
        if frame is None:
            for col in targets:
                result[col] = np.nan
            continue

        result = result.merge(frame, on='date', how='left')
        for col in targets:
            if col in sent:
                result[col] = result[col].fillna(0.0)

    if result.empty:
        result = _empty_daily_frame()
    else:
        result['day_of_week'] = [get_day_of_week(d) for d in result['date']]
        result = _apply_theoretical_profit(result)
        result = result[['date', 'day_of_week'] + DAILY_METRIC_COLUMNS]

    if start_date and end_date:
        result = fill_missing_days(result, start_date, end_date, delivered)

    logger.debug(f"Aggregated daily metrics: {len(result)} day(s)")
    return result
