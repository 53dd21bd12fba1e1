# seller_analytics/period_comparison/fragments.py
"""
Streamlit Fragments for the Seller Dashboard

VERSION: 1.0.0
- comparison_cards_fragment: st.metric cards (inverse delta colors for expenses)
  or a compact table, per the stored view mode
- daily_breakdown_fragment: sortable daily table with a fixed totals row
- daily_chart_fragment: altair trend lines, legend selection persisted
- sync_status_fragment: badge re-rendered every SYNC_POLL_INTERVAL_SECONDS from
  the tracker a session-scoped background poller keeps current
"""

import logging
from typing import Dict, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from ..config import config
from .constants import (
    CACHE_KEY_DAILY_SORT,
    CARDS_PER_ROW,
    CHART_HEIGHT,
    COLORS,
    DELTA_DISPLAY_CAP_PCT,
    EMPTY_VALUE,
    SYNC_POLL_INTERVAL_SECONDS,
)
from .daily_table import (
    DAILY_COLUMNS,
    KIND_CURRENCY,
    KIND_NUMBER,
    KIND_PERCENT,
    TOTAL_LABEL,
    WEEKDAY_ABBR,
    DailyTable,
    SortState,
    next_sort_state,
)
from .deltas import Direction, format_delta_absolute, format_delta_percent
from .metrics import ComparisonCard
from .preferences import PreferenceBridge
from .sync_status import (
    HEALTH_COLORS,
    UNAVAILABLE_TEXT,
    format_last_sync,
)

logger = logging.getLogger(__name__)

CURRENCY = config.get_app_setting('CURRENCY_SYMBOL', '₽')
DELTA_CAP = config.get_app_setting('DELTA_DISPLAY_CAP_PCT', DELTA_DISPLAY_CAP_PCT)
SYNC_INTERVAL = config.get_app_setting('SYNC_POLL_INTERVAL_SECONDS', SYNC_POLL_INTERVAL_SECONDS)

CHART_METRICS = {
    'orders': 'Заказы',
    'sales': 'Продажи',
    'advertising': 'Реклама',
    'logistics': 'Логистика',
    'storage': 'Хранение',
    'theoretical_profit': 'Теор. прибыль',
}
DEFAULT_CHART_METRICS = {'orders', 'sales', 'theoretical_profit'}


# =============================================================================
# FORMATTING
# =============================================================================

def format_metric_value(value: Optional[float], fmt: str) -> str:
    if value is None or pd.isna(value):
        return EMPTY_VALUE
    if fmt == KIND_PERCENT:
        return f"{value:.1f}%"
    if fmt == KIND_CURRENCY:
        return f"{value:,.0f} {CURRENCY}"
    return f"{value:,.0f}"


def card_rows(cards: List[ComparisonCard], per_row: int) -> List[List[ComparisonCard]]:
    per_row = max(1, per_row)
    return [cards[i:i + per_row] for i in range(0, len(cards), per_row)]


def _delta_color(card: ComparisonCard) -> str:
    if card.delta is None or card.delta.direction == Direction.NEUTRAL:
        return "off"
    return "inverse" if card.inverted else "normal"


# =============================================================================
# COMPARISON CARDS
# =============================================================================

@st.fragment
def comparison_cards_fragment(
    cards: List[ComparisonCard],
    current_label: str,
    previous_label: str,
    view_mode: str = 'cards',
):
    """Current period vs previous period for each comparison metric."""
    st.caption(f"{current_label} vs {previous_label}")

    if view_mode == 'table':
        rows = []
        for card in cards:
            rows.append({
                'Метрика': card.label,
                'Текущий': format_metric_value(card.current, card.fmt),
                'Предыдущий': format_metric_value(card.previous, card.fmt),
                'Δ': format_delta_absolute(card.delta.absolute, '' if card.fmt == KIND_PERCENT else CURRENCY)
                if card.delta else EMPTY_VALUE,
                'Δ %': format_delta_percent(card.delta.percent if card.delta else None, DELTA_CAP),
            })
        st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
        return

    for row in card_rows(cards, CARDS_PER_ROW):
        columns = st.columns(CARDS_PER_ROW)
        for col, card in zip(columns, row):
            with col:
                delta_text = None
                if card.delta is not None:
                    delta_text = format_delta_percent(card.delta.percent, DELTA_CAP)
                st.metric(
                    label=card.label,
                    value=format_metric_value(card.current, card.fmt),
                    delta=delta_text,
                    delta_color=_delta_color(card),
                    help=f"{previous_label}: {format_metric_value(card.previous, card.fmt)}",
                )


# =============================================================================
# DAILY TABLE
# =============================================================================

def _column_config() -> Dict:
    config_map = {}
    for col in DAILY_COLUMNS:
        if col.kind == KIND_CURRENCY:
            config_map[col.key] = st.column_config.NumberColumn(col.label, format="%.0f", width=col.width)
        elif col.kind == KIND_NUMBER:
            config_map[col.key] = st.column_config.NumberColumn(col.label, format="%d", width=col.width)
        else:
            config_map[col.key] = st.column_config.TextColumn(col.label, width=col.width)
    return config_map


def _style_profit(value):
    if isinstance(value, (int, float)) and not pd.isna(value):
        if value > 0:
            return f"color: {COLORS['positive']}"
        if value < 0:
            return f"color: {COLORS['negative']}"
    return ""


@st.fragment
def daily_breakdown_fragment(daily_df: pd.DataFrame, fragment_key: str = "sa_daily"):
    """Daily rows, sortable by any sortable column; totals row always last."""
    if daily_df is None or daily_df.empty:
        st.info("Нет данных по дням за выбранный период")
        return

    sortable = [c for c in DAILY_COLUMNS if c.sortable]
    labels = {c.key: c.label for c in sortable}
    sort_state: Optional[SortState] = st.session_state.get(CACHE_KEY_DAILY_SORT)

    col_select, col_toggle = st.columns([4, 1])
    with col_select:
        keys = list(labels)
        default_index = keys.index(sort_state.column) if sort_state and sort_state.column in keys else 0
        column = st.selectbox(
            "Сортировка",
            keys,
            index=default_index,
            format_func=labels.get,
            key=f"{fragment_key}_sort_column",
        )
    with col_toggle:
        st.write("")
        if st.button("⇅", key=f"{fragment_key}_sort_toggle", help="Сменить направление"):
            sort_state = next_sort_state(sort_state, column)
        elif sort_state is None or sort_state.column != column:
            sort_state = next_sort_state(None, column)

    st.session_state[CACHE_KEY_DAILY_SORT] = sort_state

    table = DailyTable(daily_df, sort_state=sort_state)
    display_df = table.to_display_frame()
    display_df['day_of_week'] = display_df['day_of_week'].map(
        lambda d: WEEKDAY_ABBR.get(int(d), '') if pd.notna(d) else ''
    )

    styled = display_df.style.map(_style_profit, subset=[c.key for c in DAILY_COLUMNS if c.colorize])
    st.dataframe(
        styled,
        column_config=_column_config(),
        hide_index=True,
        use_container_width=True,
    )
    direction = '↑' if sort_state.ascending else '↓'
    st.caption(f"{labels[sort_state.column]} {direction} · строка «{TOTAL_LABEL}» не зависит от сортировки")


# =============================================================================
# DAILY CHART
# =============================================================================

def build_daily_chart(daily_df: pd.DataFrame, metrics: List[str]) -> alt.Chart:
    if daily_df is None or daily_df.empty or not metrics:
        return alt.Chart().mark_text().encode(text=alt.value("Нет данных"))

    long_df = daily_df.melt(
        id_vars=['date'],
        value_vars=[m for m in metrics if m in daily_df.columns],
        var_name='metric',
        value_name='value',
    ).dropna(subset=['value'])
    long_df['metric_label'] = long_df['metric'].map(CHART_METRICS)

    color_scale = alt.Scale(
        domain=[CHART_METRICS[m] for m in metrics],
        range=[COLORS.get(m, COLORS['primary']) for m in metrics],
    )

    return alt.Chart(long_df).mark_line(point=True).encode(
        x=alt.X('date:T', title='', axis=alt.Axis(format='%d.%m')),
        y=alt.Y('value:Q', title=CURRENCY, axis=alt.Axis(format='~s')),
        color=alt.Color('metric_label:N', scale=color_scale, legend=alt.Legend(orient='bottom', title=None)),
        tooltip=[
            alt.Tooltip('date:T', title='Дата', format='%d.%m.%Y'),
            alt.Tooltip('metric_label:N', title='Метрика'),
            alt.Tooltip('value:Q', title='Значение', format=',.0f'),
        ],
    ).properties(height=CHART_HEIGHT)


@st.fragment
def daily_chart_fragment(daily_df: pd.DataFrame, prefs: PreferenceBridge, fragment_key: str = "sa_chart"):
    """Trend lines for the selected metrics; the selection is remembered."""
    visible = prefs.get_legend(DEFAULT_CHART_METRICS)
    visible = [m for m in CHART_METRICS if m in visible]

    selected = st.multiselect(
        "Показатели",
        list(CHART_METRICS),
        default=visible,
        format_func=CHART_METRICS.get,
        key=f"{fragment_key}_metrics",
    )
    if set(selected) != set(visible):
        prefs.set_legend(set(selected))

    st.altair_chart(build_daily_chart(daily_df, selected), use_container_width=True)


# =============================================================================
# SYNC STATUS
# =============================================================================

@st.fragment(run_every=SYNC_INTERVAL)
def sync_status_fragment(loader):
    """Advertising sync badge; keeps the last known status when polling fails."""
    loader.ensure_sync_poller(SYNC_INTERVAL)
    tracker = loader.get_sync_tracker()
    status = tracker.status

    if status is None:
        st.caption(f"⚪ {UNAVAILABLE_TEXT}")
        return

    health_color = HEALTH_COLORS[status.health()]
    state_config = status.config
    text = f"{state_config['label']} · {format_last_sync(status)}"
    if tracker.is_unavailable:
        text += f" · {UNAVAILABLE_TEXT}"

    st.markdown(
        f"<span style='color:{health_color}'>●</span> "
        f"<span style='color:{state_config['color']}'>{text}</span>",
        unsafe_allow_html=True,
        help=state_config['description'],
    )
