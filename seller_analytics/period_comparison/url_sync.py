# seller_analytics/period_comparison/url_sync.py
"""
Period URL Synchronizer

VERSION: 1.0.0

Query parameter contract (shareable links):
    ?type=week&week=2026-W05
    ?type=month&month=2026-01

Priority for the period type: URL > stored preference > 'week'.
Malformed week/month values fall back to the default period (last completed
week, and the month containing it) without raising.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional

import streamlit as st

from .constants import (
    PERIOD_TYPES,
    PERIOD_TYPE_WEEK,
    PERIOD_TYPE_MONTH,
    DEFAULT_PERIOD_TYPE,
    URL_PARAM_WEEK,
    URL_PARAM_MONTH,
    URL_PARAM_TYPE,
)
from .periods import PeriodKey, last_completed_week, month_from_week

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodSelection:
    period_type: str
    week: PeriodKey
    month: PeriodKey

    @property
    def active_period(self) -> PeriodKey:
        return self.month if self.period_type == PERIOD_TYPE_MONTH else self.week

    def with_period_type(self, period_type: str) -> 'PeriodSelection':
        if period_type not in PERIOD_TYPES:
            raise ValueError(f"Unknown period type: {period_type}")
        return replace(self, period_type=period_type)

    def with_period(self, period: PeriodKey) -> 'PeriodSelection':
        """Select a period; its kind becomes the active type."""
        if period.is_week:
            return replace(self, period_type=PERIOD_TYPE_WEEK, week=period)
        return replace(self, period_type=PERIOD_TYPE_MONTH, month=period)


def _first(value) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _parse_or_default(raw: Optional[str], kind: str, default: PeriodKey) -> PeriodKey:
    if raw is None or raw == '':
        return default
    try:
        return PeriodKey.parse(raw, kind=kind)
    except ValueError:
        logger.debug(f"Invalid {kind} parameter {raw!r}, using default {default}")
        return default


def parse_period_from_params(
    params: Mapping[str, object],
    default_week: PeriodKey,
    stored_type: Optional[str] = None,
) -> PeriodSelection:
    """Build the selection from query parameters. Never raises on bad input."""
    url_type = _first(params.get(URL_PARAM_TYPE))

    if url_type in PERIOD_TYPES:
        period_type = url_type
    elif stored_type in PERIOD_TYPES:
        period_type = stored_type
    else:
        if url_type is not None:
            logger.debug(f"Invalid type parameter {url_type!r}")
        period_type = DEFAULT_PERIOD_TYPE

    default_month = month_from_week(default_week)
    week = _parse_or_default(_first(params.get(URL_PARAM_WEEK)), PERIOD_TYPE_WEEK, default_week)
    month = _parse_or_default(_first(params.get(URL_PARAM_MONTH)), PERIOD_TYPE_MONTH, default_month)

    return PeriodSelection(period_type=period_type, week=week, month=month)


def write_period_to_params(params: Mapping[str, object], selection: PeriodSelection) -> Dict[str, object]:
    """
    New parameter mapping for the selection: sets type and the active key,
    drops the inactive key, leaves unrelated parameters alone.
    """
    updated = dict(params)
    updated[URL_PARAM_TYPE] = selection.period_type

    if selection.period_type == PERIOD_TYPE_MONTH:
        updated[URL_PARAM_MONTH] = str(selection.month)
        updated.pop(URL_PARAM_WEEK, None)
    else:
        updated[URL_PARAM_WEEK] = str(selection.week)
        updated.pop(URL_PARAM_MONTH, None)

    return updated


# =============================================================================
# STREAMLIT ADAPTERS
# =============================================================================

def read_period_from_query_params(
    default_week: Optional[PeriodKey] = None,
    stored_type: Optional[str] = None,
) -> PeriodSelection:
    default_week = default_week or last_completed_week()
    return parse_period_from_params(st.query_params.to_dict(), default_week, stored_type)


def sync_period_to_query_params(selection: PeriodSelection) -> bool:
    """
    Update st.query_params in place (no navigation).

    Returns:
        True if the address bar changed
    """
    current = st.query_params.to_dict()
    updated = write_period_to_params(current, selection)

    if updated == current:
        return False

    for key in current:
        if key not in updated:
            del st.query_params[key]
    for key, value in updated.items():
        if current.get(key) != value:
            st.query_params[key] = value

    logger.debug(f"Query params synced: {updated}")
    return True
