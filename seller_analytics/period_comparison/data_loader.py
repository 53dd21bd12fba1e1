# seller_analytics/period_comparison/data_loader.py
"""
Period Data Loader for Seller Dashboard

VERSION: 1.0.0
- One payload per period, cached in session_state with TTL
- Month = weekly finance summaries of its weeks (up to the last completed
  week) folded by aggregate_finance_summaries
- Daily rows from three per-day endpoints merged by aggregate_daily_metrics
- Last-request-wins per slot: a response that is no longer the latest
  request for its slot is discarded (sequencer lives in session_state, so a
  rerun supersedes a load still in flight)
- Sync badge fed by one background SyncStatusPoller per session

Principles:
1. Each source is fetched independently; a failed source is "not delivered"
   (its metrics stay None) instead of failing the whole period
2. Cache key is the canonical period string
3. Only reload when cache expired or explicitly forced
"""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd
import streamlit as st

from ..api_client import AnalyticsApiError, get_api_client
from ..config import config
from .constants import (
    CACHE_KEY_PERIODS,
    CACHE_KEY_SEQUENCER,
    CACHE_KEY_SYNC_POLLER,
    CACHE_KEY_SYNC_TRACKER,
    CACHE_TTL_SECONDS,
    DEBUG_TIMING,
)
from .daily_table import aggregate_daily_metrics
from .derived_metrics import aggregate_finance_summaries
from .periods import (
    ComparisonPeriods,
    PeriodKey,
    last_completed_week,
    local_now,
    period_date_range,
    weeks_in_month,
)
from .sync_status import SyncStatus, SyncStatusPoller, SyncStatusTracker

logger = logging.getLogger(__name__)

SLOT_CURRENT = 'current'
SLOT_PREVIOUS = 'previous'


# =============================================================================
# LAST-REQUEST-WINS
# =============================================================================

class RequestSequencer:
    """
    Issues increasing tokens per slot; only the newest token's response is
    accepted.

    Usage:
        token = sequencer.begin('current')
        data = fetch()
        data = sequencer.accept('current', token, data)   # None if superseded
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._latest: Dict[str, int] = {}

    def begin(self, slot: str) -> int:
        with self._lock:
            token = self._latest.get(slot, 0) + 1
            self._latest[slot] = token
            return token

    def is_current(self, slot: str, token: int) -> bool:
        with self._lock:
            return self._latest.get(slot) == token

    def accept(self, slot: str, token: int, result):
        if self.is_current(slot, token):
            return result
        logger.info(f"Discarding stale response for slot '{slot}' (request #{token})")
        return None


# =============================================================================
# PAYLOAD
# =============================================================================

def _sum_or_none(daily: Optional[pd.DataFrame], column: str) -> Optional[float]:
    if daily is None or daily.empty or column not in daily.columns:
        return None
    total = pd.to_numeric(daily[column], errors='coerce').sum(min_count=1)
    return None if pd.isna(total) else float(total)


def _first_present(*values):
    for value in values:
        if value is not None:
            return value
    return None


def build_period_payload(
    period: PeriodKey,
    summary: Optional[Dict],
    daily: Optional[pd.DataFrame],
    weeks: List[PeriodKey] = None,
    errors: List[str] = None,
) -> Dict:
    """Flatten the finance summary and the daily rows of one period."""
    summary = summary or {}

    return {
        'period': str(period),
        'weeks': [str(w) for w in (weeks or [])],
        # Orders side (daily endpoints)
        'orders_amount': _sum_or_none(daily, 'orders'),
        'orders_count': _sum_or_none(daily, 'orders_count'),
        'orders_cogs': _sum_or_none(daily, 'orders_cogs'),
        'advertising_spend': _sum_or_none(daily, 'advertising'),
        # Sales side (weekly finance report)
        'sale_gross_total': summary.get('sale_gross_total'),
        'payout_total': summary.get('payout_total'),
        'cogs_total': summary.get('cogs_total'),
        'cogs_coverage_pct': summary.get('cogs_coverage_pct'),
        'products_total': summary.get('products_total'),
        'products_with_cogs': summary.get('products_with_cogs'),
        'logistics_cost': _first_present(summary.get('logistics_cost_total'), _sum_or_none(daily, 'logistics')),
        'storage_cost': _first_present(summary.get('storage_cost_total'), _sum_or_none(daily, 'storage')),
        'daily': daily if daily is not None else pd.DataFrame(),
        'errors': list(errors or []),
    }


# =============================================================================
# LOADER
# =============================================================================

class PeriodDataLoader:
    """
    Load and cache period payloads for the comparison dashboard.

    Usage:
        loader = PeriodDataLoader()
        current, previous = loader.load_comparison(periods)
        tracker = loader.refresh_sync_status()
        loader.ensure_sync_poller(interval=60)
    """

    def __init__(
        self,
        client=None,
        state=None,
        ttl_seconds: int = CACHE_TTL_SECONDS,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self._client = client
        self.state = state if state is not None else st.session_state
        self.ttl_seconds = ttl_seconds
        self.now = now or self._marketplace_now

        # Shared by every loader of the session so a rerun can supersede
        # a request still in flight
        if CACHE_KEY_SEQUENCER not in self.state:
            self.state[CACHE_KEY_SEQUENCER] = RequestSequencer()
        self.sequencer = self.state[CACHE_KEY_SEQUENCER]

    @staticmethod
    def _marketplace_now() -> datetime:
        return local_now(config.get_app_setting('TIMEZONE'))

    @property
    def client(self):
        if self._client is None:
            self._client = get_api_client()
        return self._client

    # =========================================================================
    # CACHE
    # =========================================================================

    def _cache(self) -> Dict:
        if CACHE_KEY_PERIODS not in self.state:
            self.state[CACHE_KEY_PERIODS] = {}
        return self.state[CACHE_KEY_PERIODS]

    def _needs_reload(self, key: str) -> tuple:
        """
        Check if a period needs to be reloaded.
        Returns tuple (needs_reload: bool, reason: str)
        """
        entry = self._cache().get(key)

        if entry is None:
            return True, "No cached data"

        if entry.get('payload') is None:
            return True, "Missing payload"

        loaded_at = entry.get('_loaded_at')
        if loaded_at:
            elapsed = (self.now() - loaded_at).total_seconds()
            if elapsed > self.ttl_seconds:
                return True, f"TTL expired ({elapsed:.0f}s)"

        return False, None

    def clear_cache(self):
        self.state[CACHE_KEY_PERIODS] = {}
        logger.info("🔄 Period cache cleared")

    # =========================================================================
    # MAIN ENTRY POINTS
    # =========================================================================

    def get_period_payload(
        self,
        period: PeriodKey,
        slot: str = SLOT_CURRENT,
        force_reload: bool = False,
    ) -> Optional[Dict]:
        """
        Payload of one period (cached or fresh).

        Returns:
            Payload dict, or None when a newer request for the same slot
            superseded this one
        """
        key = str(period)
        needs_reload, reload_reason = self._needs_reload(key)

        if not force_reload and not needs_reload:
            if DEBUG_TIMING:
                print(f"♻️ Using cached payload for {key}")
            return self._cache()[key]['payload']

        if DEBUG_TIMING and reload_reason:
            print(f"🔄 Reload reason ({key}): {reload_reason}")

        token = self.sequencer.begin(slot)
        start_time = time.perf_counter()
        payload = self._load_period(period)

        if self.sequencer.accept(slot, token, payload) is None:
            return None

        self._cache()[key] = {'payload': payload, '_loaded_at': self.now()}

        if DEBUG_TIMING:
            print(f"⏱️ Loaded {key} in {time.perf_counter() - start_time:.2f}s")

        return payload

    def load_comparison(
        self,
        periods: ComparisonPeriods,
        force_reload: bool = False,
    ) -> Tuple[Optional[Dict], Optional[Dict]]:
        current = self.get_period_payload(periods.current, SLOT_CURRENT, force_reload)
        previous = self.get_period_payload(periods.previous, SLOT_PREVIOUS, force_reload)
        return current, previous

    # =========================================================================
    # DATA LOADING
    # =========================================================================

    def _summary_weeks(self, period: PeriodKey) -> List[PeriodKey]:
        """Weeks whose finance reports make up the period."""
        if period.is_week:
            return [period]

        limit = last_completed_week(self.now())
        return [
            w for w in weeks_in_month(period)
            if (w.year, w.week_number) <= (limit.year, limit.week_number)
        ]

    def _fetch(self, label: str, func, errors: List[str], *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AnalyticsApiError as e:
            logger.warning(f"⚠️ {label} unavailable: {e}")
            errors.append(label)
            return None

    def _load_period(self, period: PeriodKey) -> Dict:
        errors: List[str] = []
        weeks = self._summary_weeks(period)

        summaries = []
        for week in weeks:
            response = self._fetch('finance_summary', self.client.get_finance_summary, errors, week=str(week))
            if response:
                summary = response.get('summary_total') or response.get('summary_rus')
                if summary:
                    summaries.append(summary)

        summary = aggregate_finance_summaries(summaries)

        start, end = period_date_range(period)
        start_str, end_str = start.isoformat(), end.isoformat()

        orders = self._fetch('daily_orders', self.client.get_daily_orders, errors, start_str, end_str)
        finance = self._fetch('daily_finance', self.client.get_daily_finance, errors, start_str, end_str)
        advertising = self._fetch('daily_advertising', self.client.get_daily_advertising, errors, start_str, end_str)

        daily = aggregate_daily_metrics(orders, finance, advertising, start_str, end_str)

        logger.info(
            f"✅ Loaded {period}: {len(summaries)}/{len(weeks)} weekly report(s), "
            f"{len(daily)} day(s), {len(errors)} failed source(s)"
        )
        return build_period_payload(period, summary, daily, weeks, errors)

    # =========================================================================
    # SYNC STATUS
    # =========================================================================

    def get_sync_tracker(self) -> SyncStatusTracker:
        if CACHE_KEY_SYNC_TRACKER not in self.state:
            self.state[CACHE_KEY_SYNC_TRACKER] = SyncStatusTracker()
        return self.state[CACHE_KEY_SYNC_TRACKER]

    def refresh_sync_status(self) -> Optional[SyncStatus]:
        """Poll once; the tracker keeps the last good status on failure."""
        return self.get_sync_tracker().refresh(self.client.get_sync_status)

    def ensure_sync_poller(self, interval: float) -> SyncStatusPoller:
        """
        Background poller of this session, started on first use.

        It refreshes the same tracker the badge renders; a changed interval
        is applied to the running poller.
        """
        poller = self.state.get(CACHE_KEY_SYNC_POLLER)

        if poller is None:
            poller = SyncStatusPoller(
                self.client.get_sync_status,
                interval=interval,
                tracker=self.get_sync_tracker(),
            )
            self.state[CACHE_KEY_SYNC_POLLER] = poller
            logger.info(f"📡 Sync status polling every {interval}s")
        elif poller.interval != interval:
            poller.set_interval(interval)

        if not poller.is_running:
            poller.start()
        return poller

    def stop_sync_poller(self):
        poller = self.state.pop(CACHE_KEY_SYNC_POLLER, None)
        if poller is not None:
            poller.stop()
            logger.info("📡 Sync status polling stopped")
