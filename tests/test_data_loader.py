"""
Unit tests for period loading (seller_analytics/period_comparison/data_loader.py):
    - RequestSequencer: last request wins per slot
    - build_period_payload(): flat payload from summary + daily rows
    - PeriodDataLoader: TTL cache, month = its completed weeks, failed sources
    - session-scoped request sequencer, sync poller and marketplace clock

Run with:
    pytest tests/test_data_loader.py -v
"""

from datetime import datetime, timedelta

import pandas as pd
import pytest

from seller_analytics.api_client import AnalyticsApiError
from seller_analytics.config import config
from seller_analytics.period_comparison.constants import (
    CACHE_KEY_PERIODS,
    CACHE_KEY_SEQUENCER,
    CACHE_KEY_SYNC_POLLER,
    CACHE_KEY_SYNC_TRACKER,
)
from seller_analytics.period_comparison.data_loader import (
    SLOT_CURRENT,
    SLOT_PREVIOUS,
    PeriodDataLoader,
    RequestSequencer,
    build_period_payload,
)
from seller_analytics.period_comparison.periods import (
    ComparisonMode,
    PeriodKey,
    local_now,
    resolve_comparison_periods,
)
from seller_analytics.period_comparison.sync_status import SyncState

# ─── Helpers ─────────────────────────────────────────────────────────────────

WEEKLY_SUMMARY = {
    'sale_gross_total': 100000.0,
    'payout_total': 70000.0,
    'cogs_total': 30000.0,
    'cogs_coverage_pct': 90.0,
    'logistics_cost_total': 8000.0,
    'storage_cost_total': 1500.0,
}


class FakeClient:
    """Analytics API stand-in recording every call."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def _call(self, name, result):
        self.calls.append(name)
        if name in self.failing:
            raise AnalyticsApiError(f"{name} failed", status_code=503)
        return result

    def get_finance_summary(self, week):
        self.calls.append(('week', week))
        return self._call('finance_summary', {'summary_total': dict(WEEKLY_SUMMARY, week=week)})

    def get_daily_orders(self, start_date, end_date):
        return self._call('daily_orders', [
            {'date': start_date, 'total_amount': 20000, 'total_orders': 15, 'cogs_total': 7000},
        ])

    def get_daily_finance(self, start_date, end_date):
        return self._call('daily_finance', [
            {'date': start_date, 'wb_sales_gross': 18000, 'cogs_total': 6500,
             'logistics_cost': 1200, 'storage_cost': 200},
        ])

    def get_daily_advertising(self, start_date, end_date):
        return self._call('daily_advertising', [{'date': start_date, 'total_spend': 900}])

    def get_sync_status(self):
        return self._call('sync_status', {'status': 'completed', 'lastSyncAt': '2026-02-04T06:00:00Z'})

    def weeks_requested(self):
        return [c[1] for c in self.calls if isinstance(c, tuple)]


class RerunClient(FakeClient):
    """Starts a second load of the same slot while the first one is in flight."""

    def __init__(self, state, clock):
        super().__init__()
        self.state = state
        self.clock = clock
        self.rerun_payload = None

    def get_finance_summary(self, week):
        if self.rerun_payload is None and not self.weeks_requested():
            self.calls.append(('week', week))
            rerun = PeriodDataLoader(client=FakeClient(), state=self.state, now=self.clock)
            self.rerun_payload = rerun.get_period_payload(PeriodKey.week(2026, 4), SLOT_CURRENT)
            return {'summary_total': dict(WEEKLY_SUMMARY, week=week)}
        return super().get_finance_summary(week)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    # Wednesday: last completed week is 2026-W05
    return Clock(datetime(2026, 2, 4, 9, 0))


def _make_loader(client, clock, ttl_seconds=300):
    return PeriodDataLoader(client=client, state={}, ttl_seconds=ttl_seconds, now=clock)


class TestRequestSequencer:
    def test_latest_request_wins(self):
        sequencer = RequestSequencer()
        first = sequencer.begin(SLOT_CURRENT)
        second = sequencer.begin(SLOT_CURRENT)
        assert sequencer.accept(SLOT_CURRENT, first, 'stale') is None
        assert sequencer.accept(SLOT_CURRENT, second, 'fresh') == 'fresh'

    def test_slots_are_independent(self):
        sequencer = RequestSequencer()
        current = sequencer.begin(SLOT_CURRENT)
        sequencer.begin(SLOT_PREVIOUS)
        assert sequencer.is_current(SLOT_CURRENT, current)


class TestBuildPeriodPayload:
    def test_without_data(self):
        payload = build_period_payload(PeriodKey.week(2026, 5), None, None)
        assert payload['period'] == '2026-W05'
        assert payload['sale_gross_total'] is None
        assert payload['orders_amount'] is None
        assert payload['daily'].empty
        assert payload['errors'] == []

    def test_sums_daily_rows(self):
        daily = pd.DataFrame({'orders': [100.0, 200.0], 'advertising': [float('nan'), float('nan')],
                              'logistics': [10.0, 20.0]})
        payload = build_period_payload(PeriodKey.week(2026, 5), {}, daily)
        assert payload['orders_amount'] == pytest.approx(300.0)
        assert payload['advertising_spend'] is None
        assert payload['logistics_cost'] == pytest.approx(30.0)

    def test_summary_costs_preferred(self):
        daily = pd.DataFrame({'logistics': [10.0], 'storage': [5.0]})
        payload = build_period_payload(PeriodKey.week(2026, 5), WEEKLY_SUMMARY, daily)
        assert payload['logistics_cost'] == pytest.approx(8000.0)
        assert payload['storage_cost'] == pytest.approx(1500.0)


class TestPeriodDataLoader:
    def test_week_payload(self, clock):
        client = FakeClient()
        payload = _make_loader(client, clock).get_period_payload(PeriodKey.week(2026, 5))

        assert client.weeks_requested() == ['2026-W05']
        assert payload['sale_gross_total'] == pytest.approx(100000.0)
        assert payload['orders_amount'] == pytest.approx(20000.0)
        assert payload['advertising_spend'] == pytest.approx(900.0)
        assert len(payload['daily']) == 7
        assert payload['errors'] == []

    def test_cached_within_ttl(self, clock):
        client = FakeClient()
        loader = _make_loader(client, clock)
        loader.get_period_payload(PeriodKey.week(2026, 5))
        clock.advance(299)
        loader.get_period_payload(PeriodKey.week(2026, 5))
        assert client.weeks_requested() == ['2026-W05']

    def test_reloaded_after_ttl(self, clock):
        client = FakeClient()
        loader = _make_loader(client, clock)
        loader.get_period_payload(PeriodKey.week(2026, 5))
        clock.advance(301)
        loader.get_period_payload(PeriodKey.week(2026, 5))
        assert client.weeks_requested() == ['2026-W05', '2026-W05']

    def test_force_reload_and_clear(self, clock):
        client = FakeClient()
        loader = _make_loader(client, clock)
        loader.get_period_payload(PeriodKey.week(2026, 5))
        loader.get_period_payload(PeriodKey.week(2026, 5), force_reload=True)
        loader.clear_cache()
        assert loader.state[CACHE_KEY_PERIODS] == {}
        loader.get_period_payload(PeriodKey.week(2026, 5))
        assert len(client.weeks_requested()) == 3

    def test_month_uses_completed_weeks(self, clock):
        client = FakeClient()
        payload = _make_loader(client, clock).get_period_payload(PeriodKey.month(2026, 1))

        assert client.weeks_requested() == ['2026-W01', '2026-W02', '2026-W03', '2026-W04', '2026-W05']
        assert payload['weeks'] == client.weeks_requested()
        assert payload['sale_gross_total'] == pytest.approx(500000.0)
        assert payload['cogs_coverage_pct'] == pytest.approx(90.0)
        assert len(payload['daily']) == 31

    def test_month_in_progress(self):
        client = FakeClient()
        clock = Clock(datetime(2026, 1, 21, 15, 0))
        payload = _make_loader(client, clock).get_period_payload(PeriodKey.month(2026, 1))
        assert client.weeks_requested() == ['2026-W01', '2026-W02', '2026-W03']
        assert payload['sale_gross_total'] == pytest.approx(300000.0)

    def test_failed_source_is_reported(self, clock):
        client = FakeClient(failing={'daily_advertising'})
        payload = _make_loader(client, clock).get_period_payload(PeriodKey.week(2026, 5))
        assert payload['errors'] == ['daily_advertising']
        assert payload['advertising_spend'] is None
        assert payload['daily']['theoretical_profit'].isna().all()
        assert payload['orders_amount'] == pytest.approx(20000.0)

    def test_failed_summary(self, clock):
        client = FakeClient(failing={'finance_summary'})
        payload = _make_loader(client, clock).get_period_payload(PeriodKey.week(2026, 5))
        assert payload['errors'] == ['finance_summary']
        assert payload['sale_gross_total'] is None
        assert payload['logistics_cost'] == pytest.approx(1200.0)

    def test_load_comparison(self, clock):
        client = FakeClient()
        periods = resolve_comparison_periods(PeriodKey.week(2026, 5), ComparisonMode.WOW)
        current, previous = _make_loader(client, clock).load_comparison(periods)
        assert current['period'] == '2026-W05'
        assert previous['period'] == '2026-W04'

    def test_sync_status(self, clock):
        loader = _make_loader(FakeClient(), clock)
        status = loader.refresh_sync_status()
        assert status.state == SyncState.COMPLETED
        assert loader.state[CACHE_KEY_SYNC_TRACKER] is loader.get_sync_tracker()

    def test_sync_status_failure_keeps_tracker(self, clock):
        client = FakeClient()
        loader = _make_loader(client, clock)
        loader.refresh_sync_status()
        client.failing.add('sync_status')
        status = loader.refresh_sync_status()
        assert status.state == SyncState.COMPLETED
        assert loader.get_sync_tracker().is_unavailable

    def test_all_daily_sources_failed(self, clock):
        client = FakeClient(failing={'daily_orders', 'daily_finance', 'daily_advertising'})
        payload = _make_loader(client, clock).get_period_payload(PeriodKey.week(2026, 5))
        assert payload['orders_amount'] is None
        assert payload['advertising_spend'] is None
        assert payload['daily']['orders'].isna().all()
        # Weekly report still delivers its own costs
        assert payload['logistics_cost'] == pytest.approx(8000.0)


class TestSessionSequencer:
    def test_loaders_share_the_sequencer(self, clock):
        state = {}
        first = PeriodDataLoader(client=FakeClient(), state=state, now=clock)
        second = PeriodDataLoader(client=FakeClient(), state=state, now=clock)
        assert first.sequencer is second.sequencer
        assert state[CACHE_KEY_SEQUENCER] is first.sequencer

    def test_rerun_supersedes_request_in_flight(self, clock):
        state = {}
        client = RerunClient(state, clock)
        loader = PeriodDataLoader(client=client, state=state, now=clock)

        payload = loader.get_period_payload(PeriodKey.week(2026, 5), SLOT_CURRENT)

        assert payload is None
        assert client.rerun_payload['period'] == '2026-W04'
        assert set(state[CACHE_KEY_PERIODS]) == {'2026-W04'}

    def test_other_slot_is_not_superseded(self, clock):
        state = {}
        loader = PeriodDataLoader(client=FakeClient(), state=state, now=clock)
        PeriodDataLoader(client=FakeClient(), state=state, now=clock).sequencer.begin(SLOT_PREVIOUS)
        assert loader.get_period_payload(PeriodKey.week(2026, 5), SLOT_CURRENT) is not None


class TestMarketplaceClock:
    def test_default_clock_uses_configured_timezone(self):
        loader = PeriodDataLoader(client=FakeClient(), state={})
        expected = local_now(config.get_app_setting('TIMEZONE'))
        assert loader.now().tzinfo is None
        assert abs((loader.now() - expected).total_seconds()) < 60

    def test_injected_clock_wins(self, clock):
        assert _make_loader(FakeClient(), clock).now() == datetime(2026, 2, 4, 9, 0)


class TestSyncPoller:
    @pytest.fixture
    def loader(self, clock):
        loader = _make_loader(FakeClient(), clock)
        yield loader
        loader.stop_sync_poller()

    def test_started_once_per_session(self, loader):
        poller = loader.ensure_sync_poller(3600)
        assert poller.is_running
        assert loader.ensure_sync_poller(3600) is poller
        assert loader.state[CACHE_KEY_SYNC_POLLER] is poller

    def test_feeds_the_badge_tracker(self, loader):
        poller = loader.ensure_sync_poller(3600)
        assert poller.tracker is loader.get_sync_tracker()

    def test_interval_change_applied(self, loader):
        poller = loader.ensure_sync_poller(3600)
        assert loader.ensure_sync_poller(1800) is poller
        assert poller.interval == 1800
        assert poller.is_running

    def test_stopped_poller_is_restarted(self, loader):
        poller = loader.ensure_sync_poller(3600)
        poller.stop()
        assert loader.ensure_sync_poller(3600).is_running

    def test_stop_removes_poller(self, loader):
        poller = loader.ensure_sync_poller(3600)
        loader.stop_sync_poller()
        assert not poller.is_running
        assert CACHE_KEY_SYNC_POLLER not in loader.state
        loader.stop_sync_poller()
