# seller_analytics/period_comparison/sync_status.py
"""
Sync-Status Poller for the advertising data sync

VERSION: 1.0.0
- SyncState machine: idle -> syncing -> completed | partial_success | failed -> idle
- Tracker keeps the last good status when a poll fails (is_unavailable flag)
- Poller owns at most one background thread; interval change restarts it
- Health: failed = unhealthy, never synced or older than 26h = stale
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .constants import SYNC_POLL_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

STALE_AFTER_HOURS = 26
UNAVAILABLE_TEXT = 'Статус недоступен'


class SyncState(str, Enum):
    IDLE = 'idle'
    SYNCING = 'syncing'
    COMPLETED = 'completed'
    PARTIAL_SUCCESS = 'partial_success'
    FAILED = 'failed'

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({SyncState.COMPLETED, SyncState.PARTIAL_SUCCESS, SyncState.FAILED})

ALLOWED_TRANSITIONS = {
    SyncState.IDLE: {SyncState.SYNCING},
    SyncState.SYNCING: {SyncState.COMPLETED, SyncState.PARTIAL_SUCCESS, SyncState.FAILED},
    SyncState.COMPLETED: {SyncState.IDLE, SyncState.SYNCING},
    SyncState.PARTIAL_SUCCESS: {SyncState.IDLE, SyncState.SYNCING},
    SyncState.FAILED: {SyncState.IDLE, SyncState.SYNCING},
}


def is_valid_transition(old: SyncState, new: SyncState) -> bool:
    """Staying in the same state is always valid (repeated polls)."""
    return old == new or new in ALLOWED_TRANSITIONS.get(old, set())


STATUS_CONFIG = {
    SyncState.IDLE: {
        'label': 'Ожидание',
        'description': 'Синхронизация не выполняется',
        'color': '#9CA3AF',
    },
    SyncState.SYNCING: {
        'label': 'Синхронизация...',
        'description': 'Загрузка данных рекламных кампаний',
        'color': '#3B82F6',
    },
    SyncState.COMPLETED: {
        'label': 'Синхронизировано',
        'description': 'Данные обновлены',
        'color': '#22C55E',
    },
    SyncState.PARTIAL_SUCCESS: {
        'label': 'Частично',
        'description': 'Часть кампаний не удалось синхронизировать',
        'color': '#F59E0B',
    },
    SyncState.FAILED: {
        'label': 'Ошибка',
        'description': 'Синхронизация завершилась с ошибкой',
        'color': '#EF4444',
    },
}

HEALTH_HEALTHY = 'healthy'
HEALTH_STALE = 'stale'
HEALTH_UNHEALTHY = 'unhealthy'

HEALTH_COLORS = {
    HEALTH_HEALTHY: '#22C55E',
    HEALTH_STALE: '#F97316',
    HEALTH_UNHEALTHY: '#EF4444',
}


# =============================================================================
# STATUS VALUE
# =============================================================================

def _parse_datetime(value) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_date(value) -> Optional[date]:
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


@dataclass(frozen=True)
class SyncStatus:
    state: SyncState = SyncState.IDLE
    last_sync_at: Optional[datetime] = None
    next_scheduled_sync: Optional[datetime] = None
    campaigns_synced: int = 0
    data_available_from: Optional[date] = None
    data_available_to: Optional[date] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'SyncStatus':
        """Tolerant parsing of the sync-status endpoint response."""
        payload = payload or {}

        try:
            state = SyncState(payload.get('status'))
        except ValueError:
            logger.debug(f"Unknown sync state {payload.get('status')!r}, treating as idle")
            state = SyncState.IDLE

        try:
            campaigns = int(payload.get('campaignsSynced') or 0)
        except (TypeError, ValueError):
            campaigns = 0

        return cls(
            state=state,
            last_sync_at=_parse_datetime(payload.get('lastSyncAt')),
            next_scheduled_sync=_parse_datetime(payload.get('nextScheduledSync')),
            campaigns_synced=campaigns,
            data_available_from=_parse_date(payload.get('dataAvailableFrom')),
            data_available_to=_parse_date(payload.get('dataAvailableTo')),
        )

    @property
    def config(self) -> Dict[str, str]:
        return STATUS_CONFIG[self.state]

    def health(self, now: Optional[datetime] = None) -> str:
        if self.state == SyncState.FAILED:
            return HEALTH_UNHEALTHY
        if self.last_sync_at is None:
            return HEALTH_STALE
        now = now or datetime.now(timezone.utc)
        if now - self.last_sync_at > timedelta(hours=STALE_AFTER_HOURS):
            return HEALTH_STALE
        return HEALTH_HEALTHY


def format_last_sync(status: Optional[SyncStatus], now: Optional[datetime] = None) -> str:
    """Relative sync time, e.g. "Обновлено 5 мин назад"."""
    if status is None or status.last_sync_at is None:
        return 'Обновлено: никогда'

    now = now or datetime.now(timezone.utc)
    minutes = max(int((now - status.last_sync_at).total_seconds() // 60), 0)

    if minutes < 1:
        return 'Обновлено только что'
    if minutes < 60:
        return f'Обновлено {minutes} мин назад'
    if minutes < 60 * 24:
        return f'Обновлено {minutes // 60} ч назад'
    return f'Обновлено {minutes // (60 * 24)} дн назад'


# =============================================================================
# TRACKER
# =============================================================================

class SyncStatusTracker:
    """
    Last known sync status plus availability of the status endpoint.

    A failed poll never clears the status; it only raises is_unavailable.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.status: Optional[SyncStatus] = None
        self.is_unavailable = False
        self.last_error: Optional[str] = None
        self.last_checked_at: Optional[datetime] = None

    def refresh(self, fetch: Callable[[], Dict[str, Any]]) -> Optional[SyncStatus]:
        try:
            payload = fetch()
        except Exception as e:
            with self._lock:
                self.is_unavailable = True
                self.last_error = str(e)
                self.last_checked_at = datetime.now(timezone.utc)
            logger.warning(f"⚠️ Sync status unavailable: {e}")
            return self.status

        new_status = SyncStatus.from_payload(payload)

        with self._lock:
            # First observation has no transition to check
            if self.status is not None:
                old_state = self.status.state
                if not is_valid_transition(old_state, new_status.state):
                    logger.info(f"Unexpected sync transition {old_state.value} -> {new_status.state.value}")
                elif old_state != new_status.state:
                    logger.debug(f"Sync state {old_state.value} -> {new_status.state.value}")

            self.status = new_status
            self.is_unavailable = False
            self.last_error = None
            self.last_checked_at = datetime.now(timezone.utc)

        return new_status


# =============================================================================
# POLLER
# =============================================================================

class SyncStatusPoller:
    """
    Periodically refreshes a SyncStatusTracker on one background thread.

    Usage:
        with SyncStatusPoller(client.get_sync_status) as poller:
            ...
            poller.tracker.status

        poller = SyncStatusPoller(fetch, interval=60)
        poller.start()
        poller.set_interval(30)
        poller.stop()
    """

    def __init__(
        self,
        fetch: Callable[[], Dict[str, Any]],
        interval: float = SYNC_POLL_INTERVAL_SECONDS,
        tracker: Optional[SyncStatusTracker] = None,
    ):
        if interval <= 0:
            raise ValueError("Polling interval must be positive")
        self.fetch = fetch
        self.interval = interval
        self.tracker = tracker or SyncStatusTracker()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> Optional[SyncStatus]:
        return self.tracker.refresh(self.fetch)

    def _run(self, stop_event: threading.Event, interval: float):
        self.poll_once()
        while not stop_event.wait(interval):
            self.poll_once()

    def start(self):
        with self._lock:
            if self.is_running:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event, self.interval),
                name='sync-status-poller',
                daemon=True,
            )
            self._thread.start()
        logger.debug(f"Sync status poller started (every {self.interval}s)")

    def stop(self, timeout: float = 5.0):
        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None

        if stop_event is not None:
            stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            logger.debug("Sync status poller stopped")

    def set_interval(self, interval: float):
        """Change the interval; a running poller is restarted with it."""
        if interval <= 0:
            raise ValueError("Polling interval must be positive")
        was_running = self.is_running
        self.stop()
        self.interval = interval
        if was_running:
            self.start()

    def __enter__(self) -> 'SyncStatusPoller':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
