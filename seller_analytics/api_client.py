# seller_analytics/api_client.py
"""
Analytics API Client

Version: 1.0.0
Features:
- Thread-safe singleton pattern
- Retry decorator with exponential backoff for transient failures
- JSON GET helpers for period-scoped analytics payloads
"""

import logging
import threading
import time
from functools import wraps
from typing import Any, Dict, Optional

import requests

from .config import config

logger = logging.getLogger(__name__)

# Endpoints of the analytics API
ENDPOINT_FINANCE_SUMMARY = "/v1/analytics/weekly/finance-summary"
ENDPOINT_DAILY_ORDERS = "/v1/analytics/orders/daily"
ENDPOINT_DAILY_FINANCE = "/v1/analytics/finance/daily"
ENDPOINT_DAILY_ADVERTISING = "/v1/analytics/advertising/daily"
ENDPOINT_SYNC_STATUS = "/v1/analytics/advertising/sync-status"


class AnalyticsApiError(Exception):
    """Raised when the analytics API cannot serve a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:
        return self.status_code is None or self.status_code >= 500 or self.status_code == 429


# ==================== RETRY DECORATOR ====================

def with_retry(max_retries: int = 3, delay: float = 0.5, backoff: float = 2.0):
    """
    Decorator for automatic retry with exponential backoff

    Only transient errors (network, 5xx, 429) are retried; client errors
    such as 401/403/404 are raised on the first attempt.

    Args:
        max_retries: Maximum number of attempts
        delay: Initial delay between retries (seconds)
        backoff: Multiplier for delay after each retry
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None
            current_delay = delay

            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except AnalyticsApiError as e:
                    last_exception = e
                    if not e.is_transient:
                        raise
                    if attempt < max_retries - 1:
                        logger.warning(f"{func.__name__} attempt {attempt + 1} failed, retrying in {current_delay}s...")
                        time.sleep(current_delay)
                        current_delay *= backoff
                    else:
                        logger.error(f"{func.__name__} failed after {max_retries} attempts: {e}")

            raise last_exception
        return wrapper
    return decorator


# ==================== API CLIENT CLASS ====================

class AnalyticsApiClient:
    """
    Thin JSON client for the analytics API

    Usage:
        client = get_api_client()
        summary = client.get_finance_summary(week="2026-W05")
        status = client.get_sync_status()
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout_seconds: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    # ==================== CORE OPERATIONS ====================

    @with_retry(max_retries=3)
    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a JSON document

        Raises:
            AnalyticsApiError: network failure, non-2xx status or invalid JSON
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise AnalyticsApiError(f"GET {path} failed: {e}") from e

        if not response.ok:
            raise AnalyticsApiError(
                f"GET {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise AnalyticsApiError(f"GET {path} returned invalid JSON", status_code=response.status_code) from e

    # ==================== ANALYTICS ENDPOINTS ====================

    def get_finance_summary(self, week: str) -> Dict[str, Any]:
        """Weekly finance report (summary_total / summary_rus / summary_eaeu)"""
        return self.get_json(ENDPOINT_FINANCE_SUMMARY, params={"week": week}) or {}

    def get_daily_orders(self, start_date: str, end_date: str) -> list:
        return self.get_json(ENDPOINT_DAILY_ORDERS, params={"from": start_date, "to": end_date}) or []

    def get_daily_finance(self, start_date: str, end_date: str) -> list:
        return self.get_json(ENDPOINT_DAILY_FINANCE, params={"from": start_date, "to": end_date}) or []

    def get_daily_advertising(self, start_date: str, end_date: str) -> list:
        return self.get_json(ENDPOINT_DAILY_ADVERTISING, params={"from": start_date, "to": end_date}) or []

    def get_sync_status(self) -> Dict[str, Any]:
        return self.get_json(ENDPOINT_SYNC_STATUS) or {}


# ==================== SINGLETON ACCESS ====================

_api_client = None
_api_lock = threading.Lock()


def get_api_client() -> AnalyticsApiClient:
    """Get AnalyticsApiClient singleton instance (thread-safe)"""
    global _api_client

    if _api_client is None:
        with _api_lock:
            if _api_client is None:
                api_config = config.get_api_config()
                _api_client = AnalyticsApiClient(
                    base_url=api_config['base_url'],
                    token=api_config.get('token'),
                    timeout_seconds=api_config.get('timeout_seconds', 15.0),
                )
                logger.info(f"✅ Analytics API client initialized: {_api_client.base_url}")

    return _api_client


def reset_api_client():
    """Reset AnalyticsApiClient singleton (for reconnection)"""
    global _api_client

    with _api_lock:
        _api_client = None

    logger.info("🔄 Analytics API client reset")
