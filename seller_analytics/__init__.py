# seller_analytics/__init__.py
"""
Seller Analytics Package

This package contains the pieces shared by the dashboard pages:
- config: Configuration management (local + Streamlit Cloud)
- api_client: Analytics API access with retry
- period_comparison: Period comparison & derived-metrics engine

Usage:
    from seller_analytics.config import config
    from seller_analytics.api_client import get_api_client
    from seller_analytics.period_comparison import resolve_comparison_periods

    # Or import commonly used items directly
    from seller_analytics import config, get_api_client
"""

# Configuration
from .config import (
    config,
    Config,
    IS_RUNNING_ON_CLOUD,
    API_CONFIG,
    APP_CONFIG,
)

# Analytics API
from .api_client import (
    AnalyticsApiClient,
    AnalyticsApiError,
    get_api_client,
    reset_api_client,
)

__all__ = [
    # Config
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'API_CONFIG',
    'APP_CONFIG',

    # API
    'AnalyticsApiClient',
    'AnalyticsApiError',
    'get_api_client',
    'reset_api_client',
]

__version__ = '1.0.0'
