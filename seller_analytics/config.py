# seller_analytics/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Engine thresholds (coverage gate, neutral delta, display cap) as settings
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, Optional
from dataclasses import dataclass

# Initialize logger
logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() == "true"


@dataclass
class ApiConfig:
    """Analytics API configuration container"""
    base_url: str = "http://localhost:3000"
    token: Optional[str] = None
    timeout_seconds: float = 15.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'base_url': self.base_url,
            'token': self.token,
            'timeout_seconds': self.timeout_seconds,
        }

    def is_configured(self) -> bool:
        return bool(self.base_url and self.token)


@dataclass
class PreferenceConfig:
    """Preference store configuration container"""
    backend: str = "file"
    path: str = str(Path.home() / ".seller_analytics" / "preferences.json")

    def to_dict(self) -> Dict[str, Any]:
        return {'backend': self.backend, 'path': self.path}


class Config:
    """
    Centralized configuration management

    Usage:
        from seller_analytics.config import config

        # Get API config
        api_config = config.get_api_config()

        # Get app settings
        interval = config.get_app_setting("SYNC_POLL_INTERVAL_SECONDS", 60)

        # Check feature flags
        if config.is_feature_enabled("DEBUG_MODE"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        api_secrets = st.secrets.get("API", {})
        self._api_config = ApiConfig(
            base_url=api_secrets.get("BASE_URL", ApiConfig.base_url),
            token=api_secrets.get("TOKEN"),
            timeout_seconds=float(api_secrets.get("TIMEOUT_SECONDS", 15)),
        )

        pref_secrets = st.secrets.get("PREFERENCES", {})
        self._preference_config = PreferenceConfig(
            backend=pref_secrets.get("BACKEND", "session"),
            path=pref_secrets.get("PATH", PreferenceConfig.path),
        )

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._api_config = ApiConfig(
            base_url=os.getenv("ANALYTICS_API_URL", ApiConfig.base_url),
            token=os.getenv("ANALYTICS_API_TOKEN"),
            timeout_seconds=float(os.getenv("ANALYTICS_API_TIMEOUT", "15")),
        )

        self._preference_config = PreferenceConfig(
            backend=os.getenv("PREFERENCES_BACKEND", "file"),
            path=os.getenv("PREFERENCES_PATH", PreferenceConfig.path),
        )

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Polling
            "SYNC_POLL_INTERVAL_SECONDS": int(os.getenv("SYNC_POLL_INTERVAL_SECONDS", "60")),

            # Business logic
            "COGS_COVERAGE_THRESHOLD_PCT": float(os.getenv("COGS_COVERAGE_THRESHOLD_PCT", "80")),
            "NEUTRAL_DELTA_THRESHOLD_PCT": float(os.getenv("NEUTRAL_DELTA_THRESHOLD_PCT", "0.1")),
            "DELTA_DISPLAY_CAP_PCT": float(os.getenv("DELTA_DISPLAY_CAP_PCT", "999")),

            # Cache
            "CACHE_TTL_SECONDS": int(os.getenv("CACHE_TTL_SECONDS", "300")),

            # Localization
            "TIMEZONE": os.getenv("TIMEZONE", "Europe/Moscow"),
            "LOCALE": os.getenv("LOCALE", "ru"),
            "CURRENCY_SYMBOL": os.getenv("CURRENCY_SYMBOL", "₽"),

            # Feature flags
            "ENABLE_SYNC_STATUS": _as_bool(os.getenv("ENABLE_SYNC_STATUS"), True),
            "ENABLE_DEBUG_MODE": _as_bool(os.getenv("ENABLE_DEBUG_MODE"), False),
        }

    def _log_config_status(self):
        """Log configuration status"""
        logger.info(f"✅ Analytics API: {self._api_config.base_url}")
        logger.info(f"✅ API token: {'Configured' if self._api_config.is_configured() else 'Missing'}")
        logger.info(f"✅ Preferences: {self._preference_config.backend}")

    # ==================== PUBLIC GETTERS ====================

    def get_api_config(self) -> Dict[str, Any]:
        """Get analytics API configuration as dictionary"""
        return self._api_config.to_dict()

    def get_preference_config(self) -> Dict[str, Any]:
        """Get preference store configuration as dictionary"""
        return self._preference_config.to_dict()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    # ==================== PROPERTIES ====================

    @property
    def api_config(self) -> Dict[str, Any]:
        return self.get_api_config()

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud
API_CONFIG = config.api_config
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'ApiConfig',
    'PreferenceConfig',
    'IS_RUNNING_ON_CLOUD',
    'API_CONFIG',
    'APP_CONFIG',
]
