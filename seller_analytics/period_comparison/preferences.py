# seller_analytics/period_comparison/preferences.py
"""
Preference Store Bridge

VERSION: 1.0.0
- Small JSON values (view mode, legend, comparison mode, sections, period type)
- Pluggable stores: in-memory, JSON file on disk, Streamlit session state
- Reads never raise: missing/corrupt/invalid values fall back to defaults
- Writes never raise: failures are logged and dropped
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Set

import streamlit as st

from ..config import config
from .constants import (
    PREF_KEY_VIEW_MODE,
    PREF_KEY_LEGEND,
    PREF_KEY_COMPARISON_MODE,
    PREF_KEY_SECTIONS,
    PREF_KEY_PERIOD_TYPE,
    VIEW_MODES,
    DEFAULT_VIEW_MODE,
    COMPARISON_MODES,
    DEFAULT_COMPARISON_MODE,
    PERIOD_TYPES,
    CACHE_KEY_PREFERENCES,
)

logger = logging.getLogger(__name__)


# =============================================================================
# STORES
# =============================================================================

class PreferenceStore(Protocol):
    """String key/value store; values are JSON documents."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class InMemoryPreferenceStore:
    def __init__(self, initial: Dict[str, str] = None):
        self._items = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class SessionStatePreferenceStore:
    """Preferences kept in one dict inside Streamlit session state."""

    def __init__(self, state=None, namespace: str = CACHE_KEY_PREFERENCES):
        self._state = state if state is not None else st.session_state
        self._namespace = namespace

    def _bucket(self) -> Dict[str, str]:
        if self._namespace not in self._state:
            self._state[self._namespace] = {}
        return self._state[self._namespace]

    def get_item(self, key: str) -> Optional[str]:
        return self._bucket().get(key)

    def set_item(self, key: str, value: str) -> None:
        self._bucket()[key] = value


class JsonFilePreferenceStore:
    """
    Preferences persisted as one JSON object on disk.

    The whole document is rewritten on each set; a corrupt document is
    replaced on the next write.
    """

    def __init__(self, path):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _read_document(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with self.path.open('r', encoding='utf-8') as f:
            document = json.load(f)
        if not isinstance(document, dict):
            raise ValueError(f"Preference file is not a JSON object: {self.path}")
        return document

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_document().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            try:
                document = self._read_document()
            except ValueError as e:
                logger.warning(f"⚠️ Replacing unreadable preference file {self.path}: {e}")
                document = {}
            document[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
            with tmp_path.open('w', encoding='utf-8') as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self.path)


# =============================================================================
# BRIDGE
# =============================================================================

class PreferenceBridge:
    """
    Typed, non-raising access to a PreferenceStore.

    Usage:
        prefs = create_preference_bridge()
        mode = prefs.get_view_mode()
        prefs.set_view_mode('table')
    """

    def __init__(self, store: PreferenceStore):
        self.store = store

    def get(self, key: str, fallback: Any, validator: Optional[Callable[[Any], bool]] = None) -> Any:
        try:
            raw = self.store.get_item(key)
        except Exception as e:
            logger.warning(f"⚠️ Preference store read failed for {key}: {e}")
            return fallback

        if raw is None:
            return fallback

        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.debug(f"Unparsable preference {key}={raw!r}: {e}")
            return fallback

        if validator is not None:
            try:
                valid = validator(value)
            except Exception as e:
                logger.debug(f"Preference validator raised for {key}: {e}")
                valid = False
            if not valid:
                logger.debug(f"Invalid preference {key}={value!r}, using fallback")
                return fallback

        return value

    def set(self, key: str, value: Any) -> bool:
        """Returns True when the value was stored."""
        try:
            self.store.set_item(key, json.dumps(value, ensure_ascii=False))
            return True
        except Exception as e:
            logger.warning(f"⚠️ Preference store write failed for {key}: {e}")
            return False

    # ==================== VIEW MODE ====================

    def get_view_mode(self) -> str:
        return self.get(PREF_KEY_VIEW_MODE, DEFAULT_VIEW_MODE, lambda v: v in VIEW_MODES)

    def set_view_mode(self, mode: str) -> bool:
        if mode not in VIEW_MODES:
            logger.warning(f"Ignoring unknown view mode: {mode}")
            return False
        return self.set(PREF_KEY_VIEW_MODE, mode)

    # ==================== CHART LEGEND ====================

    def get_legend(self, default: Set[str]) -> Set[str]:
        value = self.get(
            PREF_KEY_LEGEND,
            None,
            lambda v: isinstance(v, list) and all(isinstance(item, str) for item in v),
        )
        return set(default) if value is None else set(value)

    def set_legend(self, visible: Set[str]) -> bool:
        return self.set(PREF_KEY_LEGEND, sorted(visible))

    # ==================== COMPARISON MODE ====================

    def get_comparison_mode(self) -> str:
        return self.get(PREF_KEY_COMPARISON_MODE, DEFAULT_COMPARISON_MODE, lambda v: v in COMPARISON_MODES)

    def set_comparison_mode(self, mode: str) -> bool:
        if mode not in COMPARISON_MODES:
            logger.warning(f"Ignoring unknown comparison mode: {mode}")
            return False
        return self.set(PREF_KEY_COMPARISON_MODE, mode)

    # ==================== SECTIONS ====================

    def get_sections(self) -> Dict[str, bool]:
        """Collapse state per section id (True = collapsed)."""
        return self.get(
            PREF_KEY_SECTIONS,
            {},
            lambda v: isinstance(v, dict) and all(isinstance(item, bool) for item in v.values()),
        )

    def is_section_collapsed(self, section: str, default: bool = False) -> bool:
        return self.get_sections().get(section, default)

    def set_section_collapsed(self, section: str, collapsed: bool) -> bool:
        sections = dict(self.get_sections())
        sections[section] = bool(collapsed)
        return self.set(PREF_KEY_SECTIONS, sections)

    # ==================== PERIOD TYPE ====================

    def get_period_type(self) -> Optional[str]:
        """Stored period type, or None when nothing valid is stored."""
        return self.get(PREF_KEY_PERIOD_TYPE, None, lambda v: v in PERIOD_TYPES)

    def set_period_type(self, period_type: str) -> bool:
        if period_type not in PERIOD_TYPES:
            logger.warning(f"Ignoring unknown period type: {period_type}")
            return False
        return self.set(PREF_KEY_PERIOD_TYPE, period_type)


def create_preference_store(backend: str = None, path: str = None) -> PreferenceStore:
    """Build the store configured in PREFERENCES_BACKEND / [PREFERENCES]."""
    pref_config = config.get_preference_config()
    backend = backend or pref_config['backend']

    if backend == 'file':
        return JsonFilePreferenceStore(path or pref_config['path'])
    if backend == 'memory':
        return InMemoryPreferenceStore()
    if backend != 'session':
        logger.warning(f"Unknown preference backend '{backend}', using session state")
    return SessionStatePreferenceStore()


def create_preference_bridge(backend: str = None, path: str = None) -> PreferenceBridge:
    return PreferenceBridge(create_preference_store(backend, path))

