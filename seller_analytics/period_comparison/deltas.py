# seller_analytics/period_comparison/deltas.py
"""
Delta Calculator for period comparison

VERSION: 1.0.0
- Percent change relative to |previous| so negative baselines keep a
  meaningful direction (loss -100 -> -90 is an improvement)
- previous == 0 has no percent comparison (never 0% or infinity)
- Inverted (expense) metrics flip positive/negative, never neutral
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pandas as pd

from .constants import NEUTRAL_DELTA_THRESHOLD_PCT, DELTA_DISPLAY_CAP_PCT, EMPTY_VALUE

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    POSITIVE = 'positive'
    NEGATIVE = 'negative'
    NEUTRAL = 'neutral'

    def flipped(self) -> 'Direction':
        if self is Direction.POSITIVE:
            return Direction.NEGATIVE
        if self is Direction.NEGATIVE:
            return Direction.POSITIVE
        return self


@dataclass(frozen=True)
class DeltaValue:
    absolute: float
    percent: Optional[float]
    direction: Direction

    @property
    def has_comparison(self) -> bool:
        return self.percent is not None


def _is_missing(value) -> bool:
    return value is None or bool(pd.isna(value))


def calculate_delta(
    current: Optional[float],
    previous: Optional[float],
    invert: bool = False,
    neutral_threshold: float = NEUTRAL_DELTA_THRESHOLD_PCT,
) -> Optional[DeltaValue]:
    """
    Compare current against previous.

    Returns:
        DeltaValue, or None when either side is missing
    """
    if _is_missing(current) or _is_missing(previous):
        return None

    absolute = current - previous

    if previous == 0:
        return DeltaValue(absolute=absolute, percent=None, direction=Direction.NEUTRAL)

    percent = (current - previous) / abs(previous) * 100

    if abs(percent) < neutral_threshold:
        direction = Direction.NEUTRAL
    elif percent > 0:
        direction = Direction.POSITIVE
    else:
        direction = Direction.NEGATIVE

    if invert:
        direction = direction.flipped()

    return DeltaValue(absolute=absolute, percent=percent, direction=direction)


def format_delta_percent(percent: Optional[float], cap: float = DELTA_DISPLAY_CAP_PCT) -> str:
    """
    "+17.8%", "-5.2%", "+0.0%"; beyond the cap "999+%" / "-999+%".
    Only the text is capped, the value is left alone.
    """
    if _is_missing(percent):
        return EMPTY_VALUE

    if percent > cap:
        return f"{cap:.0f}+%"
    if percent < -cap:
        return f"-{cap:.0f}+%"

    sign = '+' if percent >= 0 else ''
    return f"{sign}{percent:.1f}%"


def format_delta_absolute(absolute: Optional[float], unit: str = '') -> str:
    """Signed, thousands-grouped: "+22,670 ₽"."""
    if _is_missing(absolute):
        return EMPTY_VALUE

    sign = '+' if absolute >= 0 else '-'
    text = f"{sign}{abs(absolute):,.0f}"
    return f"{text} {unit}" if unit else text
