# seller_analytics/period_comparison/periods.py
"""
Period keys, ISO week arithmetic and comparison period resolution.

VERSION: 1.0.0

A PeriodKey is either an ISO week ("2026-W05") or a calendar month
("2026-01"). All arithmetic goes through datetime.date so year boundaries
and 53-week ISO years are handled by the calendar, not by hand.

A week belongs to the month that contains its Thursday (ISO 8601 rule),
which is also how the backend attributes weekly reports to months.
"""

import calendar
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from .constants import (
    PERIOD_TYPE_WEEK,
    PERIOD_TYPE_MONTH,
    DEFAULT_TIMEZONE,
    LAST_COMPLETED_WEEK_CUTOFF_HOUR,
    MONTH_NAMES,
    MONTH_ABBR,
    WEEK_LABEL,
)

logger = logging.getLogger(__name__)

_WEEK_PATTERN = re.compile(r'^(\d{4})-W(\d{2})$')
_MONTH_PATTERN = re.compile(r'^(\d{4})-(\d{2})$')


# =============================================================================
# ISO WEEK HELPERS
# =============================================================================

def iso_weeks_in_year(year: int) -> int:
    """Number of ISO weeks in a year (52 or 53). Dec 28 is always in the last week."""
    return date(year, 12, 28).isocalendar()[1]


def date_to_iso_week(value: Union[date, str]) -> 'PeriodKey':
    """Convert a date (or ISO date string) to the ISO week containing it."""
    if isinstance(value, str):
        value = date.fromisoformat(value)
    iso_year, iso_week, _ = value.isocalendar()
    return PeriodKey.week(iso_year, iso_week)


# =============================================================================
# PERIOD KEY
# =============================================================================

@dataclass(frozen=True)
class PeriodKey:
    """
    Immutable period identifier.

    kind   -- 'week' or 'month'
    year   -- ISO year for weeks, calendar year for months
    number -- ISO week number (1..52/53) or month (1..12)
    """
    kind: str
    year: int
    number: int

    def __post_init__(self):
        if self.kind == PERIOD_TYPE_WEEK:
            if not 1 <= self.number <= iso_weeks_in_year(self.year):
                raise ValueError(f"Invalid ISO week {self.number} for year {self.year}")
        elif self.kind == PERIOD_TYPE_MONTH:
            if not 1 <= self.number <= 12:
                raise ValueError(f"Invalid month {self.number}")
        else:
            raise ValueError(f"Unknown period kind: {self.kind!r}")

    @classmethod
    def week(cls, year: int, week_number: int) -> 'PeriodKey':
        return cls(PERIOD_TYPE_WEEK, year, week_number)

    @classmethod
    def month(cls, year: int, month: int) -> 'PeriodKey':
        return cls(PERIOD_TYPE_MONTH, year, month)

    @classmethod
    def parse(cls, value: str, kind: Optional[str] = None) -> 'PeriodKey':
        """
        Parse the canonical string form.

        Args:
            value: "YYYY-Www" or "YYYY-MM"
            kind: optionally restrict to 'week' or 'month'

        Raises:
            ValueError: on any malformed or out-of-range value
        """
        if not isinstance(value, str):
            raise ValueError(f"Period must be a string, got {type(value).__name__}")

        if kind in (None, PERIOD_TYPE_WEEK):
            match = _WEEK_PATTERN.match(value)
            if match:
                return cls.week(int(match.group(1)), int(match.group(2)))

        if kind in (None, PERIOD_TYPE_MONTH):
            match = _MONTH_PATTERN.match(value)
            if match:
                return cls.month(int(match.group(1)), int(match.group(2)))

        raise ValueError(f"Invalid period format: {value!r}")

    @property
    def is_week(self) -> bool:
        return self.kind == PERIOD_TYPE_WEEK

    @property
    def is_month(self) -> bool:
        return self.kind == PERIOD_TYPE_MONTH

    @property
    def week_number(self) -> int:
        if not self.is_week:
            raise AttributeError("month period has no week_number")
        return self.number

    @property
    def month_number(self) -> int:
        if not self.is_month:
            raise AttributeError("week period has no month_number")
        return self.number

    @property
    def start_date(self) -> date:
        return period_date_range(self)[0]

    @property
    def end_date(self) -> date:
        return period_date_range(self)[1]

    def __str__(self) -> str:
        if self.is_week:
            return f"{self.year}-W{self.number:02d}"
        return f"{self.year}-{self.number:02d}"


def is_valid_week(value: str) -> bool:
    try:
        PeriodKey.parse(value, kind=PERIOD_TYPE_WEEK)
    except ValueError:
        return False
    return True


def is_valid_month(value: str) -> bool:
    try:
        PeriodKey.parse(value, kind=PERIOD_TYPE_MONTH)
    except ValueError:
        return False
    return True


# =============================================================================
# DATE RANGES
# =============================================================================

def week_start_date(week: PeriodKey) -> date:
    """Monday of the ISO week."""
    return date.fromisocalendar(week.year, week.week_number, 1)


def week_end_date(week: PeriodKey) -> date:
    """Sunday of the ISO week."""
    return date.fromisocalendar(week.year, week.week_number, 7)


def month_start_date(month: PeriodKey) -> date:
    return date(month.year, month.month_number, 1)


def month_end_date(month: PeriodKey) -> date:
    last_day = calendar.monthrange(month.year, month.month_number)[1]
    return date(month.year, month.month_number, last_day)


def period_date_range(period: PeriodKey) -> Tuple[date, date]:
    """Inclusive (start, end) dates of a period."""
    if period.is_week:
        return week_start_date(period), week_end_date(period)
    return month_start_date(period), month_end_date(period)


# =============================================================================
# PERIOD ARITHMETIC
# =============================================================================

def month_from_week(week: PeriodKey) -> PeriodKey:
    """Month containing the week's Thursday."""
    thursday = date.fromisocalendar(week.year, week.week_number, 4)
    return PeriodKey.month(thursday.year, thursday.month)


def weeks_in_month(month: PeriodKey) -> List[PeriodKey]:
    """ISO weeks attributed to the month (Thursday rule), in order."""
    start = month_start_date(month)
    end = month_end_date(month)

    # First Thursday on or after the 1st
    day = start + timedelta(days=(3 - start.weekday()) % 7)
    weeks = []
    while day <= end:
        weeks.append(date_to_iso_week(day))
        day += timedelta(days=7)
    return weeks


def previous_week(week: PeriodKey) -> PeriodKey:
    return date_to_iso_week(week_start_date(week) - timedelta(days=7))


def previous_month(month: PeriodKey) -> PeriodKey:
    if month.month_number == 1:
        return PeriodKey.month(month.year - 1, 12)
    return PeriodKey.month(month.year, month.month_number - 1)


def previous_period(period: PeriodKey) -> PeriodKey:
    """Previous period of the same kind."""
    if period.is_week:
        return previous_week(period)
    return previous_month(period)


def week_range(num_weeks: int, start_week: Optional[PeriodKey] = None) -> List[PeriodKey]:
    """
    N consecutive weeks going back from start_week (inclusive).

    week_range(3, 2026-W10) -> [2026-W10, 2026-W09, 2026-W08]
    """
    if num_weeks <= 0:
        return []
    current = start_week or date_to_iso_week(local_now().date())
    weeks = [current]
    for _ in range(num_weeks - 1):
        current = previous_week(current)
        weeks.append(current)
    return weeks


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Naive wall clock in the marketplace timezone (server timezone is irrelevant)."""
    return datetime.now(ZoneInfo(tz_name or DEFAULT_TIMEZONE)).replace(tzinfo=None)


def last_completed_week(now: Optional[datetime] = None) -> PeriodKey:
    """
    Last week whose weekly report is expected to be ready.

    - Monday, or Tuesday before 12:00: two weeks back (report not formed yet)
    - Tuesday after 12:00 through Sunday: previous week
    """
    now = now or local_now()
    weekday = now.weekday()  # Monday = 0

    if weekday == 0 or (weekday == 1 and now.hour < LAST_COMPLETED_WEEK_CUTOFF_HOUR):
        return date_to_iso_week((now - timedelta(days=14)).date())
    return date_to_iso_week((now - timedelta(days=7)).date())


# =============================================================================
# COMPARISON RESOLUTION
# =============================================================================

class ComparisonMode(str, Enum):
    WOW = 'WoW'
    MOM = 'MoM'

    @classmethod
    def from_value(cls, value, default: 'ComparisonMode' = None) -> 'ComparisonMode':
        """Tolerant lookup; unknown values map to default (WoW)."""
        try:
            return cls(value)
        except ValueError:
            return default or cls.WOW


@dataclass(frozen=True)
class ComparisonPeriods:
    mode: ComparisonMode
    current: PeriodKey
    previous: PeriodKey

    @property
    def current_label_key(self) -> str:
        return str(self.current)

    @property
    def previous_label_key(self) -> str:
        return str(self.previous)


def resolve_comparison_periods(current: PeriodKey, mode: ComparisonMode) -> ComparisonPeriods:
    """
    Resolve the pair of periods to fetch for a comparison.

    WoW: previous period of the same kind (a week steps back one ISO week).
    MoM: a week is first projected to its containing month; previous is the
         calendar month before it.
    """
    mode = ComparisonMode(mode)

    if mode is ComparisonMode.MOM:
        base = month_from_week(current) if current.is_week else current
        return ComparisonPeriods(mode, base, previous_month(base))

    return ComparisonPeriods(mode, current, previous_period(current))


# =============================================================================
# LABELS
# =============================================================================

def format_period_label(period: PeriodKey, locale: str = 'ru') -> str:
    """
    Human-readable period label.

    week  -> "Неделя 5 (26 янв — 1 фев 2026)"
    month -> "Январь 2026"
    """
    locale = locale if locale in MONTH_NAMES else 'ru'

    if period.is_month:
        return f"{MONTH_NAMES[locale][period.month_number - 1]} {period.year}"

    start, end = period_date_range(period)
    abbr = MONTH_ABBR[locale]
    start_part = f"{start.day} {abbr[start.month - 1]}"
    if start.year != end.year:
        start_part += f" {start.year}"
    end_part = f"{end.day} {abbr[end.month - 1]} {end.year}"
    return f"{WEEK_LABEL[locale]} {period.week_number} ({start_part} — {end_part})"


def short_period_label(period: PeriodKey, locale: str = 'ru') -> str:
    """Compact label for card captions: "W05" or "Янв"."""
    if period.is_week:
        return f"W{period.week_number:02d}"
    locale = locale if locale in MONTH_ABBR else 'ru'
    return MONTH_ABBR[locale][period.month_number - 1].capitalize()
