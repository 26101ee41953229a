# utils/goal_pacing/workdays.py
"""
Calendar / Workday Resolution

Handles the date side of goal pacing:
- Goal periods (21st of one month to the 20th of the next)
- "Today" in the configured timezone
- Absence records with a discriminated kind
- Working days, days elapsed and days remaining for a subject
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

PERIOD_START_DAY = 21
PERIOD_END_DAY = 20

SUNDAY = 6  # date.weekday()


# =============================================================================
# TODAY
# =============================================================================

def today_in_timezone(tz_name: str) -> date:
    """Calendar date right now in the given IANA timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def date_range(start: date, end: date) -> List[date]:
    """Every date from start to end, inclusive (empty when end < start)."""
    if end < start:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


# =============================================================================
# PERIODS
# =============================================================================

class PeriodStatus(str, Enum):
    CURRENT = 'current'
    PAST = 'past'
    FUTURE = 'future'


@dataclass(frozen=True)
class Period:
    """Goal period, both bounds inclusive."""

    start_date: date
    end_date: date
    id: Optional[int] = None
    label: str = ''
    description: Optional[str] = None

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise ValueError(f"Period ends ({self.end_date}) before it starts ({self.start_date})")
        if not self.label:
            object.__setattr__(self, 'label', period_label(self.start_date, self.end_date))

    def status(self, today: date) -> PeriodStatus:
        if today < self.start_date:
            return PeriodStatus.FUTURE
        if today > self.end_date:
            return PeriodStatus.PAST
        return PeriodStatus.CURRENT

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def days(self) -> List[date]:
        return date_range(self.start_date, self.end_date)


def period_label(start: date, end: date) -> str:
    return f"{start.month:02d}/{start.year} - {end.month:02d}/{end.year}"


def current_period(today: date) -> Period:
    """
    The 21st-to-20th period containing today.

    From the 21st onwards the period started this month; up to the 20th it
    started the previous month.
    """
    if today.day >= PERIOD_START_DAY:
        start = date(today.year, today.month, PERIOD_START_DAY)
    elif today.month == 1:
        start = date(today.year - 1, 12, PERIOD_START_DAY)
    else:
        start = date(today.year, today.month - 1, PERIOD_START_DAY)

    if start.month == 12:
        end = date(start.year + 1, 1, PERIOD_END_DAY)
    else:
        end = date(start.year, start.month + 1, PERIOD_END_DAY)

    return Period(start_date=start, end_date=end)


# =============================================================================
# ABSENCES
# =============================================================================

class AbsenceKind(str, Enum):
    FOLGA = 'folga'
    ATESTADO = 'atestado'
    FERIADO = 'feriado'
    FALTA = 'falta'
    BANCO = 'banco'
    FERIAS = 'ferias'


_LEGACY_KIND_TAG = re.compile(r"\[Tipo:\s*(\w+)\]")


def parse_legacy_absence_kind(notes: Optional[str]) -> AbsenceKind:
    """
    Recover the kind from a legacy "[Tipo: x]" tag in the notes field.

    Migration shim for rows written before tipo_ausencia existed.
    Untagged or unknown tags read as a day off.
    """
    if not notes:
        return AbsenceKind.FOLGA
    match = _LEGACY_KIND_TAG.search(notes)
    if not match:
        return AbsenceKind.FOLGA
    try:
        return AbsenceKind(match.group(1).lower())
    except ValueError:
        logger.warning(f"Unknown legacy absence tag: {match.group(1)}")
        return AbsenceKind.FOLGA


def strip_legacy_absence_tag(notes: Optional[str]) -> str:
    return _LEGACY_KIND_TAG.sub('', notes or '').strip()


@dataclass(frozen=True)
class AbsenceRecord:
    subject_id: int
    day: date
    kind: AbsenceKind = AbsenceKind.FOLGA
    notes: str = ''
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: dict) -> "AbsenceRecord":
        """Build from a folgas row, falling back to the legacy tag when tipo_ausencia is empty."""
        raw_kind = row.get('tipo_ausencia')
        if raw_kind:
            try:
                kind = AbsenceKind(str(raw_kind).lower())
            except ValueError:
                logger.warning(f"Unknown absence kind '{raw_kind}', reading as folga")
                kind = AbsenceKind.FOLGA
        else:
            kind = parse_legacy_absence_kind(row.get('observacao'))

        day = row['data_folga']
        if isinstance(day, datetime):
            day = day.date()
        elif isinstance(day, str):
            day = date.fromisoformat(day[:10])

        return cls(
            subject_id=int(row['usuario_id']),
            day=day,
            kind=kind,
            notes=strip_legacy_absence_tag(row.get('observacao')),
            id=row.get('folga_id'),
        )


# =============================================================================
# WORKDAY RESOLUTION
# =============================================================================

class AbsentTodayPolicy(str, Enum):
    """Whether an absence recorded for today removes today from the working days."""
    EXCLUDE = 'exclude'
    INCLUDE = 'include'


@dataclass(frozen=True)
class WorkdayResolution:
    all_days: Tuple[date, ...]
    working_days: Tuple[date, ...]
    days_elapsed: int
    days_remaining: int
    today: date
    sundays_removed: int = 0

    @property
    def total_working_days(self) -> int:
        return len(self.working_days)

    @property
    def time_elapsed_percent(self) -> float:
        if not self.working_days:
            return 0.0
        return self.days_elapsed / len(self.working_days) * 100

    @property
    def is_closed(self) -> bool:
        return self.days_remaining == 0


def resolve_workdays(
    period: Period,
    absence_dates: Iterable[date],
    today: date,
    absent_today_policy: AbsentTodayPolicy = AbsentTodayPolicy.EXCLUDE,
    closed_on_sundays: bool = False
) -> WorkdayResolution:
    """
    Resolve working days for a period and a set of absences.

    Args:
        period: Goal period (inclusive bounds)
        absence_dates: Dates marked as absences for the subject
        today: Local calendar date
        absent_today_policy: Whether an absence on today removes today
        closed_on_sundays: Also drop Sundays from the remaining days
            (store-level pacing for Sunday-closed regions)

    Returns:
        WorkdayResolution
    """
    absences = set(absence_dates)
    if AbsentTodayPolicy(absent_today_policy) == AbsentTodayPolicy.INCLUDE:
        absences.discard(today)

    all_days = tuple(period.days())
    working_days = tuple(d for d in all_days if d not in absences)

    days_elapsed = sum(1 for d in working_days if d < today)
    remaining = [d for d in working_days if d >= today]

    sundays_removed = 0
    if closed_on_sundays:
        sundays_removed = sum(1 for d in remaining if d.weekday() == SUNDAY)

    return WorkdayResolution(
        all_days=all_days,
        working_days=working_days,
        days_elapsed=days_elapsed,
        days_remaining=len(remaining) - sundays_removed,
        today=today,
        sundays_removed=sundays_removed,
    )
