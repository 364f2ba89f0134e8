"""
TASKCAL Core API - Calendar Models

Value types used by the calendar core. All of them are immutable; state
changes produce new instances.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable, Iterator

from taskcal.calendar.enums import FilterDimension, TimeFormat
from taskcal.calendar.errors import ValidationError
from taskcal.tasks.enums import TaskPriority, TaskStatus


Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current local wall-clock time, timezone-aware."""
    return datetime.now(timezone.utc).astimezone()


def align_tz(value: datetime, reference: datetime) -> datetime:
    """
    Make `value` comparable with `reference`.

    A naive timestamp compared with an aware one is taken to be in the
    reference's zone; two aware timestamps compare as-is.
    """
    if value.tzinfo is None and reference.tzinfo is not None:
        return value.replace(tzinfo=reference.tzinfo)
    if value.tzinfo is not None and reference.tzinfo is None:
        return value.replace(tzinfo=None)
    return value


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start, end] span of timestamps."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise ValidationError("DateRange bounds must be datetimes")
        if align_tz(self.start, self.end) > self.end:
            raise ValidationError(f"DateRange start {self.start} is after end {self.end}")

    def contains(self, moment: datetime) -> bool:
        return self.start <= align_tz(moment, self.start) and align_tz(moment, self.end) <= self.end

    def days(self) -> Iterator[date]:
        """Calendar dates covered by the range, in order."""
        current = self.start.date()
        last = self.end.date()
        while current <= last:
            yield current
            current += timedelta(days=1)


_PRIORITY_VALUES = {p.value for p in TaskPriority}
_STATUS_VALUES = {s.value for s in TaskStatus}


def _normalize_values(dimension: FilterDimension, values: Iterable) -> frozenset:
    # Accept enum members or their string values; store plain strings
    normalized = set()
    for value in values:
        raw = value.value if hasattr(value, "value") else value
        if not isinstance(raw, str):
            raise ValidationError(f"Filter value {value!r} for {dimension.value} must be a string")
        if dimension is FilterDimension.PRIORITY and raw not in _PRIORITY_VALUES:
            raise ValidationError(f"Unknown priority: {raw}")
        if dimension is FilterDimension.STATUS and raw not in _STATUS_VALUES:
            raise ValidationError(f"Unknown status: {raw}")
        normalized.add(raw)
    return frozenset(normalized)


def _dimension(dim) -> FilterDimension:
    try:
        return FilterDimension(dim)
    except ValueError:
        raise ValidationError(f"Unknown filter dimension: {dim!r}") from None


@dataclass(frozen=True)
class CalendarFilterSet:
    """
    Compound task filter.

    An empty dimension means "no filter on that dimension", not "exclude all".
    """

    priority: frozenset = field(default_factory=frozenset)
    status: frozenset = field(default_factory=frozenset)
    tags: frozenset = field(default_factory=frozenset)

    @classmethod
    def build(cls, priority: Iterable = (), status: Iterable = (), tags: Iterable = ()) -> "CalendarFilterSet":
        return cls(
            priority=_normalize_values(FilterDimension.PRIORITY, priority),
            status=_normalize_values(FilterDimension.STATUS, status),
            tags=_normalize_values(FilterDimension.TAGS, tags),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.priority or self.status or self.tags)

    def values_for(self, dim) -> frozenset:
        return getattr(self, _dimension(dim).value)

    def with_dimension(self, dim, values: Iterable) -> "CalendarFilterSet":
        dimension = _dimension(dim)
        if isinstance(values, str):
            values = [values]
        normalized = _normalize_values(dimension, values)
        return CalendarFilterSet(**{**self._as_kwargs(), dimension.value: normalized})

    def toggle(self, dim, value) -> "CalendarFilterSet":
        """Add `value` to a dimension, or remove it if already present."""
        dimension = _dimension(dim)
        raw = _normalize_values(dimension, [value])
        current = self.values_for(dimension)
        return self.with_dimension(dimension, current ^ raw)

    def cleared(self) -> "CalendarFilterSet":
        return CalendarFilterSet()

    def _as_kwargs(self) -> dict:
        return {"priority": self.priority, "status": self.status, "tags": self.tags}


@dataclass(frozen=True)
class CalendarSettings:
    """Per-user calendar preferences consumed by range and navigation math."""

    week_start_day: int = 0
    agenda_lookahead_days: int = 30
    time_format: TimeFormat = TimeFormat.H24

    def __post_init__(self):
        if isinstance(self.week_start_day, bool) or not isinstance(self.week_start_day, int):
            raise ValidationError("week_start_day must be an integer")
        if not 0 <= self.week_start_day <= 6:
            raise ValidationError(f"week_start_day must be 0-6, got {self.week_start_day}")
        if isinstance(self.agenda_lookahead_days, bool) or not isinstance(self.agenda_lookahead_days, int):
            raise ValidationError("agenda_lookahead_days must be an integer")
        if self.agenda_lookahead_days < 1:
            raise ValidationError("agenda_lookahead_days must be at least 1")
        try:
            object.__setattr__(self, "time_format", TimeFormat(self.time_format))
        except ValueError:
            raise ValidationError(f"Unknown time format: {self.time_format!r}") from None

    @classmethod
    def from_config(cls) -> "CalendarSettings":
        from taskcal.config import settings

        return cls(
            week_start_day=settings.WEEK_START_DAY,
            agenda_lookahead_days=settings.AGENDA_LOOKAHEAD_DAYS,
            time_format=settings.TIME_FORMAT,
        )

    def format_time(self, moment: datetime) -> str:
        if self.time_format is TimeFormat.H12:
            return moment.strftime("%I:%M %p").lstrip("0")
        return moment.strftime("%H:%M")
