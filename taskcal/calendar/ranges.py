"""
TASKCAL Core API - Calendar Ranges and Navigation

Pure date arithmetic: the visible range of a view, paging a view forward or
backward, and the "today" anchor. Nothing here reads the system clock; the
caller passes a clock where "now" matters.
"""

import calendar
from datetime import date, datetime, time, timedelta

from taskcal.calendar.enums import Direction, ViewMode
from taskcal.calendar.errors import ValidationError
from taskcal.calendar.models import Clock, DateRange


DEFAULT_LOOKAHEAD_DAYS = 30

# 23:59:59.999, the millisecond-precision end of day clients expect
END_OF_DAY = time(23, 59, 59, 999000)


def as_datetime(value) -> datetime:
    """Accept a datetime, or a date meaning its midnight. Anything else is rejected."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise ValidationError(f"Expected a date or datetime, got {value!r}")


def as_view(value) -> ViewMode:
    try:
        return ViewMode(value)
    except ValueError:
        raise ValidationError(f"Unknown view mode: {value!r}") from None


def as_direction(value) -> Direction:
    try:
        return Direction(value)
    except ValueError:
        raise ValidationError(f"Unknown direction: {value!r}") from None


def _check_week_start(week_start_day: int) -> None:
    if isinstance(week_start_day, bool) or not isinstance(week_start_day, int) or not 0 <= week_start_day <= 6:
        raise ValidationError(f"week_start_day must be an integer 0-6, got {week_start_day!r}")


def _check_lookahead(lookahead_days: int) -> None:
    if isinstance(lookahead_days, bool) or not isinstance(lookahead_days, int) or lookahead_days < 1:
        raise ValidationError(f"lookahead_days must be a positive integer, got {lookahead_days!r}")


def date_key(value) -> date:
    """Calendar date of a timestamp, time of day stripped."""
    return as_datetime(value).date()


def start_of_day(value) -> datetime:
    return as_datetime(value).replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(value) -> datetime:
    return as_datetime(value).replace(
        hour=END_OF_DAY.hour,
        minute=END_OF_DAY.minute,
        second=END_OF_DAY.second,
        microsecond=END_OF_DAY.microsecond,
    )


def start_of_week(value, week_start_day: int = 0) -> datetime:
    """
    Midnight of the week_start_day-aligned day on or before `value`.

    week_start_day follows the 0 = Sunday convention; Python's weekday()
    counts from Monday, hence the shift.
    """
    _check_week_start(week_start_day)
    day = start_of_day(value)
    sunday_based = (day.weekday() + 1) % 7
    return day - timedelta(days=(sunday_based - week_start_day) % 7)


def add_months(value, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day (Jan 31 + 1 -> Feb 28/29)."""
    moment = as_datetime(value)
    month_index = moment.year * 12 + (moment.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def compute_range(
    anchor,
    view,
    week_start_day: int = 0,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> DateRange:
    """
    Visible range for a view anchored at `anchor`.

    - month: first day 00:00 to last day 23:59:59.999 of the anchor's month
    - week: week_start_day-aligned start plus six days, end of day
    - day: the anchor's date
    - agenda: lookahead_days days starting at the anchor's date
    """
    anchor = as_datetime(anchor)
    view = as_view(view)
    _check_week_start(week_start_day)
    _check_lookahead(lookahead_days)

    if view is ViewMode.MONTH:
        start = start_of_day(anchor.replace(day=1))
        last_day = calendar.monthrange(anchor.year, anchor.month)[1]
        end = end_of_day(anchor.replace(day=last_day))
    elif view is ViewMode.WEEK:
        start = start_of_week(anchor, week_start_day)
        end = end_of_day(start + timedelta(days=6))
    elif view is ViewMode.DAY:
        start = start_of_day(anchor)
        end = end_of_day(anchor)
    else:
        start = start_of_day(anchor)
        end = end_of_day(start + timedelta(days=lookahead_days - 1))

    return DateRange(start=start, end=end)


def month_grid_range(anchor, week_start_day: int = 0) -> DateRange:
    """
    Full-week span a month grid renders: the month range padded with the
    leading and trailing days of the adjacent months.
    """
    month = compute_range(anchor, ViewMode.MONTH, week_start_day)
    start = start_of_week(month.start, week_start_day)
    last_week_start = start_of_week(month.end, week_start_day)
    end = end_of_day(last_week_start + timedelta(days=6))
    return DateRange(start=start, end=end)


def step(
    anchor,
    view,
    direction,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
) -> datetime:
    """Anchor of the previous or next period for a view."""
    anchor = as_datetime(anchor)
    view = as_view(view)
    sign = 1 if as_direction(direction) is Direction.NEXT else -1

    if view is ViewMode.MONTH:
        return add_months(anchor, sign)
    if view is ViewMode.WEEK:
        return anchor + timedelta(days=7 * sign)
    if view is ViewMode.DAY:
        return anchor + timedelta(days=sign)
    # Agenda pages by whole windows so consecutive pages neither overlap nor gap
    _check_lookahead(lookahead_days)
    return anchor + timedelta(days=lookahead_days * sign)


def today(clock: Clock) -> datetime:
    """Midnight of the clock's current date."""
    return start_of_day(clock())
