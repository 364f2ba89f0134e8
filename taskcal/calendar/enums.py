"""
TASKCAL Core API - Calendar Enums
"""

from enum import Enum


class ViewMode(str, Enum):
    """Calendar view; decides both the visible range and the paging step."""
    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    AGENDA = "agenda"


class Direction(str, Enum):
    PREVIOUS = "previous"
    NEXT = "next"


class TimeFormat(str, Enum):
    H12 = "12h"
    H24 = "24h"


class FilterDimension(str, Enum):
    PRIORITY = "priority"
    STATUS = "status"
    TAGS = "tags"
