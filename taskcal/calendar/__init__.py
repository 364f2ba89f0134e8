"""
TASKCAL Core API - Calendar Module

Range computation, navigation, date binning, filtering, the calendar state
store and reschedule validation, plus the HTTP routes built on them.
"""

from taskcal.calendar.router import router as calendar_router
from taskcal.calendar.session import CalendarSession
from taskcal.calendar.state import CalendarState, CalendarStore, apply, initial_state

__all__ = [
    "calendar_router",
    "CalendarSession",
    "CalendarState",
    "CalendarStore",
    "apply",
    "initial_state",
]
