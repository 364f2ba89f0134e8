"""
TASKCAL Core API - Calendar Errors

ValidationError is raised synchronously for bad arguments and is never
partially applied. ExternalFetchError wraps failures of the task
source/mutation collaborator. StaleDropError means a drag-drop or reschedule
referenced a task that is no longer in the collection.
"""


class CalendarError(Exception):
    """Base class for calendar errors."""


class ValidationError(CalendarError, ValueError):
    """Invalid argument to a calendar operation."""


class ExternalFetchError(CalendarError):
    """The task collaborator failed; store state was left as it was."""

    def __init__(self, message: str, operation: str = "events"):
        super().__init__(message)
        self.message = message
        self.operation = operation


class StaleDropError(CalendarError):
    """The referenced task is not in the current collection."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} is no longer available")
        self.task_id = task_id
