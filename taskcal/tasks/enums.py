"""
TASKCAL Core API - Task Enums

Enums for task-related fields. Values match the strings stored on task
documents and accepted over the API.
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Task status values."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskPriority(str, Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Statuses that no longer need attention; these are never overdue
CLOSED_STATUSES = (TaskStatus.COMPLETED, TaskStatus.FAILED)
