"""
TASKCAL Core API - Tasks Module

Task CRUD: the source and mutation collaborator behind the calendar.
"""

from taskcal.tasks.router import router as tasks_router

__all__ = ["tasks_router"]
