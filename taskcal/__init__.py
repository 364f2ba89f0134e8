"""TASKCAL Core API - task calendar service."""
