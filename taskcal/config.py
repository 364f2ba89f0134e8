"""
TASKCAL Core API - Configuration Module

This module handles application configuration via environment variables.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "TASKCAL Core API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # MongoDB
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://mongodb:27017")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "taskcal")

    # CORS - Allowed origins for client requests
    # Multiple origins can be comma-separated
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
        if origin.strip()
    ]

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Calendar defaults (per-user settings override these)
    # 0 = Sunday ... 6 = Saturday
    WEEK_START_DAY: int = int(os.getenv("WEEK_START_DAY", "0"))
    AGENDA_LOOKAHEAD_DAYS: int = int(os.getenv("AGENDA_LOOKAHEAD_DAYS", "30"))
    TIME_FORMAT: str = os.getenv("TIME_FORMAT", "24h")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
