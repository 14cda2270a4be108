"""
coLoc server configuration: all environment variables in one place.

Read from environment at runtime. Nothing is required: the defaults run a
local game server on the port the browser client expects.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Server
    HOST: str = os.environ.get("HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("PORT", "3001"))

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Optional override of the bundled card/experiment catalog
    CATALOG_PATH: str = os.environ.get("CATALOG_PATH", "")

    @property
    def CORS_ORIGINS(self) -> list[str]:
        raw = os.environ.get("CORS_ORIGINS", "*")
        return [origin.strip() for origin in raw.split(",") if origin.strip()]


# Singleton instance
settings = Settings()
