"""
Configuration
=============
Application configuration loaded from environment variables.

Values come from the process environment, or from a .env file next to
where the server is started (loaded with python-dotenv).
"""

import os
import socket
from datetime import timedelta

from dotenv import load_dotenv


# Load environment variables from .env file
load_dotenv()


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Config:
    """
    Application configuration.

    Environment Variables:
        DATABASE_URL: SQLAlchemy URL of the vital store (default: local SQLite file)
        CORS_ORIGINS: Comma separated list of allowed origins (default: *)
        LOG_LEVEL: Logging level name (default: INFO)
        RATE_LIMIT_PERMIT: Requests allowed per client per window, 0 disables (default: 100)
        RATE_LIMIT_WINDOW_SECONDS: Length of the rate limit window (default: 60)
        VITALS_API_URL: Base URL the reporter posts to (default: http://localhost:8000)
        VITALS_DEVICE_ID: Device id the reporter reports as (default: host name)
        VITALS_REPORT_INTERVAL: Seconds between reports (default: 900)

    Tests subclass this and override attributes instead of touching the
    environment.
    """

    # Storage
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./vitals.db")

    # HTTP surface
    CORS_ORIGINS = _split_origins(os.getenv("CORS_ORIGINS", "*"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    RATE_LIMIT_PERMIT = int(os.getenv("RATE_LIMIT_PERMIT", "100"))
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

    # Analytics
    WINDOW_SIZE = 100
    TREND_EPSILON = 1e-4

    # History paging
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    # Submitted timestamps may run this far ahead of server time
    CLOCK_SKEW_TOLERANCE = timedelta(minutes=5)

    # Reporter (client side)
    VITALS_API_URL = os.getenv("VITALS_API_URL", "http://localhost:8000")
    VITALS_DEVICE_ID = os.getenv("VITALS_DEVICE_ID", socket.gethostname())
    VITALS_REPORT_INTERVAL = int(os.getenv("VITALS_REPORT_INTERVAL", "900"))
