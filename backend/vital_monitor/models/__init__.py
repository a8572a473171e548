"""
Models Package
==============

This is where all our data models live.
Import from here instead of the individual files.

Example:
    from vital_monitor.models import VitalLogRequest, AnalyticsResult
"""

from .vital import (
    # Enumerations
    Trend,
    ErrorCode,

    # What the client sends us
    VitalLogRequest,

    # What lives in the store
    NewVitalReading,
    VitalReading,

    # What we send back
    PagedResponse,
    AnalyticsResult,
    ErrorResponse,
)

__all__ = [
    "Trend",
    "ErrorCode",
    "VitalLogRequest",
    "NewVitalReading",
    "VitalReading",
    "PagedResponse",
    "AnalyticsResult",
    "ErrorResponse",
]
