"""
Vital Models
============
Pydantic models for device vital readings, history pages and analytics.

This module defines all data structures used throughout the application:
- Request models: What the client sends to the backend
- Response models: What the backend returns to the client
- Stored models: A reading as it lives in the vital store

All JSON field names are snake_case. Timestamps are always UTC.
"""

from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


# =============================================================================
# ENUMS
# =============================================================================

class Trend(str, Enum):
    """
    Direction of a metric across the rolling window.

    The newer half of the window is compared with the older half:
    - INCREASING: newer half averages higher
    - DECREASING: newer half averages lower
    - STABLE: the two halves are (almost) equal
    - INSUFFICIENT_DATA: fewer than two readings to compare
    """
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class ErrorCode(str, Enum):
    """Machine-readable error codes carried by every rejection."""
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_RANGE = "INVALID_RANGE"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# REQUEST MODELS - What the client sends to the backend
# =============================================================================

class VitalLogRequest(BaseModel):
    """
    Request body for logging one vital reading.

    Every field is optional at the parsing level so that a missing field is
    reported as MISSING_FIELD by the validator instead of a generic parse
    error.

    Example Request:
        POST /api/vitals
        {
            "device_id": "pixel-7-lab",
            "timestamp": "2024-01-15T10:30:00.000Z",
            "thermal_value": 1,
            "battery_level": 82.5,
            "memory_usage": 61.0
        }
    """
    device_id: Optional[str] = Field(None, description="Identifier of the reporting device")
    timestamp: Optional[datetime] = Field(None, description="When the reading was taken (ISO-8601, UTC)")
    thermal_value: Optional[int] = Field(None, description="Thermal state, 0 (nominal) to 3 (critical)")
    battery_level: Optional[float] = Field(None, description="Battery charge in percent, 0 to 100")
    memory_usage: Optional[float] = Field(None, description="Memory in use in percent, 0 to 100")


# =============================================================================
# STORED MODELS
# =============================================================================

class NewVitalReading(BaseModel):
    """A validated reading that has not been stored yet."""
    device_id: str
    timestamp: datetime
    thermal_value: int
    battery_level: float
    memory_usage: float


class VitalReading(NewVitalReading):
    """
    A stored reading.

    Immutable once stored. The id is assigned by the store on insert.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Identifier assigned on insert")


# =============================================================================
# RESPONSE MODELS - What the backend returns to the client
# =============================================================================

class PagedResponse(BaseModel, Generic[T]):
    """
    One page of an ordered sequence plus the numbers a client needs to page.

    total_pages is 0 when there is nothing stored.
    """
    data: list[T] = Field(default_factory=list)
    page: int = Field(..., description="1-based page index")
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class AnalyticsResult(BaseModel):
    """
    Rolling-window statistics over the newest readings.

    rolling_window_logs is the number of readings actually used, except
    when nothing is stored: then it reports the configured window size.
    window_size always reports the configured window size.
    """
    total_logs: int = Field(0, description="Count of all readings ever stored")
    rolling_window_logs: int = Field(0, description="Readings included in the window")
    window_size: int = Field(0, description="Configured rolling window size")

    average_thermal: float = 0.0
    average_battery: float = 0.0
    average_memory: float = 0.0

    min_thermal: int = 0
    max_thermal: int = 0
    min_battery: float = 0.0
    max_battery: float = 0.0
    min_memory: float = 0.0
    max_memory: float = 0.0

    trend_thermal: Trend = Trend.INSUFFICIENT_DATA
    trend_battery: Trend = Trend.INSUFFICIENT_DATA
    trend_memory: Trend = Trend.INSUFFICIENT_DATA


class ErrorResponse(BaseModel):
    """
    Body of every 4xx/5xx response.

    Example:
        {"error": "Device ID is required.", "field": "device_id", "code": "MISSING_FIELD"}
    """
    error: str = Field(..., description="Human readable message")
    field: Optional[str] = Field(None, description="Offending field, if any")
    code: Optional[ErrorCode] = Field(None, description="Machine readable error code")
