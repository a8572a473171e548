"""
Input Validation Utilities
===========================

Validation for submitted vital readings and history paging parameters.

Every check returns None when the input is accepted, or an ErrorResponse
describing the first problem found. Checks short-circuit: only one error is
ever reported per request.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from vital_monitor.config import Config
from vital_monitor.models import ErrorCode, ErrorResponse, VitalLogRequest


# Accepted ranges (inclusive)
THERMAL_RANGE = (0, 3)
PERCENT_RANGE = (0.0, 100.0)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to an aware UTC datetime.

    Naive datetimes are taken to already be UTC (clients must send UTC);
    aware ones are converted.

    Args:
        value: Any datetime

    Returns:
        The same instant with tzinfo=UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _missing(field: str, message: str) -> ErrorResponse:
    return ErrorResponse(error=message, field=field, code=ErrorCode.MISSING_FIELD)


def _out_of_range(field: str, message: str) -> ErrorResponse:
    return ErrorResponse(error=message, field=field, code=ErrorCode.INVALID_RANGE)


def _in_range(value: float, bounds: tuple) -> bool:
    low, high = bounds
    return low <= value <= high


def validate_vital_log(
    request: Optional[VitalLogRequest],
    now: datetime,
    clock_skew: timedelta = Config.CLOCK_SKEW_TOLERANCE,
) -> Optional[ErrorResponse]:
    """
    Validate a submitted vital reading.

    Order of checks (first failure wins):
        1. request present
        2. device_id, timestamp, thermal_value, battery_level, memory_usage present
        3. thermal_value in [0, 3], battery_level and memory_usage in [0, 100]
        4. timestamp representable in UTC and not later than now + clock_skew

    Args:
        request: The parsed request body, or None if there was none
        now: Current UTC time
        clock_skew: How far ahead of now a timestamp may be

    Returns:
        None if valid, otherwise the rejection
    """
    if request is None:
        return ErrorResponse(error="Invalid request.", field=None, code=ErrorCode.INVALID_REQUEST)

    if request.device_id is None or not request.device_id.strip():
        return _missing("device_id", "Device ID is required.")
    if request.timestamp is None:
        return _missing("timestamp", "Timestamp is required.")
    if request.thermal_value is None:
        return _missing("thermal_value", "Thermal value is required.")
    if request.battery_level is None:
        return _missing("battery_level", "Battery level is required.")
    if request.memory_usage is None:
        return _missing("memory_usage", "Memory usage is required.")

    if not _in_range(request.thermal_value, THERMAL_RANGE):
        return _out_of_range("thermal_value", "Thermal value must be between 0 and 3.")
    if not _in_range(request.battery_level, PERCENT_RANGE):
        return _out_of_range("battery_level", "Battery level must be between 0 and 100.")
    if not _in_range(request.memory_usage, PERCENT_RANGE):
        return _out_of_range("memory_usage", "Memory usage must be between 0 and 100.")

    try:
        timestamp = ensure_utc(request.timestamp)
    except OverflowError:
        # e.g. 0001-01-01T00:00:00+01:00 has no UTC equivalent
        return ErrorResponse(
            error="Timestamp is out of range.",
            field="timestamp",
            code=ErrorCode.INVALID_TIMESTAMP,
        )

    if timestamp > ensure_utc(now) + clock_skew:
        return ErrorResponse(
            error="Timestamp cannot be in the future.",
            field="timestamp",
            code=ErrorCode.INVALID_TIMESTAMP,
        )

    return None


def invalid_page() -> ErrorResponse:
    return _out_of_range("page", "Page must be greater than or equal to 1.")


def invalid_page_size(max_page_size: int) -> ErrorResponse:
    # The query parameter is page_size; the reported field name is camelCase
    return _out_of_range("pageSize", f"Page size must be between 1 and {max_page_size}.")


def validate_paging(page: int, page_size: int, max_page_size: int = Config.MAX_PAGE_SIZE) -> Optional[ErrorResponse]:
    """
    Validate history paging parameters.

    Args:
        page: 1-based page index
        page_size: Items per page
        max_page_size: Largest page size allowed

    Returns:
        None if valid, otherwise the rejection
    """
    if page < 1:
        return invalid_page()
    if not 1 <= page_size <= max_page_size:
        return invalid_page_size(max_page_size)
    return None
