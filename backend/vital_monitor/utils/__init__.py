"""
Utility modules for the device vital monitor backend.
"""

from vital_monitor.utils.validation import (
    ensure_utc,
    validate_vital_log,
    validate_paging,
    invalid_page,
    invalid_page_size,
)
from vital_monitor.utils.rate_limit import FixedWindowRateLimiter

__all__ = [
    "ensure_utc",
    "validate_vital_log",
    "validate_paging",
    "invalid_page",
    "invalid_page_size",
    "FixedWindowRateLimiter",
]
