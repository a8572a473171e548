"""
Services Package
================

These are the "workers" that do the actual work.

- VitalService: Validates, stores and queries vital readings
- compute_analytics: Rolling-window statistics and trends
- paginate: History paging
- VitalsReporter: Client side, posts this machine's vitals to the API
"""

from .analytics import compute_analytics, trend
from .pager import paginate
from .vital_service import VitalService
from .vitals_reporter import VitalsReporter, sample_vitals, thermal_state_from_celsius

__all__ = [
    "compute_analytics",
    "trend",
    "paginate",
    "VitalService",
    "VitalsReporter",
    "sample_vitals",
    "thermal_state_from_celsius",
]
