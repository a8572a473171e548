"""
Vital Service
=============

The one place the API talks to. It glues together:

    validator  ->  store.insert        (log_vital)
    store.get                          (get_vital)
    pager      ->  store.page          (get_history)
    aggregator ->  store.count/latest  (get_analytics)

Nothing is cached between calls: every request reads the store fresh.
Store errors are not caught here; they travel up to the API layer.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from vital_monitor.config import Config
from vital_monitor.errors import VitalNotFoundError, VitalValidationError
from vital_monitor.models import (
    AnalyticsResult,
    NewVitalReading,
    PagedResponse,
    VitalLogRequest,
    VitalReading,
)
from vital_monitor.services.analytics import compute_analytics
from vital_monitor.services.pager import paginate
from vital_monitor.storage import VitalStore
from vital_monitor.utils.validation import ensure_utc, validate_paging, validate_vital_log

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VitalService:
    """
    Logs readings and answers history and analytics queries.

    HOW TO USE:
    ----------
    service = VitalService(store)

    stored = service.log_vital(VitalLogRequest(...))   # raises VitalValidationError if rejected
    page = service.get_history(page=1, page_size=20)
    analytics = service.get_analytics()
    """

    def __init__(
        self,
        store: VitalStore,
        clock: Optional[Callable[[], datetime]] = None,
        config: type[Config] = Config,
    ):
        """
        Args:
            store: Where readings are kept
            clock: Returns the current UTC time. Default is the system clock.
            config: Window size, paging bounds and clock skew tolerance
        """
        self.store = store
        self.clock = clock or utc_now
        self.config = config

    def log_vital(self, request: Optional[VitalLogRequest]) -> VitalReading:
        """
        Validate and store one reading.

        Raises:
            VitalValidationError: the reading was rejected; nothing was stored
        """
        failure = validate_vital_log(request, now=self.clock(), clock_skew=self.config.CLOCK_SKEW_TOLERANCE)
        if failure is not None:
            device = request.device_id if request is not None else None
            logger.warning(f"[{device}] Rejected vital: {failure.code.value} {failure.field} - {failure.error}")
            raise VitalValidationError(failure)

        stored = self.store.insert(NewVitalReading(
            device_id=request.device_id,
            timestamp=ensure_utc(request.timestamp),
            thermal_value=request.thermal_value,
            battery_level=request.battery_level,
            memory_usage=request.memory_usage,
        ))
        logger.info(
            f"[{stored.device_id}] Logged vital #{stored.id} - thermal={stored.thermal_value} "
            f"battery={stored.battery_level:.1f}% memory={stored.memory_usage:.1f}%"
        )
        return stored

    def get_vital(self, vital_id: int) -> VitalReading:
        """
        Raises:
            VitalNotFoundError: nothing is stored under vital_id
        """
        vital = self.store.get(vital_id)
        if vital is None:
            raise VitalNotFoundError(vital_id)
        return vital

    def get_history(self, page: int = 1, page_size: Optional[int] = None) -> PagedResponse[VitalReading]:
        """
        One page of readings, newest first.

        Raises:
            VitalValidationError: page or page_size out of range
        """
        if page_size is None:
            page_size = self.config.DEFAULT_PAGE_SIZE

        failure = validate_paging(page, page_size, self.config.MAX_PAGE_SIZE)
        if failure is not None:
            raise VitalValidationError(failure)

        return paginate(self.store, page, page_size)

    def get_analytics(self) -> AnalyticsResult:
        """Rolling-window statistics over the newest readings."""
        total_logs = self.store.count()
        window = self.store.latest(self.config.WINDOW_SIZE)
        return compute_analytics(
            window,
            total_logs,
            window_size=self.config.WINDOW_SIZE,
            epsilon=self.config.TREND_EPSILON,
        )
