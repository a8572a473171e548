"""
Vitals Reporter
===============

The client side: reads this machine's vitals and posts them to the API.

WHAT THIS DOES:
--------------
1. Reads battery level, memory usage and temperature with psutil
2. Maps the temperature to a thermal state (0-3)
3. POSTs the reading to /api/vitals
4. Repeats on a timer (every 15 minutes by default)

THE DATA FLOW:
-------------
    This machine (psutil)
            |
            | sample_vitals()
            v
    {"device_id": ..., "timestamp": ..., "thermal_value": ..., ...}
            |
            | POST /api/vitals
            v
    [Vital Monitor API]

Machines without a battery have nothing to report; the reading is skipped,
not sent with made-up values.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
import psutil
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


# Upper bounds (exclusive, Celsius) of thermal states 0, 1 and 2; anything hotter is 3
THERMAL_THRESHOLDS = (60.0, 75.0, 90.0)


def thermal_state_from_celsius(temperature: Optional[float]) -> int:
    """
    Map a temperature to a thermal state.

    0 = nominal, 1 = light, 2 = moderate, 3 = severe or worse.
    Unknown temperature counts as nominal.
    """
    if temperature is None:
        return 0
    for state, limit in enumerate(THERMAL_THRESHOLDS):
        if temperature < limit:
            return state
    return 3


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, float(value)))


def read_temperature() -> Optional[float]:
    """Hottest current sensor temperature, or None where the platform has none."""
    # Only Linux and FreeBSD builds of psutil have sensors_temperatures
    reader = getattr(psutil, "sensors_temperatures", None)
    if reader is None:
        return None
    readings = [
        entry.current
        for entries in reader().values()
        for entry in entries
        if entry.current is not None
    ]
    return max(readings) if readings else None


def sample_vitals(device_id: str, now: Optional[datetime] = None) -> Optional[dict]:
    """
    Take one reading of this machine's vitals.

    Args:
        device_id: What this machine reports as
        now: Timestamp for the reading (default: current UTC time)

    Returns:
        The request body for POST /api/vitals, or None if no battery is present
    """
    battery = psutil.sensors_battery()
    if battery is None:
        logger.warning(f"[{device_id}] Battery unavailable, skipping reading")
        return None

    timestamp = now or datetime.now(timezone.utc)
    return {
        "device_id": device_id,
        "timestamp": timestamp.isoformat(),
        "thermal_value": thermal_state_from_celsius(read_temperature()),
        "battery_level": _clamp(battery.percent),
        "memory_usage": _clamp(psutil.virtual_memory().percent),
    }


class VitalsReporter:
    """
    Posts this machine's vitals to the API on a timer.

    HOW TO USE:
    ----------
    reporter = VitalsReporter("http://localhost:8000", device_id="lab-laptop")

    # One reading right now
    stored = await reporter.report_once()

    # Or keep reporting every `interval` seconds (needs a running event loop)
    reporter.start()
    ...
    await reporter.shutdown()
    """

    JOB_ID = "report_vitals"

    def __init__(
        self,
        api_url: str,
        device_id: str,
        interval: int = 900,
        request_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_url: Base URL of the vital monitor API
            device_id: What this machine reports as
            interval: Seconds between readings. Default is 15 minutes.
            request_timeout: How long to wait for the API (seconds)
            transport: Optional httpx transport (tests plug in a mock here)
        """
        self.api_url = api_url.rstrip("/")
        self.device_id = device_id
        self.interval = interval
        self.http_client = httpx.AsyncClient(base_url=self.api_url, timeout=request_timeout, transport=transport)
        self.scheduler = AsyncIOScheduler()

    async def report_once(self) -> Optional[dict]:
        """
        Sample and send one reading.

        Returns:
            The stored reading as returned by the API, or None if skipped

        Raises:
            httpx.HTTPError: the API could not be reached or rejected the reading
        """
        payload = sample_vitals(self.device_id)
        if payload is None:
            return None

        try:
            response = await self.http_client.post("/api/vitals", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"[{self.device_id}] Report rejected - HTTP {e.response.status_code}\n"
                f"Response: {e.response.text[:500]}"
            )
            raise
        except httpx.HTTPError as e:
            logger.error(f"[{self.device_id}] Report failed: {type(e).__name__}: {e}")
            raise

        stored = response.json()
        logger.info(f"[{self.device_id}] Reported vital #{stored.get('id')} (HTTP {response.status_code})")
        return stored

    async def _scheduled_report(self):
        # A failed report must not stop the schedule; the next run tries again
        try:
            await self.report_once()
        except httpx.HTTPError:
            logger.warning(f"[{self.device_id}] Will retry in {self.interval}s")

    def start(self):
        """Report now, then every `interval` seconds."""
        logger.info(f"[{self.device_id}] Reporting to {self.api_url} every {self.interval}s")
        self.scheduler.add_job(
            self._scheduled_report,
            trigger=IntervalTrigger(seconds=self.interval),
            id=self.JOB_ID,
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
        )
        self.scheduler.start()

    async def shutdown(self):
        """Stop the timer and close the HTTP client."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        await self.http_client.aclose()
