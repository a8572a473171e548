"""
Vitals Reporter - Command Line Entry
====================================
Runs the reporter until interrupted.

HOW TO RUN:
    # Point it at the API (or set these in .env)
    export VITALS_API_URL=http://localhost:8000
    export VITALS_DEVICE_ID=lab-laptop
    export VITALS_REPORT_INTERVAL=900

    python -m vital_monitor.reporter
"""

import asyncio
import logging
import sys

from vital_monitor.config import Config
from vital_monitor.services import VitalsReporter


logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
    handlers=[logging.StreamHandler(sys.stderr)],
)


async def main():
    reporter = VitalsReporter(
        api_url=Config.VITALS_API_URL,
        device_id=Config.VITALS_DEVICE_ID,
        interval=Config.VITALS_REPORT_INTERVAL,
    )
    reporter.start()
    try:
        # Run until cancelled (Ctrl+C)
        await asyncio.Event().wait()
    finally:
        await reporter.shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Reporter stopped")
