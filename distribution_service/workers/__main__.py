"""
Entry point to run workers outside the API process.
"""
import asyncio
import sys
import logging

from distribution_service.core.config import settings
from distribution_service.core.logging import setup_logging

logger = logging.getLogger(__name__)


async def run_scheduler():
    """Run the fare transition scheduler until interrupted."""
    from distribution_service.services.fares.deps import get_fare_scheduler
    from distribution_service.services.http_client import close_http_client

    scheduler = get_fare_scheduler()
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
        await close_http_client()


def main():
    """Run the worker named on the command line."""
    setup_logging(settings.ENVIRONMENT, settings.LOG_LEVEL)

    if len(sys.argv) < 2:
        print("Usage: python -m distribution_service.workers <worker_name>")
        print("Available workers: scheduler")
        sys.exit(1)

    worker_name = sys.argv[1]

    if worker_name == "scheduler":
        logger.info("Starting fare transition scheduler...")
        try:
            asyncio.run(run_scheduler())
        except KeyboardInterrupt:
            logger.info("Scheduler interrupted")
    else:
        logger.error(f"Unknown worker: {worker_name}")
        sys.exit(1)


if __name__ == "__main__":
    main()
