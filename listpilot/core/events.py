"""
Event handlers for application lifecycle events.
"""
import asyncio
import logging
from typing import List

from listpilot.core.config import settings
from listpilot.services.event_bus.bus import get_event_bus
from listpilot.services.event_bus.events import EventType

logger = logging.getLogger("listpilot")

# Collection of background tasks to manage
background_tasks: List[asyncio.Task] = []


async def startup_event_handler() -> None:
    """
    Handle application startup.

    Prepare the account store, the event bus and the job ticker.
    """
    logger.info("Starting Listpilot application")

    try:
        from listpilot.db.session import initialize_database
        await initialize_database()
        logger.info("Account store initialized successfully")
    except Exception as e:
        logger.error(f"Error initializing account store: {e}")

    try:
        event_bus = get_event_bus()
        await event_bus.initialize()
        await event_bus.publish(EventType.SYSTEM_STARTUP, {"version": settings.VERSION})
        logger.info("Event bus initialized successfully")
    except Exception as e:
        logger.error(f"Error initializing event bus: {e}")

    if settings.JOB_TICKER_ENABLED:
        from listpilot.services.jobs.engine import get_job_engine
        ticker_task = asyncio.create_task(get_job_engine().run_ticker(), name="job-ticker")
        background_tasks.append(ticker_task)
        logger.info("Job ticker started")

    logger.info(f"{settings.PROJECT_NAME} v{settings.VERSION} startup complete")


async def shutdown_event_handler() -> None:
    """
    Handle application shutdown.

    Interrupt running imports, stop background tasks and close connections.
    """
    logger.info("Shutting down Listpilot application")

    try:
        await get_event_bus().publish(EventType.SYSTEM_SHUTDOWN, {
            "reason": "Application shutdown",
            "graceful": True
        })
    except Exception as e:
        logger.error(f"Error publishing shutdown event: {e}")

    from listpilot.services.jobs.engine import get_job_engine
    await get_job_engine().shutdown()

    for task in background_tasks:
        if not task.done():
            task.cancel()
            try:
                await asyncio.wait_for(task, timeout=5.0)
            except (asyncio.TimeoutError, asyncio.CancelledError):
                logger.warning(f"Task {task.get_name()} was cancelled")
    background_tasks.clear()

    try:
        from listpilot.db.session import close_database_connections
        await close_database_connections()
    except Exception as e:
        logger.error(f"Error closing database connections: {e}")

    await get_event_bus().shutdown()
    logger.info("Application shutdown complete")
