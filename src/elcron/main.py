"""Entry point for the elcron price trigger service.

Wires all components together and starts the hourly scheduler.
Handles SIGINT/SIGTERM for graceful shutdown.

Component wiring order (in _build_components):
1. AppSettings (configuration, loaded in main())
2. Logging setup
3. EntsoeClient (day-ahead document feed)
4. Executor (ShellExecutor or DryRunExecutor based on JOBS_DRY_RUN)
5. TriggerEngine (threshold evaluation)
6. PriceStore (optional price history)
7. HourlyScheduler (fetch-dispatch-trigger-sleep loop)
"""

import asyncio
import signal
import sys
from functools import partial
from typing import Any

from elcron.config import AppSettings, load_settings
from elcron.data.database import PriceDatabase
from elcron.data.store import PriceStore
from elcron.exceptions import ConfigError, JobFileError, QueueEmptyError
from elcron.execution.dry_run_executor import DryRunExecutor
from elcron.execution.executor import CommandExecutor
from elcron.execution.shell_executor import ShellExecutor
from elcron.logging import get_logger, setup_logging
from elcron.prices.entsoe_client import EntsoeClient
from elcron.scheduler import HourlyScheduler, SchedulerState
from elcron.triggers.engine import TriggerEngine
from elcron.triggers.jobs import load_jobs


def _build_components(
    settings: AppSettings, database: PriceDatabase | None = None
) -> dict[str, Any]:
    """Build all service components from settings.

    Note: Does NOT open the HTTP client or the database -- that happens in
    run() so both are closed on the way out.

    Args:
        settings: Application-wide settings.
        database: Connected price database, or None when storage is disabled.

    Returns:
        Dict mapping component names to instances.
    """
    feed = EntsoeClient(
        api_key=settings.api_key.get_secret_value(),
        area=settings.area,
        settings=settings.feed,
    )

    executor: CommandExecutor
    if settings.jobs.dry_run:
        executor = DryRunExecutor()
    else:
        executor = ShellExecutor(timeout=settings.jobs.command_timeout_seconds)

    trigger_engine = TriggerEngine(executor)
    store = PriceStore(database) if database is not None else None

    scheduler = HourlyScheduler(
        settings=settings.scheduler,
        feed=feed,
        job_source=partial(load_jobs, settings.jobs.path),
        trigger_engine=trigger_engine,
        store=store,
    )

    return {
        "feed": feed,
        "executor": executor,
        "trigger_engine": trigger_engine,
        "store": store,
        "scheduler": scheduler,
    }


def _setup_signal_handlers(scheduler: HourlyScheduler, task: asyncio.Task) -> None:  # type: ignore[type-arg]
    """Register SIGINT/SIGTERM handlers for graceful shutdown.

    A scheduler that is sleeping is woken by cancelling its task. One that
    is fetching or running commands is only told to stop, so the work in
    flight runs to completion first.
    """
    logger = get_logger("elcron.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        asyncio.create_task(scheduler.stop())
        if scheduler.state in (SchedulerState.SLEEPING, SchedulerState.IDLE):
            task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


async def run(settings: AppSettings) -> None:
    """Run the service until it is stopped by a signal or a fatal error."""
    logger = get_logger("elcron.main")

    database = PriceDatabase(settings.storage.db_path) if settings.storage.enabled else None
    if database is not None:
        await database.connect()

    components = _build_components(settings, database)
    scheduler: HourlyScheduler = components["scheduler"]

    logger.info(
        "elcron_starting",
        area=settings.area,
        jobs_path=settings.jobs.path,
        dry_run=settings.jobs.dry_run,
        storage=settings.storage.enabled,
    )

    task = asyncio.create_task(scheduler.start())
    _setup_signal_handlers(scheduler, task)
    try:
        await task
    except asyncio.CancelledError:
        logger.info("scheduler_cancelled")
    finally:
        await components["feed"].close()
        if database is not None:
            await database.close()
        logger.info("elcron_stopped")


def main() -> None:
    """Synchronous entry point."""
    try:
        settings = load_settings()
    except ConfigError as e:
        setup_logging()
        get_logger("elcron.main").critical("invalid_configuration", error=str(e))
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("elcron.main")

    try:
        asyncio.run(run(settings))
    except JobFileError as e:
        logger.critical("job_file_invalid", error=str(e))
        sys.exit(1)
    except QueueEmptyError as e:
        logger.critical("no_price_for_current_hour", error=str(e))
        sys.exit(2)


if __name__ == "__main__":
    main()
