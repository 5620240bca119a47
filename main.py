"""Main entry point for running the casekit database setup."""

import asyncio

from loguru import logger

from casekit.core.config import Settings, get_settings
from casekit.core.logging import setup_logging
from casekit.core.observability import setup_metrics
from casekit.infrastructure.database import (
    MigrationBatch,
    SetupOptions,
    close_database,
    format_connection,
    get_database_config,
    get_database_metrics,
    get_engine,
    register_metrics,
    setup_database,
)


async def run_setup(settings: Settings) -> MigrationBatch | None:
    """Set up the process-wide engine and migrate the database.

    Args:
        settings: Application settings.

    Returns:
        MigrationBatch | None: The migration run, or None when skipped.
    """
    db_config = settings.database_config
    config = get_database_config()
    logger.info("Setting up database {}", format_connection(config.connection))

    try:
        return await setup_database(
            get_engine(),
            config,
            options=SetupOptions(
                slow_query_threshold_ms=settings.log_config.slow_query_threshold_ms,
                migrate_up=db_config.migrate_up,
                retry_delay_seconds=db_config.retry_delay_seconds,
            ),
            metrics=(
                get_database_metrics()
                if settings.metrics_config.enable_metrics
                else None
            ),
        )
    finally:
        await close_database()


def main() -> None:
    """Main entry point for the casekit database setup."""
    settings = get_settings()

    # Setup logging first
    setup_logging(settings)
    meter_provider = setup_metrics(settings)
    if meter_provider is not None:
        register_metrics(meter_provider)

    try:
        asyncio.run(run_setup(settings))
    finally:
        if meter_provider is not None:
            meter_provider.shutdown()


if __name__ == "__main__":
    main()
