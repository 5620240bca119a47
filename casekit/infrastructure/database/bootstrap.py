"""Database setup: monitoring, metrics and migrations for an engine."""

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncEngine

from casekit.infrastructure.constants import (
    MIGRATION_RETRY_DELAY_SECONDS,
    SLOW_QUERY_THRESHOLD_MS,
)
from casekit.infrastructure.database.config import DatabaseSetupConfig
from casekit.infrastructure.database.metrics import DatabaseMetrics, pool_of
from casekit.infrastructure.database.migrations import (
    AlembicMigrator,
    MigrationBatch,
    Migrator,
    SetupLogger,
    run_migrations,
)
from casekit.infrastructure.database.session import QueryMonitor


class SetupOptions(BaseModel):
    """Options of one database setup run."""

    model_config = ConfigDict(frozen=True)

    slow_query_threshold_ms: float = Field(default=SLOW_QUERY_THRESHOLD_MS, ge=0)
    migrate_up: bool = True
    retry_delay_seconds: float = Field(default=MIGRATION_RETRY_DELAY_SECONDS, gt=0)
    pool_name: str = "default"


async def setup_database(
    engine: AsyncEngine,
    config: DatabaseSetupConfig,
    *,
    logger: SetupLogger = logger,
    options: SetupOptions | None = None,
    migrator: Migrator | None = None,
    metrics: DatabaseMetrics | None = None,
) -> MigrationBatch | None:
    """Prepare an engine for use.

    Attaches a query monitor, reports the engine's pool when ``metrics`` is
    given, and migrates to the latest schema when ``options.migrate_up``.

    Args:
        engine: The application engine.
        config: Configuration the engine was created from.
        logger: Destination of setup and slow query messages.
        options: Setup options, defaults apply when omitted.
        migrator: Migrator to run; Alembic over ``engine`` when omitted.
        metrics: Instrument set for pool and query metrics.

    Returns:
        MigrationBatch | None: The migration run, or None when migrations
        were skipped.
    """
    options = options or SetupOptions()

    QueryMonitor(
        slow_query_threshold_ms=options.slow_query_threshold_ms,
        metrics=metrics,
        logger=logger,
    ).attach(engine)

    if metrics is not None:
        metrics.track_pool(pool_of(engine), options.pool_name)

    if not options.migrate_up:
        return None

    migrator = migrator or AlembicMigrator(engine, config.migrations)
    return await run_migrations(
        migrator, logger=logger, retry_delay=options.retry_delay_seconds
    )
