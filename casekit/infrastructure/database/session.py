"""Async database engine lifecycle and query monitoring.

This module creates SQLAlchemy async engines from a ``DatabaseSetupConfig``
and wires the configuration's hooks into them:

- **Identifier wrapping**: identifiers written in camelCase reach SQL as
  snake_case through the dialect's identifier preparer
- **Row post-processing**: ``fetch_rows`` returns rows with camelCase keys
- **Query monitoring**: per-query durations feed the duration histogram and
  slow queries are logged

The module keeps a single engine per process through _DatabaseManager so
that every caller shares one connection pool.
"""

import threading
import time
from collections.abc import Callable
from typing import Any, Final, Protocol
from weakref import WeakKeyDictionary

from loguru import logger
from sqlalchemy import event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.engine.interfaces import DBAPICursor, ExecutionContext
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    create_async_engine,
)
from sqlalchemy.sql.compiler import IdentifierPreparer
from sqlalchemy.sql.expression import Executable

from casekit.core.config import get_settings
from casekit.core.constants import MILLISECONDS_PER_SECOND
from casekit.infrastructure.constants import SLOW_QUERY_THRESHOLD_MS
from casekit.infrastructure.database.config import (
    DatabaseSetupConfig,
    PoolConfig,
    StringTransform,
    create_config,
)
from casekit.infrastructure.database.metrics import DatabaseMetrics

UNKNOWN_METHOD: Final = "unknown"

type SQLParameters = dict[str, Any] | list[Any] | tuple[Any, ...] | None


class SlowQueryLogger(Protocol):
    """Anything that can log a slow query warning."""

    def warning(self, message: str, /, *args: Any, **kwargs: Any) -> None: ...


def sql_method(statement: str) -> str:
    """Return the lower-cased leading keyword of a SQL statement.

    Examples:
        >>> sql_method("  SELECT 1")
        'select'
        >>> sql_method("")
        'unknown'
    """
    words = statement.split(maxsplit=1)
    if not words:
        return UNKNOWN_METHOD
    return words[0].lower()


class QueryMonitor:
    """Times queries, records their duration and logs slow ones.

    Args:
        slow_query_threshold_ms: Queries taking at least this long are logged.
        metrics: Instrument set the durations are recorded into.
        logger: Destination of slow query warnings.
    """

    def __init__(
        self,
        slow_query_threshold_ms: float = SLOW_QUERY_THRESHOLD_MS,
        metrics: DatabaseMetrics | None = None,
        logger: SlowQueryLogger = logger,
    ) -> None:
        self.slow_query_threshold_ms = slow_query_threshold_ms
        self.metrics = metrics
        self.logger = logger
        # Start times keyed by execution context, dropped with the context
        self._start_times: WeakKeyDictionary[ExecutionContext, float] = (
            WeakKeyDictionary()
        )

    def attach(self, engine: Engine | AsyncEngine) -> None:
        """Listen for cursor executions on an engine."""
        target = engine.sync_engine if isinstance(engine, AsyncEngine) else engine
        event.listen(target, "before_cursor_execute", self.before_cursor_execute)
        event.listen(target, "after_cursor_execute", self.after_cursor_execute)

    def detach(self, engine: Engine | AsyncEngine) -> None:
        """Stop listening on an engine."""
        target = engine.sync_engine if isinstance(engine, AsyncEngine) else engine
        event.remove(target, "before_cursor_execute", self.before_cursor_execute)
        event.remove(target, "after_cursor_execute", self.after_cursor_execute)

    def before_cursor_execute(
        self,
        _conn: Connection,
        _cursor: DBAPICursor,
        _statement: str,
        _parameters: SQLParameters,
        context: ExecutionContext,
        _executemany: bool,
    ) -> None:
        """Remember when a query started."""
        self._start_times[context] = time.perf_counter()

    def after_cursor_execute(
        self,
        _conn: Connection,
        _cursor: DBAPICursor,
        statement: str,
        _parameters: SQLParameters,
        context: ExecutionContext,
        _executemany: bool,
    ) -> None:
        """Record the duration of a finished query."""
        start_time = self._start_times.pop(context, None)
        if start_time is None:
            return
        self.observe(statement, time.perf_counter() - start_time)

    def observe(self, statement: str, duration_seconds: float) -> None:
        """Record and, when slow, log one query.

        Args:
            statement: The SQL that ran.
            duration_seconds: How long it took.
        """
        if self.metrics is not None:
            self.metrics.record_query(sql_method(statement), duration_seconds)

        duration_ms = duration_seconds * MILLISECONDS_PER_SECOND
        if duration_ms >= self.slow_query_threshold_ms:
            self.logger.warning(
                "Slow query [{:.2f}ms] {}",
                duration_ms,
                " ".join(statement.split()),
            )


class _IdentifierWrapping(IdentifierPreparer):
    """Preparer mixin that passes identifiers through ``wrap_identifier``."""

    wrap_identifier: Callable[[str, StringTransform], str]

    def quote(self, ident: str, force: Any = None) -> str:
        base_quote = super().quote
        return self.wrap_identifier(ident, lambda value: base_quote(value, force))


def apply_identifier_hook(
    engine: Engine | AsyncEngine, config: DatabaseSetupConfig
) -> None:
    """Route the dialect's identifier quoting through ``config.wrap_identifier``.

    Every table, column and constraint name the engine renders passes through
    the hook before the dialect decides whether it needs quoting.
    """
    sync_engine = engine.sync_engine if isinstance(engine, AsyncEngine) else engine
    dialect = sync_engine.dialect
    preparer_cls = type(
        f"Wrapping{type(dialect.identifier_preparer).__name__}",
        (_IdentifierWrapping, type(dialect.identifier_preparer)),
        {"wrap_identifier": staticmethod(config.wrap_identifier)},
    )

    # Dialects that rebuild their preparer on first connect use the class
    dialect.preparer = preparer_cls
    dialect.identifier_preparer = preparer_cls(dialect)


def create_database_engine(config: DatabaseSetupConfig) -> AsyncEngine:
    """Create an async engine for a setup configuration.

    Args:
        config: Database setup configuration.

    Returns:
        AsyncEngine: Engine with the identifier hook applied.
    """
    engine = create_async_engine(config.url, **config.engine_options())
    apply_identifier_hook(engine, config)

    logger.info(
        "Created database engine - pool min: {}, pool max: {}",
        config.pool.min,
        config.pool.max,
    )
    return engine


async def fetch_rows(
    executor: AsyncConnection | AsyncSession,
    statement: Executable,
    config: DatabaseSetupConfig,
    parameters: dict[str, Any] | None = None,
) -> list[dict[str, Any]]:
    """Execute a statement and return its rows with camelCase keys.

    Args:
        executor: Connection or session to run the statement on.
        statement: The statement to execute.
        config: Configuration providing the response hook.
        parameters: Bind parameters.

    Returns:
        list[dict[str, Any]]: One mapping per row.
    """
    result = await executor.execute(statement, parameters)
    rows = [dict(row) for row in result.mappings()]
    return config.post_process_response(rows)


class _DatabaseManager:
    """Internal class to manage the process-wide engine instance."""

    def __init__(self) -> None:
        self._engine: AsyncEngine | None = None
        self._config: DatabaseSetupConfig | None = None
        self._lock = threading.Lock()

    def get_config(self) -> DatabaseSetupConfig:
        """Get or build the setup configuration from settings."""
        if self._config is None:
            with self._lock:
                # Double-checked locking pattern
                if self._config is None:
                    db_config = get_settings().database_config
                    self._config = create_config(
                        db_config.database_url,
                        client=db_config.client,
                        migrations_directory=db_config.migrations_directory,
                        pool=PoolConfig(min=db_config.pool_min, max=db_config.pool_max),
                        version_table=db_config.version_table,
                    )
        return self._config

    def get_engine(self) -> AsyncEngine:
        """Get or create the async engine instance."""
        if self._engine is None:
            config = self.get_config()
            with self._lock:
                # Double-checked locking pattern
                if self._engine is None:
                    self._engine = create_database_engine(config)
        return self._engine

    async def close(self) -> None:
        """Dispose the engine and its connections."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
            self._engine = None

    def reset(self) -> None:
        """Reset the manager state. Used primarily for testing."""
        self._engine = None
        self._config = None


# Singleton instance
_db_manager = _DatabaseManager()


def get_database_config() -> DatabaseSetupConfig:
    """Get the process-wide setup configuration built from settings.

    Raises:
        MissingConnectionError: If no database URL is configured.
    """
    return _db_manager.get_config()


def get_engine() -> AsyncEngine:
    """Get or create the process-wide async engine."""
    return _db_manager.get_engine()


async def close_database() -> None:
    """Dispose the process-wide engine.

    This should be called during application shutdown to ensure
    all database connections are properly closed.
    """
    await _db_manager.close()
