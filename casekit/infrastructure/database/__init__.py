"""Database setup glue over async SQLAlchemy and Alembic.

Core components:
- **connection**: Connection descriptors and redacted display
- **config**: Setup configuration with key-case response/identifier hooks
- **base**: Declarative base with snake_case table names
- **session**: Engine lifecycle and query monitoring
- **metrics**: Pool and query duration instruments
- **migrations**: Migrate-to-latest with retry on unreachable databases
- **bootstrap**: One-call setup of an engine
"""

from casekit.infrastructure.database.base import Base
from casekit.infrastructure.database.bootstrap import SetupOptions, setup_database
from casekit.infrastructure.database.config import (
    DatabaseSetupConfig,
    MigrationsConfig,
    PoolConfig,
    create_config,
    post_process_response,
    wrap_identifier,
)
from casekit.infrastructure.database.connection import (
    Connection,
    ConnectionParams,
    format_connection,
    redact_url,
    to_url,
)
from casekit.infrastructure.database.metrics import (
    DatabaseMetrics,
    get_database_metrics,
    register_metrics,
)
from casekit.infrastructure.database.migrations import (
    AlembicMigrator,
    MigrationBatch,
    Migrator,
    run_migrations,
    transient_error_code,
)
from casekit.infrastructure.database.session import (
    QueryMonitor,
    close_database,
    create_database_engine,
    fetch_rows,
    get_database_config,
    get_engine,
)

__all__ = [
    "AlembicMigrator",
    "Base",
    "Connection",
    "ConnectionParams",
    "DatabaseMetrics",
    "DatabaseSetupConfig",
    "MigrationBatch",
    "MigrationsConfig",
    "Migrator",
    "PoolConfig",
    "QueryMonitor",
    "SetupOptions",
    "close_database",
    "create_config",
    "create_database_engine",
    "fetch_rows",
    "format_connection",
    "get_database_config",
    "get_database_metrics",
    "get_engine",
    "post_process_response",
    "redact_url",
    "register_metrics",
    "run_migrations",
    "setup_database",
    "to_url",
    "transient_error_code",
    "wrap_identifier",
]
