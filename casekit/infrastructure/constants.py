"""Infrastructure-related constants, particularly for the database."""

# Engine defaults
DEFAULT_CLIENT = "postgresql+asyncpg"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_POOL_MIN = 2
DEFAULT_POOL_MAX = 10
POOL_RECYCLE_SECONDS = 3600  # 1 hour

# Migrations
DEFAULT_MIGRATIONS_DIRECTORY = "./migrations"
DEFAULT_VERSION_TABLE = "alembic_version"
MIGRATION_RETRY_DELAY_SECONDS = 3.0

# Monitoring
SLOW_QUERY_THRESHOLD_MS = 200
POOL_SAMPLE_INTERVAL_MS = 5000

# Naming convention for constraints to ensure consistency
# and avoid conflicts during migrations
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
