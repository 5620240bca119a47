"""Alembic environment script for async database migrations.

When a connection is handed over in ``config.attributes["connection"]`` (as
``AlembicMigrator`` does) migrations run on it directly. Otherwise, for the
``alembic`` command line, an async engine is built from the
``sqlalchemy.url`` option or from the application settings.
"""

import asyncio
import logging

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from casekit.core.config import get_settings
from casekit.infrastructure.constants import DEFAULT_VERSION_TABLE
from casekit.infrastructure.database.base import Base
from casekit.infrastructure.database.config import create_config

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

logger = logging.getLogger(__name__)

# Set the target metadata for autogenerate support
target_metadata = Base.metadata

version_table = config.get_main_option("version_table") or DEFAULT_VERSION_TABLE


def _database_url() -> str:
    if url := config.get_main_option("sqlalchemy.url"):
        return url
    db_config = get_settings().database_config
    setup_config = create_config(db_config.database_url, client=db_config.client)
    return setup_config.url.render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    logger.info("Running migrations in offline mode")

    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        version_table=version_table,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run migrations using the provided connection.

    Args:
        connection: The database connection to use for migrations.
    """
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        version_table=version_table,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations in 'online' mode on a throwaway async engine."""
    logger.info("Running migrations in online mode with async engine")

    connectable = create_async_engine(_database_url(), poolclass=pool.NullPool)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connection = config.attributes.get("connection")
    if connection is not None:
        do_run_migrations(connection)
        return

    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
