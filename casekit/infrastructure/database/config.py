"""Database setup configuration with key-case hooks.

``create_config`` turns a connection descriptor into everything needed to
build an engine and run migrations, together with the two hooks that keep
database naming out of application code:

- **post_process_response**: camelCases the keys of result rows
- **wrap_identifier**: snake_cases identifiers on their way to SQL
"""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.engine import URL

from casekit.casing import convert_keys, decamelize, is_container
from casekit.core.exceptions import MissingConnectionError
from casekit.infrastructure.constants import (
    DEFAULT_CLIENT,
    DEFAULT_MIGRATIONS_DIRECTORY,
    DEFAULT_POOL_MAX,
    DEFAULT_POOL_MIN,
    DEFAULT_VERSION_TABLE,
    POOL_RECYCLE_SECONDS,
)
from casekit.infrastructure.database.connection import (
    Connection,
    ConnectionParams,
    to_url,
)

type StringTransform = Callable[[str], str]


def post_process_response(result: Any) -> Any:
    """Convert the keys of a query result to camelCase.

    Only the row objects themselves are converted; nested JSON columns keep
    their keys. Empty results and scalars pass through untouched.

    Args:
        result: A row mapping, a list of row mappings, or a scalar.

    Returns:
        Any: The result with camelCase keys.
    """
    if not is_container(result) or not result:
        return result
    return convert_keys(result)


def wrap_identifier(value: str, orig_impl: StringTransform) -> str:
    """Snake-case an identifier before the dialect quotes it.

    Args:
        value: Identifier as written in application code, e.g. ``createdAt``.
        orig_impl: The dialect's own identifier wrapping.

    Returns:
        str: The wrapped snake_case identifier.
    """
    return orig_impl(decamelize(value))


class PoolConfig(BaseModel):
    """Connection pool bounds."""

    model_config = ConfigDict(frozen=True)

    min: int = Field(default=DEFAULT_POOL_MIN, ge=0)
    max: int = Field(default=DEFAULT_POOL_MAX, ge=1)


class MigrationsConfig(BaseModel):
    """Where migrations live and where their state is recorded."""

    model_config = ConfigDict(frozen=True)

    directory: Path = Field(default=Path(DEFAULT_MIGRATIONS_DIRECTORY))
    version_table: str = Field(default=DEFAULT_VERSION_TABLE)


class DatabaseSetupConfig(BaseModel):
    """Everything needed to create an engine and migrate a database."""

    model_config = ConfigDict(frozen=True)

    client: str
    connection: Connection
    pool: PoolConfig = Field(default_factory=PoolConfig)
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)
    post_process_response: Callable[[Any], Any] = post_process_response
    wrap_identifier: Callable[[str, StringTransform], str] = wrap_identifier

    @property
    def url(self) -> URL:
        """SQLAlchemy URL for the configured connection."""
        return to_url(self.connection, self.client)

    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for ``create_async_engine``.

        The pool keeps ``pool.min`` connections and may grow to ``pool.max``.
        """
        return {
            "pool_size": self.pool.min,
            "max_overflow": max(self.pool.max - self.pool.min, 0),
            "pool_pre_ping": True,
            "pool_recycle": POOL_RECYCLE_SECONDS,
        }


def create_config(
    connection: Connection | Mapping[str, Any] | None,
    *,
    client: str = DEFAULT_CLIENT,
    migrations_directory: str | Path = DEFAULT_MIGRATIONS_DIRECTORY,
    pool: PoolConfig | None = None,
    version_table: str = DEFAULT_VERSION_TABLE,
) -> DatabaseSetupConfig:
    """Build the database setup configuration.

    Args:
        connection: URL string, ``ConnectionParams`` or a mapping of them.
        client: SQLAlchemy drivername for structured or bare postgres URLs.
        migrations_directory: Alembic script location.
        pool: Pool bounds, defaults to 2..10 connections.
        version_table: Table Alembic records the applied revision in.

    Returns:
        DatabaseSetupConfig: The configuration.

    Raises:
        MissingConnectionError: If no connection is given.
    """
    if connection is None or connection == "":
        raise MissingConnectionError

    if isinstance(connection, Mapping):
        connection = ConnectionParams.model_validate(connection)

    return DatabaseSetupConfig(
        client=client,
        connection=connection,
        pool=pool or PoolConfig(),
        migrations=MigrationsConfig(
            directory=Path(migrations_directory), version_table=version_table
        ),
    )
