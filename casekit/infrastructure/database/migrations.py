"""Schema migrations with retry while the database is unreachable.

``run_migrations`` drives any ``Migrator`` to the latest revision. While the
database cannot be reached (connection refused, host not found) it waits a
fixed delay and tries again, indefinitely. Every other failure is fatal.

``AlembicMigrator`` is the Alembic-backed migrator. It upgrades to ``heads``
over one connection of the application engine and reports which revision
files were applied.
"""

import asyncio
import errno
import socket
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Protocol

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import Script, ScriptDirectory
from loguru import logger
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

from casekit.core.exceptions import (
    CasekitError,
    MigrationError,
    TransientConnectionError,
)
from casekit.infrastructure.constants import MIGRATION_RETRY_DELAY_SECONDS
from casekit.infrastructure.database.config import MigrationsConfig

CONNECTION_REFUSED: Final = "ECONNREFUSED"
HOST_NOT_FOUND: Final = "ENOTFOUND"

# Driver messages for the two transient conditions, lower-cased
_REFUSED_MESSAGES: Final = ("connection refused", "[errno 111]")
_NOT_FOUND_MESSAGES: Final = (
    "name or service not known",
    "nodename nor servname provided",
    "could not translate host name",
    "temporary failure in name resolution",
)


@dataclass(frozen=True, slots=True)
class MigrationBatch:
    """Outcome of one migrate-to-latest run.

    Attributes:
        batch: Identifier of the run; for Alembic, the resulting head(s).
        migrations: Names of the migrations applied, oldest first.
    """

    batch: str
    migrations: tuple[str, ...] = ()


class Migrator(Protocol):
    """Migrates a database to its latest schema version."""

    async def latest(self) -> MigrationBatch:
        """Apply every pending migration."""
        ...


class SetupLogger(Protocol):
    """Logger contract of the database setup."""

    def info(self, message: str, /, *args: Any, **kwargs: Any) -> None: ...

    def warning(self, message: str, /, *args: Any, **kwargs: Any) -> None: ...

    def error(self, message: str, /, *args: Any, **kwargs: Any) -> None: ...


def _error_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    pending: list[BaseException | None] = [exc]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        # SQLAlchemy keeps the DBAPI error on .orig
        pending.extend(
            (current.__context__, current.__cause__, getattr(current, "orig", None))
        )


def _code_of(exc: BaseException) -> str | None:
    if isinstance(exc, TransientConnectionError):
        return exc.code
    if isinstance(exc, socket.gaierror):
        return HOST_NOT_FOUND
    if isinstance(exc, ConnectionRefusedError):
        return CONNECTION_REFUSED
    if isinstance(exc, OSError) and exc.errno == errno.ECONNREFUSED:
        return CONNECTION_REFUSED

    message = str(exc).lower()
    if any(fragment in message for fragment in _REFUSED_MESSAGES):
        return CONNECTION_REFUSED
    if any(fragment in message for fragment in _NOT_FOUND_MESSAGES):
        return HOST_NOT_FOUND
    return None


def transient_error_code(exc: BaseException) -> str | None:
    """Classify an error as a transient connection failure.

    The error, its causes and any wrapped DBAPI error are inspected.

    Args:
        exc: The error raised by a migration attempt.

    Returns:
        str | None: ``ECONNREFUSED`` or ``ENOTFOUND`` for transient
        failures, None for everything else.
    """
    for error in _error_chain(exc):
        code = _code_of(error)
        if code is not None:
            return code
    return None


async def run_migrations(
    migrator: Migrator,
    *,
    logger: SetupLogger = logger,
    retry_delay: float = MIGRATION_RETRY_DELAY_SECONDS,
) -> MigrationBatch:
    """Migrate to latest, retrying while the database is unreachable.

    Args:
        migrator: The migrator to run.
        logger: Destination of progress and retry messages.
        retry_delay: Seconds to wait between attempts.

    Returns:
        MigrationBatch: The successful run.

    Raises:
        MigrationError: If the migration fails for any other reason.
        CasekitError: Library errors raised by the migrator, unchanged.
    """
    while True:
        try:
            batch = await migrator.latest()
        except Exception as exc:
            code = transient_error_code(exc)
            if code is None:
                if isinstance(exc, CasekitError):
                    raise
                msg = "Database migration failed"
                raise MigrationError(msg, cause=exc) from exc

            logger.error("Could not connect to db: {}", code)
            await asyncio.sleep(retry_delay)
            logger.info("Retrying db setup...")
            continue

        if batch.migrations:
            logger.info(
                "Migration batch {} run: {} migrations",
                batch.batch,
                len(batch.migrations),
            )
            logger.info("{}", "\n".join(batch.migrations))
        return batch


def _applied_revisions(script: ScriptDirectory, heads: tuple[str, ...]) -> set[str]:
    applied: set[str] = set()
    for head in heads:
        applied.update(rev.revision for rev in script.iterate_revisions(head, "base"))
    return applied


def _pending_scripts(script: ScriptDirectory, heads: tuple[str, ...]) -> list[Script]:
    applied = _applied_revisions(script, heads)
    pending = [rev for rev in script.walk_revisions() if rev.revision not in applied]
    # walk_revisions runs from the heads down
    pending.reverse()
    return pending


class AlembicMigrator:
    """Migrates with Alembic over a connection of the application engine.

    The migrations directory must hold an Alembic ``env.py`` that uses the
    connection passed in ``config.attributes["connection"]`` when present.

    Args:
        engine: Engine to migrate through.
        migrations: Script location and version table.
    """

    def __init__(self, engine: AsyncEngine, migrations: MigrationsConfig) -> None:
        self.engine = engine
        self.migrations = migrations

    def alembic_config(self) -> Config:
        """Build the Alembic configuration for the migrations directory."""
        config = Config()
        config.set_main_option("script_location", str(self.migrations.directory))
        config.set_main_option("version_table", self.migrations.version_table)
        return config

    async def latest(self) -> MigrationBatch:
        """Upgrade to the latest revision(s)."""
        config = self.alembic_config()
        async with self.engine.begin() as connection:
            return await connection.run_sync(self._upgrade, config)

    def _current_heads(self, connection: Connection) -> tuple[str, ...]:
        context = MigrationContext.configure(
            connection, opts={"version_table": self.migrations.version_table}
        )
        return context.get_current_heads()

    def _upgrade(self, connection: Connection, config: Config) -> MigrationBatch:
        script = ScriptDirectory.from_config(config)
        pending = _pending_scripts(script, self._current_heads(connection))

        config.attributes["connection"] = connection
        command.upgrade(config, "heads")

        heads = self._current_heads(connection)
        return MigrationBatch(
            batch=", ".join(heads),
            migrations=tuple(Path(rev.path).name for rev in pending),
        )
