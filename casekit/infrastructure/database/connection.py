"""Connection descriptors, URL building and redacted display.

A connection is either a URL string or a structured set of parameters.
Either form can be turned into a SQLAlchemy ``URL`` for engine creation or
rendered for logs with its credentials masked.
"""

import re
from typing import Final

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from casekit.core.constants import REDACTED_PASSWORD
from casekit.infrastructure.constants import DEFAULT_CLIENT, DEFAULT_HOST

# user:password@ inside strings that are not parseable URLs
_INLINE_AUTH_PATTERN: Final = re.compile(r"(//[^:/@\s]*):[^@/\s]*@")

# Schemes that mean "postgres, driver unspecified"
_BARE_POSTGRES_SCHEMES: Final = frozenset({"postgres", "postgresql"})


class ConnectionParams(BaseModel):
    """Structured connection descriptor."""

    model_config = ConfigDict(frozen=True)

    database: str | None = Field(default=None, description="Database name")
    user: str | None = Field(default=None, description="User name")
    password: str | None = Field(default=None, description="Password")
    host: str | None = Field(default=None, description="Server host")
    port: int | None = Field(default=None, gt=0, le=65535, description="Port")


type Connection = str | ConnectionParams


def to_url(connection: Connection, client: str = DEFAULT_CLIENT) -> URL:
    """Build a SQLAlchemy URL for a connection descriptor.

    String connections keep their own driver unless they name bare
    ``postgres``/``postgresql``, in which case ``client`` supplies it.

    Args:
        connection: URL string or structured parameters.
        client: SQLAlchemy drivername, e.g. ``postgresql+asyncpg``.

    Returns:
        URL: The URL to hand to ``create_async_engine``.
    """
    if isinstance(connection, str):
        url = make_url(connection)
        if url.drivername in _BARE_POSTGRES_SCHEMES:
            url = url.set(drivername=client)
        return url

    return URL.create(
        drivername=client,
        username=connection.user,
        password=connection.password,
        host=connection.host,
        port=connection.port,
        database=connection.database,
    )


def redact_url(connection: str) -> str:
    """Mask the password of a connection string.

    Args:
        connection: Connection string, usually a URL.

    Returns:
        str: The string with any password replaced by ``****``.
    """
    try:
        url = make_url(connection)
    except ArgumentError:
        return _INLINE_AUTH_PATTERN.sub(rf"\1:{REDACTED_PASSWORD}@", connection)

    if url.password is None:
        return connection
    return url.set(password=REDACTED_PASSWORD).render_as_string(hide_password=False)


def format_connection(connection: Connection) -> str:
    """Render a connection descriptor for logging with credentials masked.

    Args:
        connection: URL string or structured parameters.

    Returns:
        str: A display string such as ``//app:****@db.internal:5432/orders``.

    Examples:
        >>> format_connection(ConnectionParams(user="app", password="s3cr3t"))
        '//app:****@127.0.0.1'
        >>> format_connection("postgresql://app:s3cr3t@db/orders")
        'postgresql://app:****@db/orders'
    """
    if isinstance(connection, str):
        return redact_url(connection)

    auth = ""
    if connection.user or connection.password:
        user = connection.user or ""
        password = REDACTED_PASSWORD if connection.password else ""
        auth = f"{user}:{password}@"

    host = connection.host or DEFAULT_HOST
    port = f":{connection.port}" if connection.port else ""
    database = ""
    if connection.database:
        database = connection.database
        if not database.startswith("/"):
            database = f"/{database}"

    return f"//{auth}{host}{port}{database}"
