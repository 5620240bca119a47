"""Shared fixtures for integration tests.

Integration tests run against file-backed SQLite databases through aiosqlite
and the project's own Alembic environment script.
"""

import shutil
from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from casekit.core.config import get_settings
from casekit.infrastructure.database.config import DatabaseSetupConfig, create_config
from casekit.infrastructure.database.metrics import reset_database_metrics
from casekit.infrastructure.database.session import create_database_engine

PROJECT_MIGRATIONS = Path(__file__).parents[2] / "migrations"

_REVISION_TEMPLATE = '''"""{message}

Revision ID: {revision}
Revises: {down_revision}
"""

import sqlalchemy as sa
from alembic import op

revision = {revision!r}
down_revision = {down_revision!r}
branch_labels = None
depends_on = None


def upgrade() -> None:
    {upgrade}


def downgrade() -> None:
    {downgrade}
'''

REVISIONS = {
    "0001_create_widget.py": _REVISION_TEMPLATE.format(
        message="create widget",
        revision="0001",
        down_revision=None,
        upgrade=(
            'op.create_table("widget", '
            'sa.Column("id", sa.Integer, primary_key=True), '
            'sa.Column("display_name", sa.String(50), nullable=False))'
        ),
        downgrade='op.drop_table("widget")',
    ),
    "0002_add_gadget.py": _REVISION_TEMPLATE.format(
        message="add gadget",
        revision="0002",
        down_revision="0001",
        upgrade=(
            'op.create_table("gadget", sa.Column("id", sa.Integer, primary_key=True))'
        ),
        downgrade='op.drop_table("gadget")',
    ),
    "0001_broken.py": _REVISION_TEMPLATE.format(
        message="broken",
        revision="0001",
        down_revision=None,
        upgrade='op.execute("SELECT * FROM missing_table")',
        downgrade="pass",
    ),
}

type RevisionWriter = Callable[[str], Path]


@pytest.fixture(autouse=True)
def clean_state() -> Generator[None]:
    """Clear cached settings and registered instruments around each test."""
    get_settings.cache_clear()
    reset_database_metrics()
    yield
    get_settings.cache_clear()
    reset_database_metrics()


@pytest.fixture
def migrations_dir(tmp_path: Path) -> Path:
    """Provide a migrations directory with the project's env.py and no revisions.

    Returns:
        Path: The script location.
    """
    directory = tmp_path / "migrations"
    (directory / "versions").mkdir(parents=True)
    shutil.copy(PROJECT_MIGRATIONS / "env.py", directory / "env.py")
    shutil.copy(PROJECT_MIGRATIONS / "script.py.mako", directory / "script.py.mako")
    return directory


@pytest.fixture
def write_revision(migrations_dir: Path) -> RevisionWriter:
    """Provide a helper that writes one of ``REVISIONS`` into the versions dir."""

    def write(filename: str) -> Path:
        path = migrations_dir / "versions" / filename
        path.write_text(REVISIONS[filename])
        return path

    return write


@pytest.fixture
def setup_config(tmp_path: Path, migrations_dir: Path) -> DatabaseSetupConfig:
    """Provide a configuration for a SQLite database in ``tmp_path``."""
    return create_config(
        f"sqlite+aiosqlite:///{tmp_path / 'app.db'}",
        migrations_directory=migrations_dir,
    )


@pytest.fixture
async def engine(setup_config: DatabaseSetupConfig) -> AsyncGenerator[AsyncEngine]:
    """Provide an engine created from ``setup_config`` and dispose it after."""
    engine = create_database_engine(setup_config)
    yield engine
    await engine.dispose()
