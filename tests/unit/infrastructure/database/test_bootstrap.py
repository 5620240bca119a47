"""Unit tests for casekit/infrastructure/database/bootstrap.py module."""

import pytest
from pydantic import ValidationError
from pytest_mock import MockerFixture

from casekit.infrastructure.database.bootstrap import SetupOptions, setup_database
from casekit.infrastructure.database.config import create_config
from casekit.infrastructure.database.migrations import MigrationBatch

MODULE = "casekit.infrastructure.database.bootstrap"


@pytest.mark.unit
class TestSetupOptions:
    """Test setup option defaults and validation."""

    def test_defaults(self) -> None:
        """Test the default options."""
        options = SetupOptions()

        assert options.slow_query_threshold_ms == 200
        assert options.migrate_up is True
        assert options.retry_delay_seconds == 3.0
        assert options.pool_name == "default"

    @pytest.mark.parametrize(
        "overrides",
        [{"slow_query_threshold_ms": -1}, {"retry_delay_seconds": 0}],
    )
    def test_invalid_options(self, overrides: dict[str, float]) -> None:
        """Test that negative thresholds and zero delays are rejected."""
        with pytest.raises(ValidationError):
            SetupOptions(**overrides)


@pytest.mark.unit
class TestSetupDatabase:
    """Test preparing an engine."""

    async def test_full_setup(self, mocker: MockerFixture) -> None:
        """Test that monitoring, pool metrics and migrations are set up."""
        monitor_cls = mocker.patch(f"{MODULE}.QueryMonitor")
        engine = mocker.Mock()
        metrics = mocker.Mock()
        logger = mocker.Mock()
        batch = MigrationBatch("0001", ("0001_init.py",))
        migrator = mocker.Mock()
        migrator.latest = mocker.AsyncMock(return_value=batch)

        result = await setup_database(
            engine,
            create_config("postgresql://db/orders"),
            logger=logger,
            options=SetupOptions(slow_query_threshold_ms=50, pool_name="main"),
            migrator=migrator,
            metrics=metrics,
        )

        assert result is batch
        monitor_cls.assert_called_once_with(
            slow_query_threshold_ms=50, metrics=metrics, logger=logger
        )
        monitor_cls.return_value.attach.assert_called_once_with(engine)
        metrics.track_pool.assert_called_once_with(engine.sync_engine.pool, "main")
        logger.info.assert_any_call("Migration batch {} run: {} migrations", "0001", 1)

    async def test_skip_migrations(self, mocker: MockerFixture) -> None:
        """Test that migrations are skipped when migrate_up is off."""
        mocker.patch(f"{MODULE}.QueryMonitor")
        migrator = mocker.Mock()
        migrator.latest = mocker.AsyncMock()

        result = await setup_database(
            mocker.Mock(),
            create_config("postgresql://db/orders"),
            logger=mocker.Mock(),
            options=SetupOptions(migrate_up=False),
            migrator=migrator,
        )

        assert result is None
        migrator.latest.assert_not_awaited()

    async def test_defaults_to_alembic(self, mocker: MockerFixture) -> None:
        """Test that Alembic migrates the engine when no migrator is given."""
        mocker.patch(f"{MODULE}.QueryMonitor")
        alembic_cls = mocker.patch(f"{MODULE}.AlembicMigrator")
        run = mocker.patch(
            f"{MODULE}.run_migrations",
            new_callable=mocker.AsyncMock,
            return_value=MigrationBatch("0001"),
        )
        engine = mocker.Mock()
        logger = mocker.Mock()
        config = create_config("postgresql://db/orders")

        await setup_database(
            engine,
            config,
            logger=logger,
            options=SetupOptions(retry_delay_seconds=0.5),
        )

        alembic_cls.assert_called_once_with(engine, config.migrations)
        run.assert_awaited_once_with(
            alembic_cls.return_value, logger=logger, retry_delay=0.5
        )

    async def test_without_metrics(self, mocker: MockerFixture) -> None:
        """Test that the monitor gets no instruments when metrics are off."""
        monitor_cls = mocker.patch(f"{MODULE}.QueryMonitor")
        logger = mocker.Mock()

        await setup_database(
            mocker.Mock(),
            create_config("postgresql://db/orders"),
            logger=logger,
            options=SetupOptions(migrate_up=False),
        )

        monitor_cls.assert_called_once_with(
            slow_query_threshold_ms=200, metrics=None, logger=logger
        )
