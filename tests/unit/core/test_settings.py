"""Unit tests for casekit/core/config.py module."""

import pytest
import pytest_check
from pydantic import ValidationError

from casekit.core.config import (
    DatabaseConfig,
    LogConfig,
    MetricsConfig,
    Settings,
    get_settings,
)


@pytest.mark.unit
class TestSettingsDefaults:
    """Test default configuration values."""

    def test_default_settings(self) -> None:
        """Test that settings load with documented defaults."""
        settings = Settings()
        db_config = settings.database_config

        with pytest_check.check:
            assert settings.app_name == "casekit"
        with pytest_check.check:
            assert settings.environment == "development"
        with pytest_check.check:
            assert settings.debug is False
        with pytest_check.check:
            assert db_config.database_url is None
        with pytest_check.check:
            assert db_config.client == "postgresql+asyncpg"
        with pytest_check.check:
            assert (db_config.pool_min, db_config.pool_max) == (2, 10)
        with pytest_check.check:
            assert db_config.migrate_up is True
        with pytest_check.check:
            assert db_config.retry_delay_seconds == 3.0
        with pytest_check.check:
            assert settings.log_config.slow_query_threshold_ms == 200
        with pytest_check.check:
            assert settings.metrics_config.export_interval_ms == 5000

    def test_get_settings_is_cached(self) -> None:
        """Test that get_settings returns the same instance."""
        assert get_settings() is get_settings()


@pytest.mark.unit
class TestEnvironmentOverrides:
    """Test loading configuration from environment variables."""

    def test_nested_delimiter(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that nested sections are set with a double underscore."""
        monkeypatch.setenv(
            "DATABASE_CONFIG__DATABASE_URL", "postgresql://u:p@db:5432/app"
        )
        monkeypatch.setenv("DATABASE_CONFIG__POOL_MAX", "20")
        monkeypatch.setenv("LOG_CONFIG__SLOW_QUERY_THRESHOLD_MS", "50")
        monkeypatch.setenv("METRICS_CONFIG__EXPORTER_TYPE", "none")

        settings = Settings()

        assert settings.database_config.database_url == "postgresql://u:p@db:5432/app"
        assert settings.database_config.pool_max == 20
        assert settings.log_config.slow_query_threshold_ms == 50
        assert settings.metrics_config.exporter_type == "none"

    def test_empty_database_url_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an empty database URL counts as unset."""
        monkeypatch.setenv("DATABASE_CONFIG__DATABASE_URL", "")

        assert Settings().database_config.database_url is None


@pytest.mark.unit
class TestValidation:
    """Test configuration validation."""

    def test_pool_max_below_min_is_rejected(self) -> None:
        """Test that the pool bounds must be ordered."""
        with pytest.raises(ValidationError, match="pool_max must be greater"):
            DatabaseConfig(pool_min=5, pool_max=2)

    def test_retry_delay_must_be_positive(self) -> None:
        """Test that the migration retry delay cannot be zero."""
        with pytest.raises(ValidationError):
            DatabaseConfig(retry_delay_seconds=0)

    def test_unknown_exporter_type_is_rejected(self) -> None:
        """Test that only known exporter types are accepted."""
        with pytest.raises(ValidationError):
            MetricsConfig(exporter_type="prometheus")  # type: ignore[arg-type]

    def test_empty_exporter_endpoint_is_none(self) -> None:
        """Test that an empty exporter endpoint counts as unset."""
        assert MetricsConfig(exporter_endpoint="").exporter_endpoint is None

    def test_sensitive_fields_default(self) -> None:
        """Test that passwords are redacted by default."""
        assert "password" in LogConfig().sensitive_fields


@pytest.mark.unit
class TestFormatterDetection:
    """Test log formatter auto-detection."""

    def test_development_uses_console(self) -> None:
        """Test that development defaults to the console formatter."""
        assert Settings().log_config.log_formatter_type == "console"

    def test_production_uses_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that production defaults to the JSON formatter."""
        monkeypatch.setenv("ENVIRONMENT", "production")

        assert Settings().log_config.log_formatter_type == "json"

    @pytest.mark.parametrize("variable", ["K_SERVICE", "AWS_EXECUTION_ENV"])
    def test_managed_runtime_uses_json(
        self, monkeypatch: pytest.MonkeyPatch, variable: str
    ) -> None:
        """Test that managed runtimes get structured logs."""
        monkeypatch.setenv(variable, "anything")

        assert Settings().log_config.log_formatter_type == "json"

    def test_explicit_formatter_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an explicit formatter is not overridden."""
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_CONFIG__LOG_FORMATTER_TYPE", "console")

        assert Settings().log_config.log_formatter_type == "console"
