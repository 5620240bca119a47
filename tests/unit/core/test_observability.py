"""Unit tests for casekit/core/observability.py module."""

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader, MetricExportResult
from pytest_mock import MockerFixture

from casekit.core.config import Settings
from casekit.core.exceptions import ConfigurationError
from casekit.core.observability import (
    DEFAULT_OTLP_ENDPOINT,
    LoguruMetricExporter,
    get_metric_exporter,
    setup_metrics,
)


@pytest.mark.unit
class TestGetMetricExporter:
    """Test exporter selection."""

    def test_console_exporter(self) -> None:
        """Test that console settings use the loguru exporter."""
        assert isinstance(get_metric_exporter(Settings()), LoguruMetricExporter)

    def test_none_exporter(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that export can be disabled."""
        monkeypatch.setenv("METRICS_CONFIG__EXPORTER_TYPE", "none")

        assert get_metric_exporter(Settings()) is None

    def test_otlp_exporter_defaults_endpoint(
        self, mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that OTLP falls back to the local collector outside production."""
        monkeypatch.setenv("METRICS_CONFIG__EXPORTER_TYPE", "otlp")
        mock_exporter = mocker.patch("casekit.core.observability.OTLPMetricExporter")

        exporter = get_metric_exporter(Settings())

        assert exporter is mock_exporter.return_value
        mock_exporter.assert_called_once_with(
            endpoint=DEFAULT_OTLP_ENDPOINT, insecure=True
        )

    def test_otlp_exporter_uses_endpoint(
        self, mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that a configured endpoint is used."""
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("METRICS_CONFIG__EXPORTER_TYPE", "otlp")
        monkeypatch.setenv("METRICS_CONFIG__EXPORTER_ENDPOINT", "http://otel:4317")
        mock_exporter = mocker.patch("casekit.core.observability.OTLPMetricExporter")

        get_metric_exporter(Settings())

        mock_exporter.assert_called_once_with(
            endpoint="http://otel:4317", insecure=False
        )

    def test_otlp_in_production_requires_endpoint(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that production OTLP export without an endpoint is refused."""
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("METRICS_CONFIG__EXPORTER_TYPE", "otlp")

        with pytest.raises(ConfigurationError, match="endpoint is required"):
            get_metric_exporter(Settings())


@pytest.mark.unit
class TestLoguruMetricExporter:
    """Test the loguru-backed exporter."""

    def test_logs_each_data_point(self, mocker: MockerFixture) -> None:
        """Test that every collected point is logged."""
        reader = InMemoryMetricReader()
        provider = MeterProvider(metric_readers=[reader])
        counter = provider.get_meter("test").create_counter("rows_converted")
        counter.add(3, {"table": "orders"})
        metrics_data = reader.get_metrics_data()
        mock_logger = mocker.patch("casekit.core.observability.logger")

        result = LoguruMetricExporter().export(metrics_data)

        assert result is MetricExportResult.SUCCESS
        mock_logger.bind.assert_called_once()
        assert mock_logger.bind.call_args.kwargs["metric"] == "rows_converted"
        assert mock_logger.bind.call_args.kwargs["attributes"] == {"table": "orders"}
        mock_logger.bind.return_value.debug.assert_called_once_with(
            "Metric {} = {}", "rows_converted", 3
        )

    def test_flush_and_shutdown(self) -> None:
        """Test that flushing succeeds and shutdown is a no-op."""
        exporter = LoguruMetricExporter()

        assert exporter.force_flush() is True
        exporter.shutdown()


@pytest.mark.unit
class TestSetupMetrics:
    """Test meter provider setup."""

    def test_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that disabled metrics configure nothing."""
        monkeypatch.setenv("METRICS_CONFIG__ENABLE_METRICS", "false")

        assert setup_metrics(Settings()) is None

    def test_configures_global_provider(
        self, mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that the provider is built and set globally."""
        monkeypatch.setenv("METRICS_CONFIG__EXPORTER_TYPE", "none")
        mock_set_provider = mocker.patch(
            "casekit.core.observability.metrics.set_meter_provider"
        )

        provider = setup_metrics(Settings())

        assert isinstance(provider, MeterProvider)
        mock_set_provider.assert_called_once_with(provider)

    def test_periodic_reader_uses_export_interval(
        self, mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that pool sampling follows the configured interval."""
        monkeypatch.setenv("METRICS_CONFIG__EXPORT_INTERVAL_MS", "1000")
        mocker.patch("casekit.core.observability.metrics.set_meter_provider")
        mock_reader = mocker.patch(
            "casekit.core.observability.PeriodicExportingMetricReader"
        )
        mocker.patch("casekit.core.observability.MeterProvider")

        setup_metrics(Settings())

        assert mock_reader.call_args.kwargs["export_interval_millis"] == 1000
