"""Metrics configuration using OpenTelemetry with pluggable exporters.

Metric points are exported through one of:
- **console**: Loguru debug records, for local development
- **otlp**: An OTLP gRPC collector
- **none**: Instruments are created but nothing is exported

A periodic reader collects on a fixed interval; each collection samples every
observable gauge registered on the provider.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from loguru import logger
from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    MetricExporter,
    MetricExportResult,
    MetricsData,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource

from casekit.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from casekit.core.config import Settings

SERVICE_NAME_KEY: Final[str] = "service.name"
SERVICE_VERSION_KEY: Final[str] = "service.version"
ENVIRONMENT_KEY: Final[str] = "deployment.environment"
DEFAULT_OTLP_ENDPOINT: Final[str] = "http://localhost:4317"


def _point_value(point: Any) -> float | int | None:
    """Return the headline value of a data point.

    Gauges and sums carry ``value``; histograms carry ``sum``.
    """
    value = getattr(point, "value", None)
    if value is None:
        value = getattr(point, "sum", None)
    return value


class LoguruMetricExporter(MetricExporter):
    """Metric exporter that writes data points through the Loguru logger."""

    def __init__(self) -> None:
        super().__init__(preferred_temporality=None, preferred_aggregation=None)

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10_000,  # noqa: ARG002
        **kwargs: Any,  # noqa: ARG002
    ) -> MetricExportResult:
        """Log every data point of a collection."""
        for resource_metrics in metrics_data.resource_metrics:
            for scope_metrics in resource_metrics.scope_metrics:
                for metric in scope_metrics.metrics:
                    for point in metric.data.data_points:
                        logger.bind(
                            metric=metric.name,
                            attributes=dict(point.attributes or {}),
                            count=getattr(point, "count", None),
                        ).debug("Metric {} = {}", metric.name, _point_value(point))
        return MetricExportResult.SUCCESS

    def force_flush(self, timeout_millis: float = 10_000) -> bool:  # noqa: ARG002
        """Nothing is buffered."""
        return True

    def shutdown(
        self,
        timeout_millis: float = 30_000,  # noqa: ARG002
        **kwargs: Any,  # noqa: ARG002
    ) -> None:
        """Nothing to release."""


def get_metric_exporter(settings: Settings) -> MetricExporter | None:
    """Get the metric exporter for the configured exporter type.

    Args:
        settings: Application settings.

    Returns:
        MetricExporter | None: Configured exporter or None if disabled.

    Raises:
        ConfigurationError: If OTLP export is requested in production
            without an endpoint.
    """
    metrics_config = settings.metrics_config
    exporter_type = metrics_config.exporter_type

    if exporter_type == "console":
        logger.info("Using Loguru metric exporter for development")
        return LoguruMetricExporter()

    if exporter_type == "otlp":
        endpoint = metrics_config.exporter_endpoint
        if endpoint is None:
            if settings.environment == "production":
                msg = "An OTLP exporter endpoint is required in production"
                raise ConfigurationError(
                    msg, context={"exporter_type": exporter_type}
                )
            endpoint = DEFAULT_OTLP_ENDPOINT

        logger.info("Using OTLP metric exporter at {}", endpoint)
        return OTLPMetricExporter(
            endpoint=endpoint,
            insecure=settings.environment == "development",
        )

    logger.info("Metric export explicitly disabled")
    return None


def setup_metrics(settings: Settings) -> MeterProvider | None:
    """Configure the global OpenTelemetry meter provider.

    Args:
        settings: Application settings.

    Returns:
        MeterProvider | None: The global provider, or None when metrics are
        disabled.
    """
    metrics_config = settings.metrics_config
    if not metrics_config.enable_metrics:
        logger.info("Metrics disabled by configuration")
        return None

    resource = Resource.create(
        {
            SERVICE_NAME_KEY: settings.app_name,
            SERVICE_VERSION_KEY: settings.app_version,
            ENVIRONMENT_KEY: settings.environment,
        }
    )

    readers = []
    exporter = get_metric_exporter(settings)
    if exporter is not None:
        readers.append(
            PeriodicExportingMetricReader(
                exporter, export_interval_millis=metrics_config.export_interval_ms
            )
        )

    meter_provider = MeterProvider(resource=resource, metric_readers=readers)
    metrics.set_meter_provider(meter_provider)

    logger.info(
        "Metrics configured",
        exporter_type=metrics_config.exporter_type,
        export_interval_ms=metrics_config.export_interval_ms,
    )
    return meter_provider
