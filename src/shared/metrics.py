from opentelemetry import metrics
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from .config import settings


def setup_metrics(app_name: str | None = None) -> MeterProvider:
    """Configure OpenTelemetry metrics for the keysmith_* instruments.

    Prometheus is scraped; the console reader is for local debugging and only
    runs outside production.
    """
    resource = Resource.create(
        {
            "service.name": app_name or settings.APP_NAME,
            "deployment.environment": settings.APP_ENV,
        }
    )

    readers = [PrometheusMetricReader()]
    if settings.APP_ENV != "production":
        readers.append(PeriodicExportingMetricReader(ConsoleMetricExporter()))

    provider = MeterProvider(resource=resource, metric_readers=readers)
    metrics.set_meter_provider(provider)
    return provider
