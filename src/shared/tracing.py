from opentelemetry import trace
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from sqlalchemy import Engine

from .config import settings


def setup_tracing(engine: Engine | None = None) -> None:
    """Configure OpenTelemetry tracing and instrument logging/SQLAlchemy."""
    resource = Resource.create({"service.name": settings.APP_NAME})
    provider = TracerProvider(resource=resource)

    # Export traces to console
    processor = BatchSpanProcessor(ConsoleSpanExporter())
    provider.add_span_processor(processor)

    trace.set_tracer_provider(provider)

    LoggingInstrumentor().instrument(set_logging_format=True)
    if engine is not None:
        SQLAlchemyInstrumentor().instrument(engine=engine)
