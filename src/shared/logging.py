import logging
import sys

from opentelemetry._logs import set_logger_provider
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor, ConsoleLogRecordExporter
from opentelemetry.sdk.resources import Resource

from .config import settings


def setup_logging() -> None:
    """Route keysmith's structured log events to OpenTelemetry and stdout.

    Events are snake_case messages with their context in ``extra``.
    """
    resource = Resource.create(
        {"service.name": settings.APP_NAME, "deployment.environment": settings.APP_ENV}
    )
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(ConsoleLogRecordExporter()))
    set_logger_provider(logger_provider)

    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root = logging.getLogger()
    root.addHandler(LoggingHandler(level=level, logger_provider=logger_provider))
    root.setLevel(level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root.addHandler(stream_handler)

    # Store-level SQL is traced by the SQLAlchemy instrumentor instead
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("keysmith").setLevel(level)


logger = logging.getLogger("keysmith")
