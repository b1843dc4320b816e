import logging
import structlog
from storefront.core.config import settings


def configure_logging():
    """
    Configure structured logging for the catalog layer.

    Every event carries the project name and environment through
    structlog's context variables; callers may bind more (for example a
    request id) with ``structlog.contextvars.bind_contextvars``.
    """

    # Console renderer for development
    renderer = structlog.dev.ConsoleRenderer() if settings.DEBUG else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    )

    structlog.contextvars.bind_contextvars(
        project=settings.PROJECT_NAME,
        environment=settings.ENVIRONMENT,
    )
    structlog.get_logger().info("logging_configured", debug=settings.DEBUG)
