"""Root logger configuration with per-request correlation ids."""

import logging

# Pinned to WARNING; they are chatty at INFO
NOISY_LOGGERS = frozenset([
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.dialects",
    "httpx",
    "httpcore",
    "asyncio",
    "asyncpg",
    "apscheduler",
    "watchfiles",
])

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s: %(message)s"


def _get_correlation_id() -> str:
    # Late import: the middleware package imports FastAPI
    from gojipedia.middleware.correlation import get_correlation_id
    return get_correlation_id() or "-"


class CorrelationIdFilter(logging.Filter):
    """Stamps each record with the current request's correlation id ("-" outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _get_correlation_id()
        return True


def configure_logging(level: int = logging.INFO) -> None:
    """Configure the root logger once. Safe to call repeatedly."""
    root = logging.getLogger()
    if any(isinstance(f, CorrelationIdFilter) for h in root.handlers for f in h.filters):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
