"""Application logging utilities."""

from gojipedia.logging.setup import CorrelationIdFilter, configure_logging

__all__ = ["CorrelationIdFilter", "configure_logging"]
