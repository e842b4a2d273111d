"""Application middleware."""

from gojipedia.middleware.correlation import CorrelationIDMiddleware, get_correlation_id

__all__ = ["CorrelationIDMiddleware", "get_correlation_id"]
