"""
Structured logging for the catalog API.

Usage:
    from core.logging import StructuredLogger, EventType

    logger = StructuredLogger('catalog.views')
    logger.info(EventType.SERIALIZER_BUILT, "Built ProductDynamicSerializer")
"""

from .structured_logger import (
    StructuredLogger,
    EventType,
    LogLevel,
    LogContext,
    LogEvent,
    CorrelationMiddleware,
    get_correlation_id,
    with_correlation_id
)

__all__ = [
    'StructuredLogger',
    'EventType',
    'LogLevel',
    'LogContext',
    'LogEvent',
    'CorrelationMiddleware',
    'get_correlation_id',
    'with_correlation_id',
]
