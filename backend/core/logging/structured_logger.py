"""
Structured logging for the catalog API
Emits JSON log events carrying a per-request correlation id
"""

import json
import logging
import uuid
import traceback
import time
from typing import Dict, Any, Optional, List, Union
from contextvars import ContextVar
from dataclasses import dataclass, asdict
from enum import Enum

from django.conf import settings
from django.utils import timezone

# Context variables for request tracking
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
request_context_var: ContextVar[Dict[str, Any]] = ContextVar('request_context', default={})


class LogLevel(Enum):
    """Event levels, valued by their stdlib logging number"""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class EventType(Enum):
    """Categorized event types"""
    # Request Events
    REQUEST_RECEIVED = "request_received"
    REQUEST_COMPLETED = "request_completed"
    REQUEST_FAILED = "request_failed"

    # Serialization Events
    SERIALIZER_BUILT = "serializer_built"
    FIELDS_REJECTED = "fields_rejected"

    # Catalog Events
    PRODUCT_CREATED = "product_created"
    PRODUCT_UPDATED = "product_updated"
    PRODUCT_DELETED = "product_deleted"

    # Content Events
    ARTICLE_VALIDATED = "article_validated"
    ARTICLE_INVALID = "article_invalid"

    # Error Events
    VALIDATION_ERROR = "validation_error"
    SYSTEM_ERROR = "system_error"
    UNHANDLED_EXCEPTION = "unhandled_exception"


@dataclass
class LogContext:
    """Structured log context information"""
    correlation_id: Optional[str] = None
    request_id: Optional[str] = None

    method: Optional[str] = None
    path: Optional[str] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    service_name: Optional[str] = None
    module_name: Optional[str] = None

    duration_ms: Optional[float] = None

    entity_type: Optional[str] = None
    entity_id: Optional[Union[int, str]] = None
    action: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values"""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class LogEvent:
    """Structured log event"""
    timestamp: str
    level: str
    event_type: str
    message: str
    context: LogContext

    exception_type: Optional[str] = None
    exception_message: Optional[str] = None
    stack_trace: Optional[str] = None
    extra_data: Optional[Dict[str, Any]] = None
    tags: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'timestamp': self.timestamp,
            'level': self.level,
            'event_type': self.event_type,
            'message': self.message,
            'context': self.context.to_dict(),
        }

        if self.exception_type:
            data['exception'] = {
                'type': self.exception_type,
                'message': self.exception_message,
                'stack_trace': self.stack_trace
            }

        if self.extra_data:
            data['extra'] = self.extra_data

        if self.tags:
            data['tags'] = self.tags

        return data


class StructuredLogger:
    """Logger that writes one JSON document per event"""

    def __init__(self, name: str = None):
        self.name = name or __name__
        self.logger = logging.getLogger(self.name)

    def _get_correlation_id(self) -> str:
        correlation_id = correlation_id_var.get()
        if not correlation_id:
            correlation_id = str(uuid.uuid4())
            correlation_id_var.set(correlation_id)
        return correlation_id

    def _get_current_context(self) -> LogContext:
        request_context = request_context_var.get({})

        return LogContext(
            correlation_id=self._get_correlation_id(),
            request_id=request_context.get('request_id'),
            method=request_context.get('method'),
            path=request_context.get('path'),
            user_agent=request_context.get('user_agent'),
            ip_address=request_context.get('ip_address'),
            service_name=getattr(settings, 'SERVICE_NAME', 'catalog-api'),
            module_name=self.name.split('.')[0] if '.' in self.name else self.name,
        )

    def _log_event(self, level: LogLevel, event_type: EventType, message: str,
                   exception: Exception = None, extra_data: Dict[str, Any] = None,
                   tags: List[str] = None, **kwargs):
        context = self._get_current_context()

        for key, value in kwargs.items():
            if hasattr(context, key):
                setattr(context, key, value)

        log_event = LogEvent(
            timestamp=timezone.now().isoformat(),
            level=level.name,
            event_type=event_type.value,
            message=message,
            context=context,
            extra_data=extra_data,
            tags=list(tags or [])
        )

        if exception:
            log_event.exception_type = type(exception).__name__
            log_event.exception_message = str(exception)
            log_event.stack_trace = traceback.format_exc()
            log_event.tags.append('exception')

        self.logger.log(
            level.value,
            json.dumps(log_event.to_dict(), default=str),
            extra={
                'correlation_id': context.correlation_id,
                'event_type': event_type.value,
                'structured': True
            }
        )

    def debug(self, event_type: EventType, message: str, **kwargs):
        self._log_event(LogLevel.DEBUG, event_type, message, **kwargs)

    def info(self, event_type: EventType, message: str, **kwargs):
        self._log_event(LogLevel.INFO, event_type, message, **kwargs)

    def warning(self, event_type: EventType, message: str, **kwargs):
        self._log_event(LogLevel.WARNING, event_type, message, **kwargs)

    def error(self, event_type: EventType, message: str, exception: Exception = None, **kwargs):
        self._log_event(LogLevel.ERROR, event_type, message, exception=exception, **kwargs)

    def critical(self, event_type: EventType, message: str, exception: Exception = None, **kwargs):
        self._log_event(LogLevel.CRITICAL, event_type, message, exception=exception, **kwargs)

    def log_request_received(self, method: str, path: str, **kwargs):
        self.info(
            EventType.REQUEST_RECEIVED,
            f"{method} {path} - Request received",
            method=method,
            path=path,
            **kwargs
        )

    def log_request_completed(self, method: str, path: str, status_code: int,
                              duration_ms: float, **kwargs):
        self.info(
            EventType.REQUEST_COMPLETED,
            f"{method} {path} - Request completed ({status_code}) in {duration_ms:.1f}ms",
            method=method,
            path=path,
            duration_ms=duration_ms,
            extra_data={'status_code': status_code},
            **kwargs
        )

    def log_request_failed(self, method: str, path: str, error: Exception,
                           status_code: int = None, **kwargs):
        self.error(
            EventType.REQUEST_FAILED,
            f"{method} {path} - Request failed",
            exception=error,
            method=method,
            path=path,
            extra_data={'status_code': status_code} if status_code else None,
            **kwargs
        )

    def log_business_event(self, event_name: str, entity_type: str = None,
                           entity_id: Union[int, str] = None, **kwargs):
        event_type_map = {
            'product_created': EventType.PRODUCT_CREATED,
            'product_updated': EventType.PRODUCT_UPDATED,
            'product_deleted': EventType.PRODUCT_DELETED,
        }

        event_type = event_type_map.get(event_name.lower(), EventType.REQUEST_COMPLETED)

        self.info(
            event_type,
            f"Business event: {event_name}",
            action=event_name,
            entity_type=entity_type,
            entity_id=entity_id,
            tags=['business_event'],
            **kwargs
        )


class CorrelationMiddleware:
    """Middleware to set up correlation IDs and request context"""

    def __init__(self, get_response):
        self.get_response = get_response
        self.logger = StructuredLogger('core.logging.correlation')

    def __call__(self, request):
        correlation_id = (
            request.META.get('HTTP_X_CORRELATION_ID') or
            request.META.get('HTTP_X_REQUEST_ID') or
            str(uuid.uuid4())
        )

        correlation_token = correlation_id_var.set(correlation_id)
        request_context = {
            'request_id': correlation_id,
            'method': request.method,
            'path': request.path,
            'user_agent': request.META.get('HTTP_USER_AGENT', ''),
            'ip_address': self._get_client_ip(request),
        }
        context_token = request_context_var.set(request_context)

        request.correlation_id = correlation_id

        start_time = time.time()
        self.logger.log_request_received(
            method=request.method,
            path=request.path,
            ip_address=request_context['ip_address']
        )

        try:
            response = self.get_response(request)

            duration_ms = (time.time() - start_time) * 1000
            self.logger.log_request_completed(
                method=request.method,
                path=request.path,
                status_code=response.status_code,
                duration_ms=duration_ms
            )

            response['X-Correlation-ID'] = correlation_id
            return response

        except Exception as e:
            self.logger.log_request_failed(
                method=request.method,
                path=request.path,
                error=e
            )
            raise
        finally:
            correlation_id_var.reset(correlation_token)
            request_context_var.reset(context_token)

    def _get_client_ip(self, request):
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def with_correlation_id(correlation_id: str):
    """Context manager to set correlation ID"""
    class CorrelationContext:
        def __enter__(self):
            self._token = correlation_id_var.set(correlation_id)
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            correlation_id_var.reset(self._token)

    return CorrelationContext()
