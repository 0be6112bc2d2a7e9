"""
Global Exception Handler for Django REST Framework
Provides consistent error handling across all API endpoints
"""

import logging
from typing import Optional, Dict, Any

from django.core.exceptions import ValidationError as DjangoValidationError, PermissionDenied
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException, AuthenticationFailed, NotAuthenticated,
    PermissionDenied as DRFPermissionDenied, NotFound,
    ValidationError as DRFValidationError, Throttled,
    ParseError, UnsupportedMediaType, MethodNotAllowed
)

from core.logging import EventType, StructuredLogger
from core.serializers.fields import InvalidFieldsError
from .error_response import StandardErrorResponse

logger = logging.getLogger(__name__)
event_logger = StructuredLogger(__name__)


def global_exception_handler(exc, context):
    """
    Global exception handler that returns standardized error responses

    Args:
        exc: The exception instance
        context: Context dictionary containing view, request, etc.

    Returns:
        Response: Standardized error response
    """
    request = context.get('request')
    request_id = getattr(request, 'correlation_id', None) if request else None

    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'Unknown'

    logger.warning(
        f"Exception in {view_name}: {type(exc).__name__}: {exc}",
        extra={
            'request_id': request_id,
            'view_name': view_name,
            'path': request.path if request else 'unknown',
            'method': request.method if request else 'unknown',
            'exception_type': type(exc).__name__,
        },
    )

    if isinstance(exc, NotAuthenticated):
        error_response = StandardErrorResponse.authentication_error(
            message="Authentication credentials were not provided",
            request_id=request_id
        )

    elif isinstance(exc, AuthenticationFailed):
        error_response = StandardErrorResponse.authentication_error(
            message="Invalid authentication credentials",
            request_id=request_id
        )

    elif isinstance(exc, (PermissionDenied, DRFPermissionDenied)):
        error_response = StandardErrorResponse.permission_error(
            message="You do not have permission to perform this action",
            request_id=request_id
        )

    elif isinstance(exc, (NotFound, Http404)):
        error_response = StandardErrorResponse.not_found_error(
            message="The requested resource was not found",
            request_id=request_id
        )

    elif isinstance(exc, InvalidFieldsError):
        error_response = StandardErrorResponse.validation_error(
            message="Invalid fields requested",
            details=_extract_validation_details(exc),
            request_id=request_id
        )

    elif isinstance(exc, (DjangoValidationError, DRFValidationError)):
        error_response = StandardErrorResponse.validation_error(
            message="Validation failed",
            details=_extract_validation_details(exc),
            request_id=request_id
        )

    elif isinstance(exc, Throttled):
        error_response = StandardErrorResponse.rate_limit_error(
            message="Rate limit exceeded. Please try again later.",
            retry_after=getattr(exc, 'wait', None),
            request_id=request_id
        )

    elif isinstance(exc, ParseError):
        error_response = StandardErrorResponse(
            error_code='PARSE_ERROR',
            message="Malformed request data",
            status_code=status.HTTP_400_BAD_REQUEST,
            request_id=request_id
        )

    elif isinstance(exc, UnsupportedMediaType):
        error_response = StandardErrorResponse(
            error_code='UNSUPPORTED_MEDIA_TYPE',
            message="Unsupported media type in request",
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            request_id=request_id
        )

    elif isinstance(exc, MethodNotAllowed):
        error_response = StandardErrorResponse(
            error_code='METHOD_NOT_ALLOWED',
            message="Method not allowed for this endpoint",
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            request_id=request_id
        )

    elif isinstance(exc, APIException):
        error_response = StandardErrorResponse(
            error_code=str(getattr(exc, 'default_code', 'api_error')).upper(),
            message=str(exc.detail),
            status_code=exc.status_code,
            request_id=request_id
        )

    else:
        event_logger.critical(
            EventType.UNHANDLED_EXCEPTION,
            f"Unhandled exception in {view_name}: {type(exc).__name__}",
            exception=exc,
            request_id=request_id,
        )
        error_response = StandardErrorResponse.server_error(
            message="An unexpected error occurred. Please try again later.",
            request_id=request_id
        )

    return error_response.to_response()


def _extract_validation_details(exc) -> Dict[str, Any]:
    """
    Extract validation error details from exception
    """
    if isinstance(exc, DRFValidationError):
        if isinstance(exc.detail, dict):
            return exc.detail
        if isinstance(exc.detail, list):
            return {'errors': exc.detail}
        return {'message': str(exc.detail)}

    if hasattr(exc, 'message_dict'):
        return exc.message_dict
    if hasattr(exc, 'messages'):
        return {'errors': exc.messages}
    return {'message': str(exc)}
