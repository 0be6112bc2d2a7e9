"""
Standardized Error Response System
Provides consistent, sanitized error responses across the API
"""

import logging
import re
from typing import Dict, Any, Optional

from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.renderers import JSONRenderer
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class StandardErrorResponse:
    """
    Standardized error response format that sanitizes sensitive information
    """

    SENSITIVE_PATTERNS = [
        r'password["\s]*[:=]["\s]*[^"\s,}]+',
        r'token["\s]*[:=]["\s]*[^"\s,}]+',
        r'secret["\s]*[:=]["\s]*[^"\s,}]+',
        r'authorization["\s]*[:=]["\s]*[^"\s,}]+',
        r'bearer\s+[a-zA-Z0-9\-._~+/]+=*',
    ]

    PATH_PATTERNS = [
        r'/[a-zA-Z0-9_\-./]*\.py',
        r'/home/[a-zA-Z0-9_\-./]*',
        r'C:\\[a-zA-Z0-9_\-\\./]*',
    ]

    SENSITIVE_KEYS = ['password', 'token', 'secret', 'auth']

    def __init__(self,
                 error_code: str,
                 message: str,
                 details: Optional[Dict[str, Any]] = None,
                 status_code: int = status.HTTP_400_BAD_REQUEST,
                 request_id: Optional[str] = None):
        """
        Args:
            error_code: Unique error code for the error type
            message: User-friendly error message
            details: Additional error details (will be sanitized)
            status_code: HTTP status code
            request_id: Request ID for tracking
        """
        self.error_code = error_code
        self.message = self._sanitize_message(message)
        self.details = self._sanitize_details(details or {})
        self.status_code = status_code
        self.request_id = request_id
        self.timestamp = timezone.now().isoformat()

    def _sanitize_message(self, message: str) -> str:
        if not isinstance(message, str):
            message = str(message)

        for pattern in self.SENSITIVE_PATTERNS:
            message = re.sub(pattern, '[REDACTED]', message, flags=re.IGNORECASE)

        for pattern in self.PATH_PATTERNS:
            message = re.sub(pattern, '[PATH_REDACTED]', message)

        if not settings.DEBUG:
            message = re.sub(r'Traceback \(most recent call last\):.*', '[TRACEBACK_REDACTED]', message, flags=re.DOTALL)

        return str(message)

    def _sanitize_value(self, value):
        if isinstance(value, str):
            return self._sanitize_message(value)
        if isinstance(value, dict):
            return self._sanitize_details(value)
        if isinstance(value, (list, tuple)):
            return [self._sanitize_value(item) for item in value]
        return value

    def _sanitize_details(self, details: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(details, dict):
            return {}

        sanitized = {}
        for key, value in details.items():
            key = str(key)
            if any(sensitive in key.lower() for sensitive in self.SENSITIVE_KEYS):
                sanitized[key] = '[REDACTED]'
            else:
                sanitized[key] = self._sanitize_value(value)
        return sanitized

    def to_dict(self) -> Dict[str, Any]:
        response_data = {
            'error': {
                'code': self.error_code,
                'message': self.message,
                'timestamp': self.timestamp
            }
        }

        if self.details:
            response_data['error']['details'] = self.details

        if self.request_id:
            response_data['error']['request_id'] = self.request_id

        return response_data

    def to_response(self) -> Response:
        """
        Convert to a DRF Response with a renderer attached
        """
        response = Response(
            data=self.to_dict(),
            status=self.status_code
        )

        # Set up renderer to prevent ContentNotRenderedError
        response.accepted_renderer = JSONRenderer()
        response.accepted_media_type = 'application/json'
        response.renderer_context = {}

        return response

    @classmethod
    def validation_error(cls, message: str = "Validation failed",
                         details: Optional[Dict[str, Any]] = None,
                         request_id: Optional[str] = None) -> 'StandardErrorResponse':
        return cls(
            error_code='VALIDATION_ERROR',
            message=message,
            details=details,
            status_code=status.HTTP_400_BAD_REQUEST,
            request_id=request_id
        )

    @classmethod
    def authentication_error(cls, message: str = "Authentication required",
                             request_id: Optional[str] = None) -> 'StandardErrorResponse':
        return cls(
            error_code='AUTHENTICATION_ERROR',
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            request_id=request_id
        )

    @classmethod
    def permission_error(cls, message: str = "Permission denied",
                         request_id: Optional[str] = None) -> 'StandardErrorResponse':
        return cls(
            error_code='PERMISSION_DENIED',
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            request_id=request_id
        )

    @classmethod
    def not_found_error(cls, message: str = "Resource not found",
                        request_id: Optional[str] = None) -> 'StandardErrorResponse':
        return cls(
            error_code='NOT_FOUND',
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            request_id=request_id
        )

    @classmethod
    def server_error(cls, message: str = "Internal server error",
                     request_id: Optional[str] = None) -> 'StandardErrorResponse':
        return cls(
            error_code='INTERNAL_ERROR',
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id
        )

    @classmethod
    def rate_limit_error(cls, message: str = "Rate limit exceeded",
                         retry_after: Optional[int] = None,
                         request_id: Optional[str] = None) -> 'StandardErrorResponse':
        details = {}
        if retry_after:
            details['retry_after'] = retry_after

        return cls(
            error_code='RATE_LIMIT_EXCEEDED',
            message=message,
            details=details,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            request_id=request_id
        )
