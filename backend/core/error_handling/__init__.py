"""
Error handling for the catalog API.

Every exception raised inside a DRF view is turned into the same envelope:

    {"error": {"code": "VALIDATION_ERROR", "message": "...",
               "details": {...}, "timestamp": "...", "request_id": "..."}}

Configured through ``REST_FRAMEWORK['EXCEPTION_HANDLER']``.
"""

from .error_response import StandardErrorResponse
from .global_exception_handler import global_exception_handler

__all__ = [
    'StandardErrorResponse',
    'global_exception_handler',
]
