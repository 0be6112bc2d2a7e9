"""
Tests for the standard error envelope and the DRF exception handler
"""

import json

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.exceptions import (
    MethodNotAllowed, NotAuthenticated, NotFound, ParseError,
    PermissionDenied, Throttled, ValidationError,
)

from core.error_handling import StandardErrorResponse, global_exception_handler
from core.serializers import InvalidFieldsError


def handle(exc):
    return global_exception_handler(exc, {'request': None, 'view': None})


class GlobalExceptionHandlerTests(SimpleTestCase):

    def test_status_and_code_mapping(self):
        cases = [
            (NotAuthenticated(), status.HTTP_401_UNAUTHORIZED, 'AUTHENTICATION_ERROR'),
            (PermissionDenied(), status.HTTP_403_FORBIDDEN, 'PERMISSION_DENIED'),
            (NotFound(), status.HTTP_404_NOT_FOUND, 'NOT_FOUND'),
            (Http404(), status.HTTP_404_NOT_FOUND, 'NOT_FOUND'),
            (ParseError(), status.HTTP_400_BAD_REQUEST, 'PARSE_ERROR'),
            (MethodNotAllowed('POST'), status.HTTP_405_METHOD_NOT_ALLOWED, 'METHOD_NOT_ALLOWED'),
            (Throttled(wait=30), status.HTTP_429_TOO_MANY_REQUESTS, 'RATE_LIMIT_EXCEEDED'),
        ]
        for exc, expected_status, expected_code in cases:
            with self.subTest(exc=type(exc).__name__):
                response = handle(exc)
                self.assertEqual(response.status_code, expected_status)
                self.assertEqual(response.data['error']['code'], expected_code)
                self.assertIn('timestamp', response.data['error'])

    def test_throttled_reports_retry_after(self):
        response = handle(Throttled(wait=30))
        self.assertEqual(response.data['error']['details'], {'retry_after': 30})

    def test_drf_validation_error_details(self):
        response = handle(ValidationError({'name': ['This field is required.']}))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['message'], 'Validation failed')
        self.assertEqual(response.data['error']['details'], {'name': ['This field is required.']})

    def test_validation_error_list_is_wrapped(self):
        response = handle(ValidationError(['bad']))
        self.assertEqual(response.data['error']['details'], {'errors': ['bad']})

    def test_django_validation_error(self):
        response = handle(DjangoValidationError({'code': ['Too long.']}))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['details'], {'code': ['Too long.']})

    def test_invalid_fields_error(self):
        exc = InvalidFieldsError('Unknown fields', invalid=['colour'], allowed=['name'])
        response = handle(exc)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['message'], 'Invalid fields requested')
        self.assertEqual(response.data['error']['details']['invalid'], ['colour'])
        self.assertEqual(response.data['error']['details']['allowed'], ['name'])

    def test_unexpected_exception_becomes_500(self):
        with self.assertLogs('core.error_handling.global_exception_handler', level='CRITICAL') as cm:
            response = handle(RuntimeError('boom at /srv/app/secret.py'))
        event = json.loads(cm.records[0].getMessage())
        self.assertEqual(event['level'], 'CRITICAL')
        self.assertEqual(event['event_type'], 'unhandled_exception')
        self.assertEqual(event['exception']['type'], 'RuntimeError')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error']['code'], 'INTERNAL_ERROR')
        self.assertNotIn('boom', response.data['error']['message'])

    def test_response_is_renderable(self):
        response = handle(NotFound())
        response.render()
        self.assertIn(b'"NOT_FOUND"', response.content)


class StandardErrorResponseTests(SimpleTestCase):

    def test_sensitive_values_are_redacted(self):
        error = StandardErrorResponse.validation_error(
            message="bad password=hunter2",
            details={'api_token': 'abc', 'field': 'token: xyz'},
        )
        self.assertNotIn('hunter2', error.message)
        self.assertEqual(error.details['api_token'], '[REDACTED]')
        self.assertNotIn('xyz', error.details['field'])

    def test_paths_are_redacted(self):
        error = StandardErrorResponse.server_error(message="failed in /srv/app/views.py")
        self.assertIn('[PATH_REDACTED]', error.message)

    def test_request_id_is_included(self):
        data = StandardErrorResponse.not_found_error(request_id='req-1').to_dict()
        self.assertEqual(data['error']['request_id'], 'req-1')

    def test_details_omitted_when_empty(self):
        data = StandardErrorResponse.permission_error().to_dict()
        self.assertNotIn('details', data['error'])

    @override_settings(DEBUG=False)
    def test_traceback_is_removed_outside_debug(self):
        error = StandardErrorResponse.server_error(
            message="Traceback (most recent call last):\n  File x, line 1"
        )
        self.assertEqual(error.message, '[TRACEBACK_REDACTED]')
