"""
Tests for structured logging and the correlation middleware
"""

import json
import logging
import uuid

from django.http import HttpResponse
from django.test import RequestFactory, SimpleTestCase

from core.logging import (
    CorrelationMiddleware,
    EventType,
    StructuredLogger,
    get_correlation_id,
    with_correlation_id,
)


class StructuredLoggerTests(SimpleTestCase):

    def setUp(self):
        self.logger = StructuredLogger('catalog.test_logging')

    def _events(self, cm):
        return [json.loads(record.getMessage()) for record in cm.records]

    def test_event_is_json_with_context(self):
        with with_correlation_id('corr-1'):
            with self.assertLogs('catalog.test_logging', level='INFO') as cm:
                self.logger.info(EventType.SERIALIZER_BUILT, "Built it", entity_type='product')
        event = self._events(cm)[0]
        self.assertEqual(event['level'], 'INFO')
        self.assertEqual(event['event_type'], 'serializer_built')
        self.assertEqual(event['message'], 'Built it')
        self.assertEqual(event['context']['correlation_id'], 'corr-1')
        self.assertEqual(event['context']['entity_type'], 'product')
        self.assertEqual(cm.records[0].correlation_id, 'corr-1')

    def test_level_maps_to_stdlib_level(self):
        with self.assertLogs('catalog.test_logging', level='WARNING') as cm:
            self.logger.warning(EventType.FIELDS_REJECTED, "Rejected")
        self.assertEqual(cm.records[0].levelno, logging.WARNING)
        self.assertEqual(self._events(cm)[0]['level'], 'WARNING')

    def test_exception_details_are_attached(self):
        with self.assertLogs('catalog.test_logging', level='ERROR') as cm:
            try:
                raise ValueError('bad value')
            except ValueError as e:
                self.logger.error(EventType.SYSTEM_ERROR, "Failed", exception=e)
        event = self._events(cm)[0]
        self.assertEqual(event['exception']['type'], 'ValueError')
        self.assertEqual(event['exception']['message'], 'bad value')
        self.assertIn('exception', event['tags'])

    def test_business_event_mapping(self):
        with self.assertLogs('catalog.test_logging', level='INFO') as cm:
            self.logger.log_business_event('product_created', entity_type='product', entity_id=7)
        event = self._events(cm)[0]
        self.assertEqual(event['event_type'], 'product_created')
        self.assertEqual(event['context']['entity_id'], 7)
        self.assertEqual(event['tags'], ['business_event'])

    def test_with_correlation_id_restores_previous_value(self):
        before = get_correlation_id()
        with with_correlation_id('temporary'):
            self.assertEqual(get_correlation_id(), 'temporary')
        self.assertEqual(get_correlation_id(), before)


class CorrelationMiddlewareTests(SimpleTestCase):

    def setUp(self):
        self.factory = RequestFactory()
        self.seen = {}

        def get_response(request):
            self.seen['request_id'] = request.correlation_id
            self.seen['context_id'] = get_correlation_id()
            return HttpResponse('ok')

        self.middleware = CorrelationMiddleware(get_response)

    def test_incoming_header_is_reused(self):
        request = self.factory.get('/api/products/', HTTP_X_CORRELATION_ID='abc')
        with self.assertLogs('core.logging.correlation', level='INFO'):
            response = self.middleware(request)
        self.assertEqual(response['X-Correlation-ID'], 'abc')
        self.assertEqual(self.seen, {'request_id': 'abc', 'context_id': 'abc'})

    def test_request_id_header_is_accepted(self):
        request = self.factory.get('/', HTTP_X_REQUEST_ID='rid-9')
        with self.assertLogs('core.logging.correlation', level='INFO'):
            response = self.middleware(request)
        self.assertEqual(response['X-Correlation-ID'], 'rid-9')

    def test_id_is_generated_when_absent(self):
        with self.assertLogs('core.logging.correlation', level='INFO') as cm:
            response = self.middleware(self.factory.get('/'))
        uuid.UUID(response['X-Correlation-ID'])
        events = [json.loads(record.getMessage()) for record in cm.records]
        self.assertEqual(
            [event['event_type'] for event in events],
            ['request_received', 'request_completed'],
        )
        self.assertEqual(events[1]['extra'], {'status_code': 200})

    def test_context_is_reset_after_request(self):
        before = get_correlation_id()
        with self.assertLogs('core.logging.correlation', level='INFO'):
            self.middleware(self.factory.get('/', HTTP_X_CORRELATION_ID='scoped'))
        self.assertEqual(get_correlation_id(), before)

    def test_failure_is_logged_and_reraised(self):
        def explode(request):
            raise RuntimeError('boom')

        middleware = CorrelationMiddleware(explode)
        with self.assertLogs('core.logging.correlation', level='ERROR') as cm:
            with self.assertRaises(RuntimeError):
                middleware(self.factory.get('/'))
        event = json.loads(cm.records[0].getMessage())
        self.assertEqual(event['event_type'], 'request_failed')
