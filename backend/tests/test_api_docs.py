"""
Tests for the OpenAPI schema routes
"""

from django.test import TestCase
from django.urls import reverse
from rest_framework import status


class SchemaRouteTests(TestCase):

    def test_json_schema_lists_catalog_paths(self):
        response = self.client.get('/swagger.json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        paths = response.json()['paths']
        product_list = next(p for p in paths if p.endswith('/products/'))
        parameters = [p['name'] for p in paths[product_list]['get']['parameters']]
        self.assertIn('fields', parameters)

    def test_yaml_schema(self):
        response = self.client.get('/swagger.yaml')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(b'Catalog API', response.content)

    def test_reverse_with_format(self):
        self.assertEqual(reverse('schema-json', kwargs={'format': '.json'}), '/swagger.json')

    def test_other_suffixes_are_not_routed(self):
        self.assertEqual(self.client.get('/swaggerfoo/').status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get('/swagger.xml').status_code, status.HTTP_404_NOT_FOUND)
