from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from core.serializers import clear_serializer_factory_cache
from .models import Product, Size

User = get_user_model()


class ProductAPITests(APITestCase):

    def setUp(self):
        clear_serializer_factory_cache()
        self.editor = User.objects.create_user(username='editor', password='password123')

        self.shirt = Product.objects.create(name='Classic Shirt', description='Cotton shirt')
        self.small = Size.objects.create(product=self.shirt, code='S', text='Small', quantity=4)
        self.medium = Size.objects.create(product=self.shirt, code='M', text='Medium', quantity=0)
        self.mug = Product.objects.create(name='Coffee Mug', description='Stoneware mug')

        self.list_url = reverse('product-list')
        self.detail_url = reverse('product-detail', kwargs={'pk': self.shirt.pk})

    def test_list_returns_full_representation_by_default(self):
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        first = response.data['results'][0]
        self.assertEqual(
            set(first),
            {'id', 'name', 'description', 'sizes', 'created_at', 'updated_at'},
        )
        self.assertEqual([size['code'] for size in first['sizes']], ['M', 'S'])

    def test_list_with_fields_returns_only_those_fields(self):
        response = self.client.get(self.list_url, {'fields': 'name'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.data['results'],
            [{'name': 'Classic Shirt'}, {'name': 'Coffee Mug'}],
        )

    def test_list_with_nested_subfields(self):
        response = self.client.get(self.list_url, {'fields': 'name,sizes.code,sizes.quantity'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['results'][0], {
            'name': 'Classic Shirt',
            'sizes': [{'code': 'M', 'quantity': 0}, {'code': 'S', 'quantity': 4}],
        })
        self.assertEqual(response.data['results'][1], {'name': 'Coffee Mug', 'sizes': []})

    def test_repeated_fields_parameters_are_merged(self):
        response = self.client.get(self.detail_url + '?fields=name&fields=description')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'name': 'Classic Shirt', 'description': 'Cotton shirt'})

    def test_retrieve_with_fields(self):
        response = self.client.get(self.detail_url, {'fields': 'id,sizes'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(response.data), ['id', 'sizes'])
        self.assertEqual(response.data['sizes'][0]['text'], 'Medium')
        self.assertNotIn('product', response.data['sizes'][0])

    def test_unknown_field_returns_400(self):
        response = self.client.get(self.list_url, {'fields': 'name,colour'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        error = response.data['error']
        self.assertEqual(error['code'], 'VALIDATION_ERROR')
        self.assertEqual(error['message'], 'Invalid fields requested')
        self.assertEqual(error['details']['invalid'], ['colour'])

    def test_unknown_nested_field_returns_400(self):
        response = self.client.get(self.detail_url, {'fields': 'sizes.colour'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['details']['invalid'], ['sizes.colour'])

    def test_malformed_field_path_returns_400(self):
        response = self.client.get(self.list_url, {'fields': 'sizes..code'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_fields_parameter_uses_default(self):
        response = self.client.get(self.detail_url, {'fields': ''})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('sizes', response.data)
        self.assertIn('created_at', response.data)

    def test_missing_product_returns_404_envelope(self):
        url = reverse('product-detail', kwargs={'pk': 9999})
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'NOT_FOUND')

    def test_response_carries_correlation_id(self):
        response = self.client.get(self.list_url, HTTP_X_CORRELATION_ID='abc-123')
        self.assertEqual(response['X-Correlation-ID'], 'abc-123')

    def test_error_envelope_reports_request_id(self):
        response = self.client.get(
            self.list_url, {'fields': 'colour'}, HTTP_X_CORRELATION_ID='req-42'
        )
        self.assertEqual(response.data['error']['request_id'], 'req-42')

    def test_filter_by_name(self):
        response = self.client.get(self.list_url, {'name': 'mug', 'fields': 'name'})
        self.assertEqual(response.data['results'], [{'name': 'Coffee Mug'}])

    def test_filter_by_size_code(self):
        response = self.client.get(self.list_url, {'size': 'm', 'fields': 'name'})
        self.assertEqual(response.data['results'], [{'name': 'Classic Shirt'}])

    def test_anonymous_user_cannot_create(self):
        response = self.client.post(self.list_url, {'name': 'Hat'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'AUTHENTICATION_ERROR')
        self.assertFalse(Product.objects.filter(name='Hat').exists())

    def test_create_with_nested_sizes(self):
        self.client.force_authenticate(user=self.editor)
        data = {
            'name': 'Wool Hat',
            'description': 'Warm',
            'sizes': [
                {'code': 'S', 'text': 'Small', 'quantity': 3},
                {'code': 'L', 'text': 'Large', 'quantity': 1},
            ],
        }
        response = self.client.post(self.list_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        hat = Product.objects.get(name='Wool Hat')
        self.assertEqual(sorted(hat.sizes.values_list('code', flat=True)), ['L', 'S'])
        self.assertEqual([size['code'] for size in response.data['sizes']], ['L', 'S'])

    def test_fields_parameter_is_ignored_on_write(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.post(self.list_url + '?fields=name', {'name': 'Scarf'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('id', response.data)
        self.assertIn('sizes', response.data)

    def test_duplicate_size_codes_are_rejected(self):
        self.client.force_authenticate(user=self.editor)
        data = {
            'name': 'Socks',
            'sizes': [{'code': 'M', 'text': 'Medium'}, {'code': 'M', 'text': 'Medium again'}],
        }
        response = self.client.post(self.list_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sizes', response.data['error']['details'])
        self.assertFalse(Product.objects.filter(name='Socks').exists())

    def test_blank_name_is_rejected(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.post(self.list_url, {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_replaces_sizes(self):
        self.client.force_authenticate(user=self.editor)
        data = {
            'name': 'Classic Shirt',
            'description': 'Cotton shirt',
            'sizes': [
                {'id': self.medium.pk, 'code': 'M', 'text': 'Medium', 'quantity': 7},
                {'code': 'L', 'text': 'Large', 'quantity': 2},
            ],
        }
        response = self.client.put(self.detail_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(
            sorted(self.shirt.sizes.values_list('code', flat=True)), ['L', 'M']
        )
        self.medium.refresh_from_db()
        self.assertEqual(self.medium.quantity, 7)
        self.assertFalse(Size.objects.filter(pk=self.small.pk).exists())
        self.assertEqual([size['code'] for size in response.data['sizes']], ['L', 'M'])

    def test_update_swaps_codes_between_sizes(self):
        self.client.force_authenticate(user=self.editor)
        data = {
            'name': 'Renamed Shirt',
            'sizes': [
                {'id': self.small.pk, 'code': 'M', 'text': 'Small', 'quantity': 4},
                {'id': self.medium.pk, 'code': 'S', 'text': 'Medium', 'quantity': 0},
            ],
        }
        response = self.client.put(self.detail_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.small.refresh_from_db()
        self.medium.refresh_from_db()
        self.assertEqual((self.small.code, self.medium.code), ('M', 'S'))
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.name, 'Renamed Shirt')

    def test_update_new_size_reuses_code_of_a_later_kept_size(self):
        self.client.force_authenticate(user=self.editor)
        data = {
            'name': 'Classic Shirt',
            'sizes': [
                {'code': 'S', 'text': 'New small', 'quantity': 9},
                {'id': self.small.pk, 'code': 'XS', 'text': 'Extra small', 'quantity': 4},
            ],
        }
        response = self.client.put(self.detail_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.small.refresh_from_db()
        self.assertEqual(self.small.code, 'XS')
        self.assertEqual(self.shirt.sizes.get(code='S').text, 'New small')
        self.assertFalse(Size.objects.filter(pk=self.medium.pk).exists())

    def test_update_creates_sizes_with_unknown_or_foreign_ids(self):
        foreign = Size.objects.create(product=self.mug, code='STD', text='Standard', quantity=5)
        self.client.force_authenticate(user=self.editor)
        data = {
            'name': 'Classic Shirt',
            'sizes': [
                {'id': foreign.pk, 'code': 'L', 'text': 'Large', 'quantity': 1},
                {'id': 99999, 'code': 'XL', 'text': 'Extra large', 'quantity': 2},
            ],
        }
        response = self.client.put(self.detail_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(sorted(self.shirt.sizes.values_list('code', flat=True)), ['L', 'XL'])
        self.assertFalse(self.shirt.sizes.filter(pk__in=[foreign.pk, 99999]).exists())
        foreign.refresh_from_db()
        self.assertEqual((foreign.product_id, foreign.code), (self.mug.pk, 'STD'))

    def test_failed_size_write_rolls_back_product_changes(self):
        self.client.force_authenticate(user=self.editor)
        data = {
            'name': 'Renamed Shirt',
            'sizes': [{'code': 'L', 'text': 'Large', 'quantity': 1}],
        }
        with mock.patch.object(Size, 'save', side_effect=IntegrityError('constraint failed')):
            response = self.client.put(self.detail_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sizes', response.data['error']['details'])
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.name, 'Classic Shirt')
        self.assertEqual(sorted(self.shirt.sizes.values_list('code', flat=True)), ['M', 'S'])

    def test_failed_size_write_rolls_back_created_product(self):
        self.client.force_authenticate(user=self.editor)
        data = {'name': 'Wool Hat', 'sizes': [{'code': 'S', 'text': 'Small'}]}
        with mock.patch.object(Size, 'save', side_effect=IntegrityError('constraint failed')):
            response = self.client.post(self.list_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Product.objects.filter(name='Wool Hat').exists())

    def test_timestamps_are_read_only(self):
        self.client.force_authenticate(user=self.editor)
        data = {'name': 'Scarf', 'created_at': '2001-01-01T00:00:00Z'}
        response = self.client.post(self.list_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        scarf = Product.objects.get(name='Scarf')
        self.assertNotEqual(scarf.created_at.year, 2001)
        self.assertIsNotNone(response.data['updated_at'])

    def test_partial_update_leaves_sizes_untouched(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.patch(self.detail_url, {'description': 'Linen shirt'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.description, 'Linen shirt')
        self.assertEqual(self.shirt.sizes.count(), 2)

    def test_delete_removes_sizes(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.delete(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Size.objects.filter(product_id=self.shirt.pk).exists())


class SizeAPITests(APITestCase):

    def setUp(self):
        self.editor = User.objects.create_user(username='editor', password='password123')
        self.shirt = Product.objects.create(name='Classic Shirt')
        self.mug = Product.objects.create(name='Coffee Mug')
        self.small = Size.objects.create(product=self.shirt, code='S', text='Small', quantity=4)
        Size.objects.create(product=self.shirt, code='M', text='Medium', quantity=0)
        Size.objects.create(product=self.mug, code='STD', text='Standard', quantity=10)
        self.list_url = reverse('size-list')
        self.small_url = reverse('size-detail', kwargs={'pk': self.small.pk})

    def test_filter_by_product(self):
        response = self.client.get(self.list_url, {'product': self.shirt.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['code'] for s in response.data['results']], ['M', 'S'])

    def test_filter_in_stock(self):
        response = self.client.get(self.list_url, {'in_stock': 'true'})
        self.assertEqual(sorted(s['code'] for s in response.data['results']), ['S', 'STD'])

    def test_create_size(self):
        self.client.force_authenticate(user=self.editor)
        data = {'product': self.mug.pk, 'code': 'XL', 'text': 'Large mug', 'quantity': 2}
        response = self.client.post(self.list_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(self.mug.sizes.filter(code='XL').exists())

    def test_duplicate_code_for_product_is_rejected(self):
        self.client.force_authenticate(user=self.editor)
        data = {'product': self.shirt.pk, 'code': 'S', 'text': 'Small again'}
        response = self.client.post(self.list_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_negative_quantity_is_rejected(self):
        self.client.force_authenticate(user=self.editor)
        data = {'product': self.mug.pk, 'code': 'XS', 'quantity': -1}
        response = self.client.post(self.list_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_cannot_move_size_to_another_product(self):
        self.client.force_authenticate(user=self.editor)
        data = {'product': self.mug.pk, 'code': 'S', 'text': 'Small', 'quantity': 1}
        response = self.client.put(self.small_url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.small.refresh_from_db()
        self.assertEqual(self.small.product_id, self.shirt.pk)
        self.assertEqual(self.small.quantity, 1)

    def test_update_to_sibling_code_is_rejected(self):
        self.client.force_authenticate(user=self.editor)
        response = self.client.patch(self.small_url, {'code': 'M'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.small.refresh_from_db()
        self.assertEqual(self.small.code, 'S')


class SeedCatalogCommandTests(TestCase):

    def test_seeds_products_with_sizes(self):
        out = StringIO()
        call_command('seed_catalog', count=3, seed=7, stdout=out)
        self.assertEqual(Product.objects.count(), 3)
        for product in Product.objects.all():
            self.assertGreaterEqual(product.sizes.count(), 1)
        self.assertIn('Created 3 products', out.getvalue())

    def test_clear_removes_existing_rows(self):
        Product.objects.create(name='Old product')
        call_command('seed_catalog', count=2, clear=True, stdout=StringIO())
        self.assertFalse(Product.objects.filter(name='Old product').exists())
        self.assertEqual(Product.objects.count(), 2)
