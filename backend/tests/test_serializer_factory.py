"""
Tests for dynamic serializer construction
"""

from django.test import TestCase

from catalog.models import Product, Size
from catalog.serializers import ProductSerializer, SizeSerializer
from core.serializers import (
    BaseModelSerializer,
    InvalidFieldsError,
    allowed_field_names,
    clear_serializer_factory_cache,
    serializer_factory,
    serializer_factory_cache_info,
)


class SerializerFactoryTests(TestCase):

    def setUp(self):
        clear_serializer_factory_cache()
        self.shirt = Product.objects.create(name='Classic Shirt', description='Cotton shirt')
        Size.objects.create(product=self.shirt, code='S', text='Small', quantity=4)
        Size.objects.create(product=self.shirt, code='M', text='Medium', quantity=0)

    def test_builds_class_with_requested_fields_only(self):
        serializer_class = serializer_factory(Product, 'name')
        self.assertEqual(serializer_class.__name__, 'ProductDynamicSerializer')
        self.assertTrue(issubclass(serializer_class, BaseModelSerializer))
        self.assertEqual(serializer_class.Meta.fields, ['name'])
        self.assertEqual(serializer_class(self.shirt).data, {'name': 'Classic Shirt'})

    def test_field_order_follows_request(self):
        data = serializer_factory(Product, 'description,id')(self.shirt).data
        self.assertEqual(list(data), ['description', 'id'])

    def test_nested_collection_with_subfields(self):
        data = serializer_factory(Product, 'name,sizes.code')(self.shirt).data
        self.assertEqual(data, {
            'name': 'Classic Shirt',
            'sizes': [{'code': 'M'}, {'code': 'S'}],
        })

    def test_nested_collection_defaults_skip_parent_key(self):
        data = serializer_factory(Product, 'sizes')(self.shirt).data
        self.assertEqual(list(data['sizes'][0]), ['id', 'code', 'text', 'quantity'])

    def test_nested_field_is_read_only(self):
        serializer = serializer_factory(Product, 'sizes')()
        self.assertTrue(serializer.fields['sizes'].read_only)

    def test_default_is_all_concrete_fields(self):
        serializer_class = serializer_factory(Product)
        self.assertEqual(
            serializer_class.Meta.fields,
            ['id', 'name', 'description', 'created_at', 'updated_at'],
        )

    def test_foreign_key_renders_primary_key(self):
        size = self.shirt.sizes.get(code='S')
        data = serializer_factory(Size, 'code,product')(size).data
        self.assertEqual(data, {'code': 'S', 'product': self.shirt.pk})

    def test_many_renders_every_instance(self):
        Product.objects.create(name='Coffee Mug')
        data = serializer_factory(Product, 'name')(Product.objects.all(), many=True).data
        self.assertEqual([item['name'] for item in data], ['Classic Shirt', 'Coffee Mug'])

    def test_same_request_returns_cached_class(self):
        first = serializer_factory(Product, 'name,sizes')
        second = serializer_factory(Product, {'name': None, 'sizes': None})
        self.assertIs(first, second)
        self.assertEqual(serializer_factory_cache_info().hits, 1)

    def test_different_requests_return_different_classes(self):
        self.assertIsNot(
            serializer_factory(Product, 'name'),
            serializer_factory(Product, 'name,description'),
        )

    def test_clear_cache(self):
        first = serializer_factory(Product, 'name')
        clear_serializer_factory_cache()
        self.assertIsNot(first, serializer_factory(Product, 'name'))

    def test_unknown_field_is_rejected(self):
        with self.assertRaises(InvalidFieldsError) as ctx:
            serializer_factory(Product, 'name,colour,weight')
        self.assertEqual(ctx.exception.invalid, ['colour', 'weight'])
        self.assertIn('sizes', ctx.exception.allowed)

    def test_unknown_nested_field_is_rejected_with_path(self):
        with self.assertRaises(InvalidFieldsError) as ctx:
            serializer_factory(Product, 'sizes.colour')
        self.assertEqual(ctx.exception.invalid, ['sizes.colour'])
        self.assertIn('sizes.code', ctx.exception.allowed)
        self.assertEqual(
            ctx.exception.message, "Unknown fields requested for Size: 'sizes.colour'."
        )

    def test_subfields_on_nested_plain_field_keep_their_reason(self):
        with self.assertRaises(InvalidFieldsError) as ctx:
            serializer_factory(Product, 'sizes.code.first')
        self.assertEqual(ctx.exception.invalid, ['sizes.code'])
        self.assertEqual(
            ctx.exception.message,
            "'sizes.code' is not a relation and cannot take sub-fields.",
        )
        self.assertEqual(ctx.exception.detail['fields'], [ctx.exception.message])

    def test_subfields_on_plain_field_are_rejected(self):
        with self.assertRaises(InvalidFieldsError) as ctx:
            serializer_factory(Product, 'name.first')
        self.assertEqual(ctx.exception.invalid, ['name'])

    def test_allowed_field_names_include_reverse_relations(self):
        self.assertEqual(
            allowed_field_names(Product),
            ['id', 'name', 'description', 'created_at', 'updated_at', 'sizes'],
        )


class DynamicFieldsMixinTests(TestCase):

    def setUp(self):
        self.shirt = Product.objects.create(name='Classic Shirt')
        Size.objects.create(product=self.shirt, code='S', text='Small')

    def test_fields_argument_keeps_only_named_fields(self):
        data = ProductSerializer(self.shirt, fields=['name', 'sizes']).data
        self.assertEqual(set(data), {'name', 'sizes'})

    def test_exclude_argument_drops_fields(self):
        data = ProductSerializer(self.shirt, exclude=['sizes', 'description']).data
        self.assertNotIn('sizes', data)
        self.assertNotIn('description', data)
        self.assertIn('name', data)

    def test_with_fields_factory(self):
        build = ProductSerializer.with_fields(fields=['id'])
        self.assertEqual(build(self.shirt).data, {'id': self.shirt.pk})


class BaseModelSerializerTests(TestCase):

    def setUp(self):
        self.shirt = Product.objects.create(name='Classic Shirt')
        self.small = Size.objects.create(product=self.shirt, code='S', text='Small')

    def test_read_only_fields_override(self):
        serializer = SizeSerializer(self.small, read_only_fields_override=['product'])
        self.assertTrue(serializer.fields['product'].read_only)
        self.assertFalse(serializer.fields['code'].read_only)

    def test_unknown_override_names_are_ignored(self):
        serializer = SizeSerializer(self.small, read_only_fields_override=['colour'])
        self.assertNotIn('colour', serializer.fields)

    def test_timestamp_fields_are_read_only(self):
        fields = ProductSerializer().fields
        self.assertTrue(fields['created_at'].read_only)
        self.assertTrue(fields['updated_at'].read_only)

    def test_business_rules_run_during_validation(self):
        serializer = ProductSerializer(data={
            'name': 'Socks',
            'sizes': [{'code': 'M'}, {'code': 'M'}],
        })
        self.assertFalse(serializer.is_valid())
        self.assertEqual(serializer.errors['sizes'], ['Duplicate size codes: M.'])

    def test_create_is_logged(self):
        serializer = SizeSerializer(data={'product': self.shirt.pk, 'code': 'L'})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        with self.assertLogs('core.serializers.base_serializers', level='INFO') as cm:
            size = serializer.save()
        self.assertEqual(cm.output, [f'INFO:core.serializers.base_serializers:Created Size {size.pk}'])

    def test_update_logs_changed_fields(self):
        serializer = SizeSerializer(self.small, data={'text': 'Tiny', 'code': 'S'}, partial=True)
        self.assertTrue(serializer.is_valid(), serializer.errors)
        with self.assertLogs('core.serializers.base_serializers', level='INFO') as cm:
            serializer.save()
        self.assertIn("fields: ['text']", cm.output[0])
