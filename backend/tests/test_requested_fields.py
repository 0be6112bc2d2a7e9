"""
Tests for parsing the ``fields`` query parameter into a field tree
"""

from django.test import SimpleTestCase

from core.serializers import InvalidFieldsError, freeze_field_tree, parse_requested_fields


class ParseRequestedFieldsTests(SimpleTestCase):

    def test_nothing_requested_returns_none(self):
        self.assertIsNone(parse_requested_fields(None))
        self.assertIsNone(parse_requested_fields(''))
        self.assertIsNone(parse_requested_fields(' , ,'))
        self.assertIsNone(parse_requested_fields([]))

    def test_flat_names(self):
        self.assertEqual(
            parse_requested_fields('name,description'),
            {'name': None, 'description': None},
        )

    def test_whitespace_is_stripped(self):
        self.assertEqual(
            parse_requested_fields(' name , sizes.code '),
            {'name': None, 'sizes': {'code': None}},
        )

    def test_dotted_paths_build_nested_tree(self):
        self.assertEqual(
            parse_requested_fields('name,sizes.code,sizes.quantity'),
            {'name': None, 'sizes': {'code': None, 'quantity': None}},
        )

    def test_restriction_wins_over_whole_relation(self):
        expected = {'sizes': {'code': None}}
        self.assertEqual(parse_requested_fields('sizes,sizes.code'), expected)
        self.assertEqual(parse_requested_fields('sizes.code,sizes'), expected)

    def test_duplicates_collapse_and_order_is_kept(self):
        tree = parse_requested_fields('description,name,description')
        self.assertEqual(list(tree), ['description', 'name'])

    def test_iterable_of_values(self):
        self.assertEqual(
            parse_requested_fields(['name', 'sizes.code,sizes.text']),
            {'name': None, 'sizes': {'code': None, 'text': None}},
        )

    def test_invalid_segment_raises(self):
        for value in ['sizes..code', 'name,1abc', 'na-me', 'sizes.']:
            with self.subTest(value=value):
                with self.assertRaises(InvalidFieldsError) as ctx:
                    parse_requested_fields(value)
                self.assertEqual(len(ctx.exception.invalid), 1)

    def test_freeze_is_hashable_and_order_sensitive(self):
        a = freeze_field_tree({'name': None, 'sizes': {'code': None}})
        b = freeze_field_tree({'sizes': {'code': None}, 'name': None})
        self.assertEqual(hash(a), hash(freeze_field_tree({'name': None, 'sizes': {'code': None}})))
        self.assertNotEqual(a, b)
        self.assertIsNone(freeze_field_tree(None))
