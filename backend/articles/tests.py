import datetime
import tempfile
from io import StringIO
from pathlib import Path

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, override_settings

from .front_matter import FrontMatterError, split_front_matter
from .loader import get_articles_dir, iter_articles, load_article
from .validation import extract_code_blocks, validate_body, validate_front_matter

VALID_ARTICLE = """---
title: A title
date: 2020-01-02
tags: [django, python]
description: Short summary.
---

Intro paragraph.

```python
print("hello")
```
"""


class ShippedArticleTests(SimpleTestCase):
    """The article that ships with the repository."""

    def setUp(self):
        self.article = load_article(get_articles_dir() / 'dynamic-serializers.md')

    def test_article_is_valid(self):
        self.assertEqual(self.article.problems, [])
        self.assertTrue(self.article.is_valid)

    def test_front_matter_fields(self):
        meta = self.article.meta
        self.assertEqual(meta['title'], 'Building Django REST Framework serializers on the fly')
        self.assertIsInstance(meta['date'], datetime.date)
        self.assertIn('django-rest-framework', meta['tags'])
        self.assertTrue(meta['description'].strip())

    def test_body_has_five_python_fragments(self):
        blocks = self.article.code_blocks
        self.assertEqual(len(blocks), 5)
        self.assertEqual({language for language, _ in blocks}, {'python'})
        self.assertIn('related_name="sizes"', blocks[0][1])
        self.assertIn('type(', blocks[3][1])

    def test_iter_articles_finds_it(self):
        slugs = [article.slug for article in iter_articles()]
        self.assertIn('dynamic-serializers', slugs)


class FrontMatterTests(SimpleTestCase):

    def test_split(self):
        meta, body = split_front_matter(VALID_ARTICLE)
        self.assertEqual(meta['title'], 'A title')
        self.assertEqual(meta['date'], datetime.date(2020, 1, 2))
        self.assertTrue(body.startswith('Intro paragraph.'))

    def test_byte_order_mark_is_ignored(self):
        meta, _ = split_front_matter('\ufeff' + VALID_ARTICLE)
        self.assertEqual(meta['tags'], ['django', 'python'])

    def test_missing_opening_delimiter(self):
        with self.assertRaises(FrontMatterError):
            split_front_matter("title: x\n---\nbody\n")

    def test_missing_closing_delimiter(self):
        with self.assertRaises(FrontMatterError):
            split_front_matter("---\ntitle: x\nbody\n")

    def test_invalid_yaml(self):
        with self.assertRaises(FrontMatterError):
            split_front_matter("---\ntitle: [unclosed\n---\nbody\n")

    def test_front_matter_must_be_a_mapping(self):
        with self.assertRaises(FrontMatterError):
            split_front_matter("---\n- a\n- b\n---\nbody\n")

    def test_empty_block_gives_empty_mapping(self):
        meta, body = split_front_matter("---\n---\nbody\n")
        self.assertEqual(meta, {})
        self.assertEqual(body, 'body\n')


class ValidateFrontMatterTests(SimpleTestCase):

    def setUp(self):
        self.meta = {
            'title': 'A title',
            'date': datetime.date(2020, 1, 2),
            'tags': ['django'],
            'description': 'Summary',
        }

    def test_valid(self):
        self.assertEqual(validate_front_matter(self.meta), [])

    def test_iso_string_date_is_accepted(self):
        self.meta['date'] = '2020-01-02'
        self.assertEqual(validate_front_matter(self.meta), [])

    def test_quoted_iso_datetime_is_accepted(self):
        for value in ('2019-03-18T10:00:00Z', '2019-03-18T10:00:00+02:00', '2019-03-18 10:00'):
            with self.subTest(date=value):
                self.meta['date'] = value
                self.assertEqual(validate_front_matter(self.meta), [])

    def test_unknown_keys_are_allowed(self):
        self.meta['author'] = 'someone'
        self.assertEqual(validate_front_matter(self.meta), [])

    def test_missing_fields(self):
        problems = validate_front_matter({})
        self.assertEqual(len(problems), 4)
        for name in ('title', 'date', 'tags', 'description'):
            self.assertTrue(any(f"'{name}'" in problem for problem in problems))

    def test_bad_values(self):
        cases = {
            'title': '  ',
            'description': 42,
            'date': 'next tuesday',
            'tags': [],
        }
        for name, value in cases.items():
            with self.subTest(field=name):
                meta = dict(self.meta, **{name: value})
                problems = validate_front_matter(meta)
                self.assertEqual(len(problems), 1)
                self.assertIn(f"'{name}'", problems[0])

    def test_tags_must_be_strings(self):
        self.meta['tags'] = ['django', 3]
        self.assertEqual(len(validate_front_matter(self.meta)), 1)

    def test_duplicate_tags(self):
        self.meta['tags'] = ['django', 'Django']
        problems = validate_front_matter(self.meta)
        self.assertEqual(problems, ['Duplicate tags: django.'])


class ValidateBodyTests(SimpleTestCase):

    def test_balanced_fences(self):
        body = "text\n```python\nx = 1\n```\n\n~~~\nraw\n~~~\n"
        self.assertEqual(validate_body(body), [])
        self.assertEqual(extract_code_blocks(body), [('python', 'x = 1'), ('', 'raw')])

    def test_unclosed_fence(self):
        problems = validate_body("intro\n\n```python\nx = 1\n")
        self.assertEqual(problems, ["Code fence opened on body line 3 is never closed."])

    def test_tilde_fence_is_not_closed_by_backticks(self):
        self.assertEqual(len(validate_body("~~~\ncode\n```\n")), 1)

    def test_backticks_inside_longer_fence(self):
        body = "````markdown\n```python\nx\n```\n````\n"
        self.assertEqual(validate_body(body), [])
        self.assertEqual(extract_code_blocks(body), [('markdown', '```python\nx\n```')])

    def test_empty_body(self):
        self.assertEqual(validate_body("  \n"), ["Article body is empty."])


class CheckArticlesCommandTests(SimpleTestCase):

    def test_shipped_articles_pass(self):
        out = StringIO()
        call_command('check_articles', stdout=out)
        self.assertIn('dynamic-serializers.md', out.getvalue())
        self.assertIn('5 code blocks', out.getvalue())

    def test_invalid_article_fails(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'broken.md'
            path.write_text("---\ntitle: x\n---\n```python\nunclosed\n", encoding='utf-8')
            out = StringIO()
            with self.assertRaises(CommandError):
                call_command('check_articles', str(path), stdout=out)
            self.assertIn("Missing required front-matter field 'date'", out.getvalue())

    def test_unparseable_front_matter_fails(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'nofront.md'
            path.write_text("# Just a heading\n", encoding='utf-8')
            with self.assertRaises(CommandError):
                call_command('check_articles', str(path), stdout=StringIO())

    def test_missing_file_fails(self):
        with self.assertRaises(CommandError):
            call_command('check_articles', '/nonexistent/article.md', stdout=StringIO())

    def test_non_utf8_article_fails_with_one_line(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'latin1.md'
            path.write_bytes(b'---\ntitle: \xff\xfe\n---\nbody\n')
            out = StringIO()
            with self.assertRaises(CommandError):
                call_command('check_articles', str(path), stdout=out)
            self.assertIn('latin1.md', out.getvalue())

    def test_missing_articles_directory_fails(self):
        with override_settings(ARTICLES_DIR='/nonexistent/articles'):
            with self.assertRaises(CommandError) as ctx:
                call_command('check_articles', stdout=StringIO())
        self.assertIn('does not exist', str(ctx.exception))

    def test_empty_directory_fails(self):
        with tempfile.TemporaryDirectory() as tmp:
            with override_settings(ARTICLES_DIR=tmp):
                with self.assertRaises(CommandError):
                    call_command('check_articles', stdout=StringIO())

    def test_valid_article_in_custom_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / 'ok.md').write_text(VALID_ARTICLE, encoding='utf-8')
            out = StringIO()
            with override_settings(ARTICLES_DIR=tmp):
                call_command('check_articles', stdout=out)
            self.assertIn('A title (1 code blocks)', out.getvalue())
