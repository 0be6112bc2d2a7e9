from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from articles.front_matter import FrontMatterError
from articles.loader import get_articles_dir, iter_article_paths, load_article
from core.logging import StructuredLogger, EventType

logger = StructuredLogger(__name__)


class Command(BaseCommand):
    help = "Validate article front-matter (title, date, tags, description) and markdown code fences."

    def add_arguments(self, parser):
        parser.add_argument(
            'paths',
            nargs='*',
            help='Article files to check (default: every article in ARTICLES_DIR)',
        )

    def handle(self, *args, **options):
        paths = [Path(p) for p in options['paths']]
        if not paths:
            try:
                paths = list(iter_article_paths())
            except FileNotFoundError as e:
                raise CommandError(str(e)) from e
        if not paths:
            raise CommandError(f"No articles found in {get_articles_dir()}")

        failures = 0
        for path in paths:
            if not path.is_file():
                self.stdout.write(self.style.ERROR(f"✗ {path}: file not found"))
                failures += 1
                continue

            try:
                article = load_article(path)
            except (FrontMatterError, UnicodeDecodeError, OSError) as e:
                self.stdout.write(self.style.ERROR(f"✗ {path.name}: {e}"))
                logger.error(EventType.ARTICLE_INVALID, str(e), entity_type='article', entity_id=path.stem)
                failures += 1
                continue

            if article.is_valid:
                self.stdout.write(self.style.SUCCESS(
                    f"✓ {path.name}: {article.title} ({len(article.code_blocks)} code blocks)"
                ))
                logger.info(EventType.ARTICLE_VALIDATED, f"Article {article.slug} is valid",
                            entity_type='article', entity_id=article.slug)
            else:
                failures += 1
                self.stdout.write(self.style.ERROR(f"✗ {path.name}"))
                for problem in article.problems:
                    self.stdout.write(f"    - {problem}")
                logger.warning(EventType.ARTICLE_INVALID, f"Article {article.slug} is invalid",
                               entity_type='article', entity_id=article.slug,
                               extra_data={'problems': article.problems})

        if failures:
            raise CommandError(f"{failures} of {len(paths)} article(s) failed validation")
