import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from django.conf import settings

from .front_matter import split_front_matter
from .validation import extract_code_blocks, validate_body, validate_front_matter

logger = logging.getLogger(__name__)

ARTICLE_SUFFIXES = ('.md', '.markdown')


@dataclass
class Article:
    slug: str
    path: Path
    meta: Dict[str, Any]
    body: str
    problems: List[str] = field(default_factory=list)

    @property
    def title(self) -> Optional[str]:
        return self.meta.get('title')

    @property
    def is_valid(self) -> bool:
        return not self.problems

    @property
    def code_blocks(self):
        return extract_code_blocks(self.body)


def get_articles_dir() -> Path:
    return Path(getattr(settings, 'ARTICLES_DIR', Path(__file__).resolve().parent / 'content'))


def load_article(path) -> Article:
    """
    Read and validate one article.

    Raises ``FrontMatterError`` when the front-matter block itself cannot
    be parsed, ``UnicodeDecodeError`` for non UTF-8 files and ``OSError``
    when the file cannot be read; field-level problems are collected on
    ``Article.problems``.
    """
    path = Path(path)
    meta, body = split_front_matter(path.read_text(encoding='utf-8'))
    problems = validate_front_matter(meta) + validate_body(body)
    article = Article(slug=path.stem, path=path, meta=meta, body=body, problems=problems)
    if problems:
        logger.warning(f"Article {article.slug} has {len(problems)} problem(s)")
    else:
        logger.debug(f"Loaded article {article.slug}")
    return article


def iter_article_paths(directory=None) -> Iterator[Path]:
    """Article files in ``directory``; raises ``FileNotFoundError`` when it does not exist."""
    directory = Path(directory) if directory is not None else get_articles_dir()
    if not directory.is_dir():
        raise FileNotFoundError(f"Articles directory {directory} does not exist")
    for path in sorted(directory.iterdir()):
        if path.is_file() and path.suffix.lower() in ARTICLE_SUFFIXES:
            yield path


def iter_articles(directory=None) -> Iterator[Article]:
    for path in iter_article_paths(directory):
        yield load_article(path)
