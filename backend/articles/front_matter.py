"""
Front-matter parsing for markdown articles.

An article starts with a YAML block fenced by ``---`` lines:

    ---
    title: Dynamic serializers
    date: 2019-02-11
    tags: [django, drf]
    description: Build serializer classes at runtime.
    ---
    Body text...
"""

import re
from typing import Any, Dict, Tuple

import yaml

DELIMITER = '---'

_CLOSING_RE = re.compile(r'^(?:---|\.\.\.)[ \t]*$', re.MULTILINE)


class FrontMatterError(ValueError):
    """The front-matter block is missing or cannot be parsed."""


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """Return ``(metadata, body)`` for an article's raw text."""
    text = text.lstrip('\ufeff')
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != DELIMITER:
        raise FrontMatterError("Article does not start with a '---' front-matter delimiter.")

    rest = ''.join(lines[1:])
    closing = _CLOSING_RE.search(rest)
    if closing is None:
        raise FrontMatterError("Front-matter block is not closed with '---'.")

    raw = rest[:closing.start()]
    body = rest[closing.end():].lstrip('\r\n')

    try:
        meta = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"Front-matter is not valid YAML: {exc}") from exc

    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise FrontMatterError(
            f"Front-matter must be a mapping, got {type(meta).__name__}."
        )
    return meta, body
