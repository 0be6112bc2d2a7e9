"""
Content checks for articles: front-matter fields and markdown code fences.
"""

import datetime
import re
from typing import Any, Dict, List, Tuple

REQUIRED_FIELDS = ('title', 'date', 'tags', 'description')

_FENCE_RE = re.compile(r'^(?P<indent>[ ]{0,3})(?P<marker>`{3,}|~{3,})(?P<info>.*)$')


def _non_empty_string(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _parse_date(value):
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        pass
    if text[-1:] in ('Z', 'z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.datetime.fromisoformat(text).date()
    except ValueError:
        return None


def validate_front_matter(meta: Dict[str, Any]) -> List[str]:
    """Problems found in an article's metadata; empty when it is valid."""
    problems = []

    for name in REQUIRED_FIELDS:
        if name not in meta or meta[name] is None:
            problems.append(f"Missing required front-matter field '{name}'.")

    if 'title' in meta and meta['title'] is not None and not _non_empty_string(meta['title']):
        problems.append("'title' must be a non-empty string.")

    if 'description' in meta and meta['description'] is not None and not _non_empty_string(meta['description']):
        problems.append("'description' must be a non-empty string.")

    if 'date' in meta and meta['date'] is not None and _parse_date(meta['date']) is None:
        problems.append(f"'date' must be a YYYY-MM-DD date, got {meta['date']!r}.")

    tags = meta.get('tags')
    if tags is not None:
        if not isinstance(tags, list) or not tags:
            problems.append("'tags' must be a non-empty list.")
        else:
            bad = [tag for tag in tags if not _non_empty_string(tag)]
            if bad:
                problems.append(f"'tags' must only contain non-empty strings, got {bad!r}.")
            names = [tag.strip().lower() for tag in tags if _non_empty_string(tag)]
            duplicates = sorted({name for name in names if names.count(name) > 1})
            if duplicates:
                problems.append(f"Duplicate tags: {', '.join(duplicates)}.")

    return problems


def _iter_fences(body: str):
    """Yield ``(line_number, marker, info)`` for every fence line that opens or closes a block."""
    open_marker = None
    for number, line in enumerate(body.splitlines(), start=1):
        match = _FENCE_RE.match(line)
        if not match:
            continue
        marker = match.group('marker')
        info = match.group('info').strip()
        if open_marker is None:
            open_marker = marker
            yield number, marker, info
        elif marker[0] == open_marker[0] and len(marker) >= len(open_marker) and not info:
            open_marker = None
            yield number, marker, None


def extract_code_blocks(body: str) -> List[Tuple[str, str]]:
    """``(language, code)`` for every closed fenced code block, in order."""
    lines = body.splitlines()
    blocks = []
    start = None
    language = ''
    for number, marker, info in _iter_fences(body):
        if start is None:
            start = number
            language = info.split()[0] if info else ''
        else:
            blocks.append((language, '\n'.join(lines[start:number - 1])))
            start = None
    return blocks


def validate_body(body: str) -> List[str]:
    """Markdown well-formedness problems; empty when the body is fine."""
    if not body.strip():
        return ["Article body is empty."]

    problems = []
    opened_at = None
    for number, marker, info in _iter_fences(body):
        opened_at = number if opened_at is None else None
    if opened_at is not None:
        problems.append(f"Code fence opened on body line {opened_at} is never closed.")
    return problems
