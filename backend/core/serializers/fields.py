"""
Requested-field parsing for dynamic serializers.

Turns a ``?fields=`` style value into a field tree that the serializer
factory understands:

    "name,sizes.code,sizes.text" -> {'name': None, 'sizes': {'code': None, 'text': None}}

A ``None`` leaf means the whole field. A dict means a relation restricted
to the listed sub-fields.
"""

from typing import Dict, Iterable, Optional, Tuple, Union

from rest_framework import serializers

FieldTree = Dict[str, Optional['FieldTree']]


class InvalidFieldsError(serializers.ValidationError):
    """Raised when requested field names cannot be honoured."""

    default_code = 'invalid_fields'

    def __init__(self, message, invalid=None, allowed=None):
        detail = {'fields': [message]}
        if invalid:
            detail['invalid'] = sorted(invalid)
        if allowed:
            detail['allowed'] = list(allowed)
        super().__init__(detail)
        self.message = message
        self.invalid = sorted(invalid or [])
        self.allowed = list(allowed or [])

    def with_prefix(self, prefix: str) -> 'InvalidFieldsError':
        """The same error reported one level up, with every path under ``prefix``."""
        message = self.message
        for name in self.invalid:
            message = message.replace(f"'{name}'", f"'{prefix}.{name}'")
        return InvalidFieldsError(
            message,
            invalid=[f'{prefix}.{name}' for name in self.invalid],
            allowed=[f'{prefix}.{name}' for name in self.allowed],
        )


def _split(value: Union[str, Iterable[str]]):
    if isinstance(value, str):
        value = [value]
    for chunk in value:
        for part in str(chunk).split(','):
            part = part.strip()
            if part:
                yield part


def _insert(tree: dict, path):
    head, rest = path[0], path[1:]
    if not rest:
        # "sizes" after "sizes.code" must not widen the restriction
        tree.setdefault(head, None)
        return
    subtree = tree.get(head)
    if subtree is None:
        subtree = {}
        tree[head] = subtree
    _insert(subtree, rest)


def parse_requested_fields(value) -> Optional[FieldTree]:
    """
    Parse requested field names into a field tree.

    Returns ``None`` when nothing was requested so that callers fall back
    to their default field set.
    """
    if value is None:
        return None

    tree: FieldTree = {}
    for name in _split(value):
        path = [segment.strip() for segment in name.split('.')]
        bad = [segment for segment in path if not segment.isidentifier()]
        if bad:
            raise InvalidFieldsError(
                f"'{name}' is not a valid field path.", invalid=[name]
            )
        _insert(tree, path)

    return tree or None


def freeze_field_tree(tree: Optional[FieldTree]) -> Optional[Tuple]:
    """Hashable form of a field tree, order preserved."""
    if tree is None:
        return None
    return tuple((name, freeze_field_tree(sub)) for name, sub in tree.items())


def thaw_field_tree(frozen: Optional[Tuple]) -> Optional[FieldTree]:
    if frozen is None:
        return None
    return {name: thaw_field_tree(sub) for name, sub in frozen}
