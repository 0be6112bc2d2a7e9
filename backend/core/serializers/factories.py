"""
Dynamic serializer construction.

``serializer_factory`` builds a ``ModelSerializer`` subclass on the fly with
``type()``, limited to the fields a client asked for. One-to-many reverse
relations (``product.sizes``) are rendered as nested read-only lists whose
serializer classes are built the same way.

    ProductSerializer = serializer_factory(Product, "name,sizes.code")
    ProductSerializer(product).data
    # {'name': 'Shirt', 'sizes': [{'code': 'S'}, {'code': 'M'}]}

Generated classes are cached, so the same request always returns the same
class object.
"""

import logging
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from django.db import models

from .base_serializers import BaseModelSerializer
from .fields import (
    InvalidFieldsError,
    freeze_field_tree,
    parse_requested_fields,
    thaw_field_tree,
)

logger = logging.getLogger(__name__)

FACTORY_CACHE_SIZE = 256


def concrete_field_names(model, parent_model=None) -> List[str]:
    """Concrete field names of ``model``, skipping foreign keys back to ``parent_model``."""
    names = []
    for field in model._meta.concrete_fields:
        if parent_model is not None and field.is_relation and field.related_model is parent_model:
            continue
        names.append(field.name)
    return names


def reverse_relations(model) -> Dict[str, models.Field]:
    """One-to-many reverse relations keyed by accessor name (e.g. ``sizes``)."""
    relations = {}
    for field in model._meta.get_fields():
        if field.one_to_many and field.auto_created and not field.concrete:
            relations[field.get_accessor_name()] = field
    return relations


def allowed_field_names(model) -> List[str]:
    return concrete_field_names(model) + list(reverse_relations(model))


def serializer_factory(model, fields=None, base=BaseModelSerializer):
    """
    Return a serializer class for ``model`` restricted to ``fields``.

    ``fields`` may be a field tree, a comma separated string, an iterable of
    names or ``None`` (all concrete fields). Raises ``InvalidFieldsError``
    for names the model does not have.
    """
    if fields is not None and not isinstance(fields, dict):
        fields = parse_requested_fields(fields)
    return _build_serializer_class(model, freeze_field_tree(fields), base, None)


def clear_serializer_factory_cache():
    _build_serializer_class.cache_clear()


def serializer_factory_cache_info():
    return _build_serializer_class.cache_info()


@lru_cache(maxsize=FACTORY_CACHE_SIZE)
def _build_serializer_class(model, frozen_fields: Optional[Tuple], base, parent_model):
    tree = thaw_field_tree(frozen_fields)
    relations = reverse_relations(model)

    if tree is None:
        tree = dict.fromkeys(concrete_field_names(model, parent_model))

    allowed = allowed_field_names(model)
    unknown = [name for name in tree if name not in allowed]
    if unknown:
        raise InvalidFieldsError(
            f"Unknown fields requested for {model.__name__}: "
            f"{', '.join(repr(n) for n in sorted(unknown))}.",
            invalid=unknown,
            allowed=allowed,
        )

    attrs = {}
    for name, subfields in tree.items():
        if name in relations:
            related_model = relations[name].related_model
            try:
                nested_class = _build_serializer_class(
                    related_model, freeze_field_tree(subfields), base, model
                )
            except InvalidFieldsError as exc:
                raise exc.with_prefix(name) from exc
            attrs[name] = nested_class(many=True, read_only=True)
        elif subfields is not None:
            raise InvalidFieldsError(
                f"'{name}' is not a relation and cannot take sub-fields.",
                invalid=[name],
                allowed=list(relations),
            )

    attrs['Meta'] = type('Meta', (), {'model': model, 'fields': list(tree)})
    attrs['__module__'] = __name__

    class_name = f'{model.__name__}DynamicSerializer'
    logger.debug(f"Built {class_name} with fields {list(tree)}")
    return type(class_name, (base,), attrs)
