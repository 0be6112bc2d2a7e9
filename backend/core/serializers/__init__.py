"""
Core Reusable Serializers Library

Base serializer, composition mixins and the dynamic serializer factory.
"""

from .base_serializers import BaseModelSerializer, TimestampMixin

from .composition_mixins import (
    NestedSerializerMixin,
    DynamicFieldsMixin,
)

from .fields import (
    InvalidFieldsError,
    parse_requested_fields,
    freeze_field_tree,
)

from .factories import (
    serializer_factory,
    clear_serializer_factory_cache,
    serializer_factory_cache_info,
    allowed_field_names,
)

__all__ = [
    'BaseModelSerializer',
    'TimestampMixin',

    'NestedSerializerMixin',
    'DynamicFieldsMixin',

    'InvalidFieldsError',
    'parse_requested_fields',
    'freeze_field_tree',

    'serializer_factory',
    'clear_serializer_factory_cache',
    'serializer_factory_cache_info',
    'allowed_field_names',
]
