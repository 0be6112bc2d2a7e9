"""
Composition Mixins

Serializer composition patterns for nested data and per-request field
selection.
"""

from django.db import transaction
from rest_framework import serializers
import logging

logger = logging.getLogger(__name__)


class NestedSerializerMixin:
    """
    Writes one-to-many nested lists on create and update.

    ``nested_write_fields`` names the reverse accessors (e.g. ``sizes``)
    whose validated payload is written through the related manager. The
    parent and its nested rows are written in one transaction.
    """

    nested_write_fields = []

    def create(self, validated_data):
        nested_data = self._extract_nested_data(validated_data)
        with transaction.atomic():
            instance = super().create(validated_data)
            self._create_nested_objects(instance, nested_data)
        return instance

    def update(self, instance, validated_data):
        nested_data = self._extract_nested_data(validated_data)
        with transaction.atomic():
            instance = super().update(instance, validated_data)
            self._update_nested_objects(instance, nested_data)
        return instance

    def _extract_nested_data(self, validated_data):
        nested_data = {}
        for field_name in self.nested_write_fields:
            if field_name in validated_data:
                nested_data[field_name] = validated_data.pop(field_name)
        return nested_data

    def _create_nested_objects(self, instance, nested_data):
        for field_name, items in nested_data.items():
            related_manager = getattr(instance, field_name)
            try:
                for item in items:
                    item = dict(item)
                    item.pop('id', None)
                    related_manager.create(**item)
            except Exception as e:
                logger.error(f"Error creating nested field {field_name}: {e}")
                raise serializers.ValidationError({field_name: [f"Error creating {field_name}: {e}"]})

    def _update_nested_objects(self, instance, nested_data):
        for field_name, items in nested_data.items():
            try:
                self._update_nested_list(getattr(instance, field_name), items)
            except Exception as e:
                logger.error(f"Error updating nested field {field_name}: {e}")
                raise serializers.ValidationError({field_name: [f"Error updating {field_name}: {e}"]})

    def _update_nested_list(self, related_manager, items):
        """
        Update matching ids, create the rest, delete rows missing from the payload.

        Ids that belong to another parent, or to no row at all, are created
        as new rows. Changed rows are deleted and inserted again under
        their own primary key once every removal is done, so unique values
        can move between rows in one payload (two sizes swapping codes).
        """
        existing_objects = {obj.pk: obj for obj in related_manager.all()}
        untouched = set()
        changed = []
        new_items = []

        for item in items:
            item = dict(item)
            obj = existing_objects.get(item.pop('id', None))
            if obj is None:
                new_items.append(item)
                continue
            dirty = [attr for attr, value in item.items() if getattr(obj, attr) != value]
            for attr in dirty:
                setattr(obj, attr, item[attr])
            if dirty:
                changed.append(obj)
            else:
                untouched.add(obj.pk)

        related_manager.exclude(pk__in=untouched).delete()

        for obj in changed:
            obj.save(force_insert=True)
        for item in new_items:
            related_manager.create(**item)


class DynamicFieldsMixin:
    """
    Per-instance field inclusion/exclusion.

    Every declared field is still built and then popped, so the full
    field set is constructed on each instantiation.
    """

    def __init__(self, *args, **kwargs):
        fields = kwargs.pop('fields', None)
        exclude = kwargs.pop('exclude', None)

        super().__init__(*args, **kwargs)

        if fields is not None:
            allowed = set(fields)
            existing = set(self.fields)
            for field_name in existing - allowed:
                self.fields.pop(field_name)

        if exclude is not None:
            for field_name in exclude:
                self.fields.pop(field_name, None)

    @classmethod
    def with_fields(cls, fields=None, exclude=None):
        """Factory returning a callable that builds the serializer with fixed fields"""
        return lambda *args, **kwargs: cls(
            *args, **kwargs, fields=fields, exclude=exclude
        )
