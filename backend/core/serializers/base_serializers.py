"""
Base Serializers and Mixins

Foundational serializer classes shared by the catalog app and by the
dynamic serializer factory.
"""

from rest_framework import serializers
from typing import Dict, Any, Iterable
import logging

logger = logging.getLogger(__name__)


class BaseModelSerializer(serializers.ModelSerializer):
    """
    ModelSerializer with a business-rule hook and create/update logging.

    ``read_only_fields_override`` locks extra fields for one instance,
    e.g. a view that allows editing a row but not moving it to another parent.
    """

    def __init__(self, *args, **kwargs):
        self.read_only_fields_override = kwargs.pop('read_only_fields_override', None)
        super().__init__(*args, **kwargs)

        for field_name in self.read_only_fields_override or ():
            field = self.fields.get(field_name)
            if field is not None:
                field.read_only = True

    def validate(self, attrs):
        attrs = super().validate(attrs)
        self._validate_business_rules(attrs)
        return attrs

    def _validate_business_rules(self, attrs):
        """Cross-field rules; raise ValidationError keyed by the offending field."""

    def create(self, validated_data):
        model_name = self.Meta.model.__name__
        try:
            instance = super().create(validated_data)
        except Exception as e:
            logger.error(f"Could not create {model_name}: {e}")
            raise
        logger.info(f"Created {model_name} {instance.pk}")
        return instance

    def update(self, instance, validated_data):
        model_name = instance.__class__.__name__
        before = self._snapshot(instance, validated_data.keys())
        try:
            instance = super().update(instance, validated_data)
        except Exception as e:
            logger.error(f"Could not update {model_name} {instance.pk}: {e}")
            raise
        changed = self._changed_fields(before, validated_data)
        if changed:
            logger.info(f"Updated {model_name} {instance.pk}, fields: {changed}")
        return instance

    @staticmethod
    def _snapshot(instance, field_names: Iterable[str]) -> Dict[str, Any]:
        return {name: getattr(instance, name, None) for name in field_names}

    @staticmethod
    def _changed_fields(before: Dict[str, Any], after: Dict[str, Any]):
        return sorted(name for name, value in after.items() if before.get(name) != value)


class TimestampMixin(serializers.Serializer):
    """
    Read-only ``created_at`` / ``updated_at``.

    List both names in ``Meta.fields`` of the concrete serializer.
    """
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)
