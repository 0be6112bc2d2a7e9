from rest_framework import serializers

from core.serializers import (
    BaseModelSerializer, DynamicFieldsMixin, NestedSerializerMixin, TimestampMixin,
)
from .models import Product, Size


class SizeSerializer(BaseModelSerializer):
    class Meta:
        model = Size
        fields = ['id', 'product', 'code', 'text', 'quantity']

    def _validate_business_rules(self, attrs):
        # product is read-only on update, so it comes from the instance
        product = attrs.get('product') or getattr(self.instance, 'product', None)
        code = attrs.get('code')
        if product is None or code is None:
            return
        clashes = Size.objects.filter(product=product, code=code)
        if self.instance is not None:
            clashes = clashes.exclude(pk=self.instance.pk)
        if clashes.exists():
            raise serializers.ValidationError({
                'code': [f"Product already has a size with code '{code}'."]
            })


class ProductSizeSerializer(serializers.ModelSerializer):
    """Size as it appears nested inside a product payload."""
    id = serializers.IntegerField(required=False)

    class Meta:
        model = Size
        fields = ['id', 'code', 'text', 'quantity']


class ProductSerializer(NestedSerializerMixin, DynamicFieldsMixin, TimestampMixin, BaseModelSerializer):
    """
    Full product representation with writable nested sizes.

    Accepts ``fields=`` / ``exclude=`` on instantiation through
    DynamicFieldsMixin. Read requests that ask for a subset of fields go
    through ``serializer_factory`` instead, see ``ProductViewSet``.
    """
    sizes = ProductSizeSerializer(many=True, required=False)

    nested_write_fields = ['sizes']

    class Meta:
        model = Product
        fields = ['id', 'name', 'description', 'sizes', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Product name cannot be blank.")
        return value

    def _validate_business_rules(self, attrs):
        codes = [item['code'] for item in attrs.get('sizes', ())]
        duplicates = sorted({code for code in codes if codes.count(code) > 1})
        if duplicates:
            raise serializers.ValidationError({
                'sizes': [f"Duplicate size codes: {', '.join(duplicates)}."]
            })
