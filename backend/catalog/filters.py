import django_filters
from .models import Product, Size


class ProductFilter(django_filters.FilterSet):
    """
    Filter for the Product model.
    """
    name = django_filters.CharFilter(field_name='name', lookup_expr='icontains', label="Name")
    size = django_filters.CharFilter(method='filter_by_size', label="Size code")

    class Meta:
        model = Product
        fields = ['name', 'size']

    def filter_by_size(self, queryset, name, value):
        """
        Products that carry a size with the given code (case-insensitive).
        """
        return queryset.filter(sizes__code__iexact=value.strip()).distinct()


class SizeFilter(django_filters.FilterSet):
    in_stock = django_filters.BooleanFilter(method='filter_in_stock', label="In stock")

    class Meta:
        model = Size
        fields = ['product', 'code', 'in_stock']

    def filter_in_stock(self, queryset, name, value):
        if value:
            return queryset.filter(quantity__gt=0)
        return queryset.filter(quantity=0)
