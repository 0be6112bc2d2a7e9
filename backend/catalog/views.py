from rest_framework import viewsets, permissions
from django_filters.rest_framework import DjangoFilterBackend
from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema

from core.logging import StructuredLogger, EventType
from core.serializers import InvalidFieldsError, parse_requested_fields, serializer_factory
from .filters import ProductFilter, SizeFilter
from .models import Product, Size
from .serializers import ProductSerializer, SizeSerializer

logger = StructuredLogger(__name__)

FIELDS_PARAMETER = openapi.Parameter(
    'fields',
    openapi.IN_QUERY,
    description=(
        "Comma separated list of fields to return, e.g. 'name,sizes.code'. "
        "Dotted names select fields of the nested sizes."
    ),
    type=openapi.TYPE_STRING,
    required=False,
)

_UNSET = object()


class ProductViewSet(viewsets.ModelViewSet):
    """
    Products with their sizes.

    ``GET`` requests accept a ``fields`` query parameter; the response is
    then rendered by a serializer class built for exactly those fields.
    """
    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_class = ProductFilter
    fields_query_param = 'fields'

    def get_requested_fields(self):
        """Field tree from the query string, or None for the default representation."""
        cached = getattr(self, '_requested_fields', _UNSET)
        if cached is not _UNSET:
            return cached

        requested = None
        if self.action in ('list', 'retrieve') and self.request is not None:
            values = self.request.query_params.getlist(self.fields_query_param)
            try:
                requested = parse_requested_fields(values)
            except InvalidFieldsError:
                logger.warning(
                    EventType.FIELDS_REJECTED,
                    f"Rejected fields parameter {values!r}",
                    entity_type='product',
                )
                raise
        self._requested_fields = requested
        return requested

    def get_serializer_class(self):
        requested = self.get_requested_fields()
        if requested is None:
            return ProductSerializer
        try:
            serializer_class = serializer_factory(Product, requested)
        except InvalidFieldsError as exc:
            logger.warning(
                EventType.FIELDS_REJECTED,
                f"Unknown product fields requested: {exc.invalid}",
                entity_type='product',
                extra_data={'invalid': exc.invalid},
            )
            raise
        logger.debug(
            EventType.SERIALIZER_BUILT,
            f"Using {serializer_class.__name__} for fields {list(requested)}",
            entity_type='product',
        )
        return serializer_class

    def get_queryset(self):
        queryset = super().get_queryset()
        requested = self.get_requested_fields()
        if requested is None or 'sizes' in requested:
            queryset = queryset.prefetch_related('sizes')
        return queryset

    @swagger_auto_schema(manual_parameters=[FIELDS_PARAMETER], tags=['Catalog'])
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @swagger_auto_schema(manual_parameters=[FIELDS_PARAMETER], tags=['Catalog'])
    def retrieve(self, request, *args, **kwargs):
        return super().retrieve(request, *args, **kwargs)

    def perform_create(self, serializer):
        product = serializer.save()
        logger.log_business_event('product_created', entity_type='product', entity_id=product.pk)

    def perform_update(self, serializer):
        product = serializer.save()
        logger.log_business_event('product_updated', entity_type='product', entity_id=product.pk)

    def perform_destroy(self, instance):
        product_id = instance.pk
        instance.delete()
        logger.log_business_event('product_deleted', entity_type='product', entity_id=product_id)


class SizeViewSet(viewsets.ModelViewSet):
    """
    Sizes, filterable by product, code and stock.
    """
    queryset = Size.objects.select_related('product')
    serializer_class = SizeSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_class = SizeFilter

    def get_serializer(self, *args, **kwargs):
        if self.action in ('update', 'partial_update'):
            kwargs.setdefault('read_only_fields_override', ['product'])
        return super().get_serializer(*args, **kwargs)
