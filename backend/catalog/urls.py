from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ProductViewSet, SizeViewSet

router = DefaultRouter()
router.register(r'products', ProductViewSet, basename='product')
router.register(r'sizes', SizeViewSet, basename='size')

urlpatterns = [
    path('', include(router.urls)),
]
