from django.contrib import admin
from .models import Product, Size


class SizeInline(admin.TabularInline):
    model = Size
    extra = 0


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at', 'updated_at']
    search_fields = ['name', 'description']
    inlines = [SizeInline]


@admin.register(Size)
class SizeAdmin(admin.ModelAdmin):
    list_display = ['product', 'code', 'text', 'quantity']
    list_filter = ['code']
