from django.contrib import admin
from .models import Brand, Category, Attribute, Product


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'level', 'parent', 'is_featured', 'is_active', 'sort_order']
    list_filter = ['level', 'is_featured', 'is_active']
    search_fields = ['name', 'slug', 'industry', 'country']
    ordering = ['sort_order', 'name']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'parent', 'is_active', 'sort_order']
    list_filter = ['is_active']
    search_fields = ['name', 'slug', 'description']
    ordering = ['sort_order', 'name']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Attribute)
class AttributeAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'attribute_type', 'is_required', 'is_active']
    list_filter = ['attribute_type', 'is_required', 'is_active']
    search_fields = ['name', 'slug']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'brand', 'base_price', 'sale_price', 'stock_quantity', 'status', 'is_active']
    list_filter = ['status', 'is_active', 'is_featured', 'track_inventory', 'category', 'brand']
    search_fields = ['name', 'sku', 'description']
    ordering = ['-created_at']
    filter_horizontal = ['master_data']
    readonly_fields = ['created_at', 'updated_at']
