from django.contrib import admin
from .models import MasterDataItem


@admin.register(MasterDataItem)
class MasterDataItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'kind', 'slug', 'sort_order', 'is_active', 'updated_at']
    list_filter = ['kind', 'is_active']
    search_fields = ['name', 'slug', 'description']
    ordering = ['kind', 'sort_order', 'name']
    prepopulated_fields = {'slug': ('name',)}
