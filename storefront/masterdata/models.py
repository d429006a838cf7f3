from django.db import models


class MasterDataItem(models.Model):
    """Lookup values used to tag products (colors, sizes, fits, ...)"""
    KIND_CHOICES = [
        ('age-groups', 'Age Groups'),
        ('fits', 'Fits'),
        ('lengths', 'Lengths'),
        ('necklines', 'Necklines'),
        ('colors', 'Colors'),
        ('color-families', 'Color Families'),
        ('materials', 'Materials'),
        ('occasions', 'Occasions'),
        ('patterns', 'Patterns'),
        ('seasons', 'Seasons'),
        ('sizes', 'Sizes'),
        ('sleeve-lengths', 'Sleeve Lengths'),
        ('care-instructions', 'Care Instructions'),
        ('coupon-types', 'Coupon Types'),
        ('features', 'Features'),
        ('product-statuses', 'Product Statuses'),
        ('styles', 'Styles'),
    ]
    KINDS = [value for value, _ in KIND_CHOICES]

    SIZE_TYPE_CHOICES = ['numeric', 'alphabetic', 'custom']

    kind = models.CharField(max_length=30, choices=KIND_CHOICES, db_index=True)
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100)
    description = models.TextField(blank=True)
    extra = models.JSONField(default=dict, blank=True, help_text="Kind-specific values such as hex_code, image_url or size_type")
    sort_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.get_kind_display()}: {self.name}"

    class Meta:
        db_table = 'master_data_items'
        ordering = ['kind', 'sort_order', 'name']
        constraints = [
            models.UniqueConstraint(fields=['kind', 'slug'], name='unique_master_data_kind_slug'),
        ]
