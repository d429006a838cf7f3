from decimal import Decimal

from django.db import models

from storefront.core.validation import discount_percentage


class Brand(models.Model):
    """Product brands. Sub-brands point at their main brand."""
    LEVEL_CHOICES = [
        ('main', 'Main Brand'),
        ('sub', 'Sub Brand'),
    ]

    name = models.CharField(max_length=100, db_index=True)
    slug = models.SlugField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    website = models.URLField(max_length=500, blank=True)
    logo_url = models.URLField(max_length=500, blank=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='sub_brands')
    level = models.CharField(max_length=10, choices=LEVEL_CHOICES, default='main')
    country = models.CharField(max_length=100, blank=True)
    founded_year = models.PositiveIntegerField(null=True, blank=True)
    industry = models.CharField(max_length=100, blank=True)
    colors = models.JSONField(default=dict, blank=True, help_text="Brand palette, e.g. {'primary': '#000000', 'secondary': '#ffffff'}")
    is_featured = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'brands'
        ordering = ['sort_order', 'name']


class Category(models.Model):
    """Product categories"""
    name = models.CharField(max_length=100, db_index=True)
    slug = models.SlugField(max_length=100, unique=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')
    description = models.TextField(blank=True)
    image = models.URLField(max_length=500, blank=True)
    icon = models.CharField(max_length=50, blank=True)
    color = models.CharField(max_length=20, blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    meta_title = models.CharField(max_length=200, blank=True)
    meta_description = models.TextField(blank=True)
    meta_keywords = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['sort_order', 'name']


class Attribute(models.Model):
    """Custom product attributes (e.g. Voltage, Screen Size)"""
    ATTRIBUTE_TYPE_CHOICES = [
        ('text', 'Text'),
        ('number', 'Number'),
        ('select', 'Select'),
        ('multiselect', 'Multi Select'),
        ('boolean', 'Yes/No'),
    ]

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100, unique=True)
    attribute_type = models.CharField(max_length=20, choices=ATTRIBUTE_TYPE_CHOICES, default='text')
    options = models.JSONField(default=list, blank=True, help_text="Allowed values for select attributes")
    is_required = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'attributes'
        ordering = ['name']


class Product(models.Model):
    """Product master"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('published', 'Published'),
        ('archived', 'Archived'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=220, unique=True)
    sku = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    brand = models.ForeignKey(Brand, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    sale_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    stock_quantity = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=5)
    track_inventory = models.BooleanField(default=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    attributes = models.JSONField(default=dict, blank=True, help_text="Attribute slug -> value")
    master_data = models.ManyToManyField('masterdata.MasterDataItem', blank=True, related_name='products')
    image_url = models.URLField(max_length=500, blank=True)
    weight_kg = models.DecimalField(max_digits=8, decimal_places=3, default=Decimal('0.000'))
    is_featured = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def is_on_sale(self):
        return discount_percentage(self.base_price, self.sale_price) is not None

    @property
    def price(self):
        """Price charged at checkout"""
        return self.sale_price if self.is_on_sale else self.base_price

    @property
    def discount_percentage(self):
        return discount_percentage(self.base_price, self.sale_price)

    @property
    def in_stock(self):
        return not self.track_inventory or self.stock_quantity > 0

    @property
    def is_low_stock(self):
        return self.track_inventory and self.stock_quantity <= self.low_stock_threshold

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'is_active'], name='products_status_active_idx'),
            models.Index(fields=['sku'], name='products_sku_idx'),
        ]
