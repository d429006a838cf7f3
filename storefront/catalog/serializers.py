from datetime import date
from decimal import Decimal, InvalidOperation

from rest_framework import serializers

from storefront.core.serializers import RuleValidatedSerializer
from storefront.core.validation import COMMON_RULES, rule, slugify, integer_in_range, non_negative_integer
from storefront.masterdata.models import MasterDataItem
from .models import Brand, Category, Attribute, Product


def _to_decimal(value):
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None
    return number if number.is_finite() else None


class SlugFromNameMixin:
    """Fill a blank slug from the name before the rule set runs"""

    def to_internal_value(self, data):
        self.require_mapping(data)
        if not data.get('slug') and data.get('name') and not (self.partial and 'slug' not in data):
            data = data.copy()
            data['slug'] = slugify(data['name'])
        return super().to_internal_value(data)


class ParentNotSelfMixin:

    def validate_parent(self, value):
        if value is not None and self.instance is not None and value.pk == self.instance.pk:
            raise serializers.ValidationError(f'A {self.Meta.model.__name__.lower()} cannot be its own parent.')
        return value


class BrandSerializer(SlugFromNameMixin, ParentNotSelfMixin, RuleValidatedSerializer):
    parent_name = serializers.CharField(source='parent.name', read_only=True, default=None)
    sub_brand_count = serializers.IntegerField(source='sub_brands.count', read_only=True)

    class Meta:
        model = Brand
        fields = ['id', 'name', 'slug', 'description', 'website', 'logo_url', 'parent', 'parent_name',
                  'level', 'country', 'founded_year', 'industry', 'colors', 'is_featured', 'sort_order',
                  'sub_brand_count', 'is_active', 'created_at', 'updated_at']

    dependent_fields = {'level': ['parent']}

    def get_validation_rules(self, data):
        level = data.get('level')
        if level is None and self.instance is not None:
            level = self.instance.level

        def parent_required_for_sub_brand(value):
            if level == 'sub' and not value:
                return 'Parent brand is required for sub-brands'
            return None

        return {
            'name': rule(COMMON_RULES['required'], min_length=2, max_length=100),
            'slug': COMMON_RULES['slug'],
            'website': COMMON_RULES['url'],
            'founded_year': rule(custom=integer_in_range(
                1800, date.today().year, f'Year must be between 1800 and {date.today().year}',
            )),
            'sort_order': rule(custom=non_negative_integer('Sort order must be a non-negative number')),
            'parent': rule(custom=parent_required_for_sub_brand),
        }

    def to_internal_value(self, data):
        validated = super().to_internal_value(data)
        if validated.get('level') == 'main':
            # Main brands never hang under another brand
            validated['parent'] = None
        return validated

    def validate(self, attrs):
        level = attrs.get('level', getattr(self.instance, 'level', 'main'))
        parent = attrs['parent'] if 'parent' in attrs else getattr(self.instance, 'parent', None)
        if level == 'sub' and parent is None:
            raise serializers.ValidationError({'parent': 'Parent brand is required for sub-brands'})
        return attrs


class CategorySerializer(SlugFromNameMixin, ParentNotSelfMixin, RuleValidatedSerializer):
    parent_name = serializers.CharField(source='parent.name', read_only=True, default=None)
    product_count = serializers.IntegerField(source='products.count', read_only=True)

    validation_rules = {
        'name': rule(COMMON_RULES['required'], min_length=2, max_length=100),
        'slug': COMMON_RULES['slug'],
        'sort_order': rule(custom=non_negative_integer('Sort order must be a non-negative number')),
    }

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'parent', 'parent_name', 'description', 'image', 'icon', 'color',
                  'sort_order', 'meta_title', 'meta_description', 'meta_keywords', 'product_count',
                  'is_active', 'created_at', 'updated_at']


class AttributeSerializer(SlugFromNameMixin, RuleValidatedSerializer):

    class Meta:
        model = Attribute
        fields = ['id', 'name', 'slug', 'attribute_type', 'options', 'is_required', 'is_active', 'created_at', 'updated_at']

    dependent_fields = {'attribute_type': ['options']}

    def get_validation_rules(self, data):
        attribute_type = data.get('attribute_type') or getattr(self.instance, 'attribute_type', 'text')
        rules = {
            'name': rule(COMMON_RULES['required'], min_length=2, max_length=100),
            'slug': COMMON_RULES['slug'],
        }
        if attribute_type in ('select', 'multiselect'):
            rules['options'] = rule(COMMON_RULES['required'], min=1)
        return rules


class ProductSerializer(RuleValidatedSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    brand_name = serializers.CharField(source='brand.name', read_only=True, default=None)
    slug = serializers.SlugField(max_length=220, required=False, allow_blank=True)
    master_data = serializers.PrimaryKeyRelatedField(many=True, required=False, queryset=MasterDataItem.objects.all())
    price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    discount_percentage = serializers.SerializerMethodField()
    in_stock = serializers.BooleanField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'sku', 'description', 'category', 'category_name', 'brand', 'brand_name',
                  'base_price', 'sale_price', 'price', 'discount_percentage', 'stock_quantity',
                  'low_stock_threshold', 'track_inventory', 'in_stock', 'is_low_stock', 'status', 'attributes',
                  'master_data', 'image_url', 'weight_kg', 'is_featured', 'is_active', 'created_at', 'updated_at']

    def get_discount_percentage(self, obj):
        percent = obj.discount_percentage
        return float(percent) if percent is not None else None

    dependent_fields = {'base_price': ['sale_price']}

    def get_validation_rules(self, data):
        base_price = data.get('base_price')
        if base_price is None and self.instance is not None:
            base_price = self.instance.base_price

        def below_base_price(value):
            sale_price, base = _to_decimal(value), _to_decimal(base_price)
            if sale_price is None:
                return 'sale_price must be a number'
            if base is not None and sale_price >= base:
                return 'sale_price must be less than base_price'
            return None

        return {
            'name': rule(COMMON_RULES['required'], min_length=2, max_length=200),
            'sku': COMMON_RULES['sku'],
            'base_price': COMMON_RULES['positive_number'],
            'sale_price': rule(non_negative=True, custom=below_base_price),
            'stock_quantity': rule(non_negative=True),
        }

    def validate_base_price(self, value):
        if value <= 0:
            raise serializers.ValidationError('base_price must be greater than 0')
        return value

    def validate_slug(self, value):
        if value:
            duplicates = Product.objects.filter(slug=value)
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise serializers.ValidationError('A product with this slug already exists.')
        return value

    def validate_attributes(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('attributes must be an object')
        known = {attribute.slug: attribute for attribute in Attribute.objects.filter(is_active=True)}
        for slug, attribute_value in value.items():
            attribute = known.get(slug)
            if attribute is None:
                raise serializers.ValidationError(f'Unknown attribute: {slug}')
            if attribute.attribute_type == 'select' and attribute_value not in attribute.options:
                raise serializers.ValidationError(f'{attribute.name} must be one of: {", ".join(map(str, attribute.options))}')
            if attribute.attribute_type == 'multiselect':
                if not isinstance(attribute_value, list) or any(v not in attribute.options for v in attribute_value):
                    raise serializers.ValidationError(f'{attribute.name} must be a list of: {", ".join(map(str, attribute.options))}')
        if self.instance is None:
            missing = [a.name for a in known.values() if a.is_required and a.slug not in value]
            if missing:
                raise serializers.ValidationError(f'Missing required attributes: {", ".join(missing)}')
        return value

    def validate(self, attrs):
        if not attrs.get('slug') and attrs.get('name'):
            attrs['slug'] = slugify(f"{attrs['name']}-{attrs.get('sku', getattr(self.instance, 'sku', ''))}")
        return attrs


class ShopTaxonomySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    slug = serializers.CharField()


class ShopProductSerializer(serializers.ModelSerializer):
    """Public product card used by the shop listing"""
    category = ShopTaxonomySerializer(read_only=True)
    brand = ShopTaxonomySerializer(read_only=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    discount_percentage = serializers.SerializerMethodField()
    is_on_sale = serializers.BooleanField(read_only=True)
    in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'sku', 'description', 'image_url', 'category', 'brand',
                  'base_price', 'sale_price', 'price', 'discount_percentage', 'is_on_sale',
                  'in_stock', 'stock_quantity', 'is_featured', 'created_at']

    def get_discount_percentage(self, obj):
        percent = obj.discount_percentage
        return float(percent) if percent is not None else None
