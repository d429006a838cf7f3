import re

from rest_framework import serializers

from storefront.core.serializers import RuleValidatedSerializer
from storefront.core.validation import COMMON_RULES, URL_REGEX, rule, slugify
from .models import MasterDataItem

HEX_COLOR_REGEX = re.compile(r'^#(?:[0-9a-fA-F]{3}){1,2}\Z')


EXTRA_NOT_OBJECT = 'Extra must be an object'


def _color_extra(value):
    value = value or {}
    if not isinstance(value, dict):
        return EXTRA_NOT_OBJECT
    image_url = value.get('image_url')
    if not image_url:
        return 'Color image is required'
    if not URL_REGEX.search(str(image_url)):
        return 'Color image must be a valid URL'
    hex_code = value.get('hex_code')
    if hex_code and not HEX_COLOR_REGEX.search(str(hex_code)):
        return 'Hex code must look like #RRGGBB'
    return None


def _size_extra(value):
    value = value or {}
    if not isinstance(value, dict):
        return EXTRA_NOT_OBJECT
    size_type = value.get('size_type', 'alphabetic')
    if size_type not in MasterDataItem.SIZE_TYPE_CHOICES:
        return f"Size type must be one of: {', '.join(MasterDataItem.SIZE_TYPE_CHOICES)}"
    return None


def _color_family_extra(value):
    value = value or {}
    if not isinstance(value, dict):
        return EXTRA_NOT_OBJECT
    hex_code = value.get('hex_code')
    if hex_code and not HEX_COLOR_REGEX.search(str(hex_code)):
        return 'Hex code must look like #RRGGBB'
    return None


def _plain_extra(value):
    return None if isinstance(value, dict) else EXTRA_NOT_OBJECT


EXTRA_RULES = {
    'colors': rule(COMMON_RULES['required'], custom=_color_extra),
    'color-families': rule(custom=_color_family_extra),
    'sizes': rule(custom=_size_extra),
}


class MasterDataItemSerializer(RuleValidatedSerializer):
    """One serializer shared by every master data kind.

    The kind comes from the URL and is passed in through the serializer context.
    """
    slug = serializers.SlugField(max_length=100, required=False, allow_blank=True)

    class Meta:
        model = MasterDataItem
        fields = ['id', 'kind', 'name', 'slug', 'description', 'extra', 'sort_order', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['kind', 'created_at', 'updated_at']
        # kind/slug uniqueness is checked in validate() since kind comes from the URL
        validators = []

    @property
    def kind(self):
        if self.instance is not None and not isinstance(self.instance, (list, tuple)):
            return getattr(self.instance, 'kind', None) or self.context.get('kind')
        return self.context.get('kind')

    def get_validation_rules(self, data):
        rules = {
            'name': rule(COMMON_RULES['required'], min_length=2, max_length=100),
            'sort_order': rule(non_negative=True),
        }
        if data.get('slug'):
            rules['slug'] = COMMON_RULES['slug']
        rules['extra'] = EXTRA_RULES.get(self.kind, rule(custom=_plain_extra))
        return rules

    def validate(self, attrs):
        if not attrs.get('slug') and 'name' in attrs:
            attrs['slug'] = slugify(attrs['name'])
        slug = attrs.get('slug')
        if slug:
            duplicates = MasterDataItem.objects.filter(kind=self.kind, slug=slug)
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise serializers.ValidationError({'slug': 'An item with this slug already exists.'})
        return attrs

    def create(self, validated_data):
        validated_data['kind'] = self.kind
        return super().create(validated_data)
