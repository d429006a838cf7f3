from decimal import Decimal, InvalidOperation

from rest_framework import serializers

from storefront.core.serializers import RuleValidationMixin, RuleValidatedSerializer
from storefront.core.validation import COMMON_RULES, rule, validate_field, non_negative_integer, integer_in_range
from .models import DeliveryCharge, Cart, CartItem, Order, OrderItem

CHECKOUT_ADDRESS_FIELDS = ['first_name', 'last_name', 'address_line1', 'city', 'state', 'postal_code', 'country']
OPTIONAL_ADDRESS_FIELDS = ['address_line2', 'company', 'phone']

LOCATION_FIELD_BY_TYPE = {
    'country': 'country',
    'state': 'state',
    'city': 'city',
    'postal_code': 'postal_code',
}


def _flag(value, default=False):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).lower() in ('true', '1', 'yes')


def _address_check(label):
    def check(value):
        if not isinstance(value, dict):
            return f'{label} address is required'
        for field_name in CHECKOUT_ADDRESS_FIELDS:
            field_value = value.get(field_name)
            if field_value is None or not str(field_value).strip():
                return f'{label} {field_name} is required'
        postal_code = str(value.get('postal_code')).strip().upper()
        return validate_field(postal_code, COMMON_RULES['postal_code'], f'{label} postal_code')
    return check


def _clean_address(value):
    keys = CHECKOUT_ADDRESS_FIELDS + OPTIONAL_ADDRESS_FIELDS
    return {key: str(value.get(key, '') or '').strip() for key in keys}


def _money(value):
    if value in (None, ''):
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return amount if amount.is_finite() else None


class CartItemSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(source='product.id', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_slug = serializers.CharField(source='product.slug', read_only=True)
    sku = serializers.CharField(source='product.sku', read_only=True)
    image_url = serializers.CharField(source='product.image_url', read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = ['id', 'product_id', 'product_name', 'product_slug', 'sku', 'image_url',
                  'quantity', 'unit_price', 'line_total', 'added_at']


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    item_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Cart
        fields = ['id', 'cart_number', 'status', 'items', 'item_count', 'total_amount', 'created_at', 'updated_at']


class CartItemInputSerializer(RuleValidationMixin, serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(default=1)

    validation_rules = {
        'product_id': COMMON_RULES['required'],
        'quantity': rule(custom=integer_in_range(minimum=1, message='Quantity must be at least 1')),
    }


class CartItemUpdateSerializer(RuleValidationMixin, serializers.Serializer):
    quantity = serializers.IntegerField()

    validation_rules = {
        'quantity': rule(custom=non_negative_integer('Quantity cannot be negative')),
    }

    def to_internal_value(self, data):
        self.require_mapping(data)
        if data.get('quantity') in (None, ''):
            raise serializers.ValidationError({'quantity': 'quantity is required'})
        return super().to_internal_value(data)


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'name', 'sku', 'quantity', 'price', 'total']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    payment_method_display = serializers.CharField(source='get_payment_method_display', read_only=True)
    is_cancellable = serializers.BooleanField(read_only=True)
    delivery_location = serializers.CharField(source='delivery_charge.location_name', read_only=True, default=None)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'user', 'customer', 'status', 'status_display',
                  'payment_status', 'payment_method', 'payment_method_display',
                  'subtotal', 'discount_total', 'shipping_total', 'tax_total', 'total', 'currency',
                  'email', 'billing_address', 'shipping_address', 'delivery_location',
                  'estimated_delivery_days', 'notes', 'tracking_number', 'is_cancellable',
                  'items', 'cancelled_at', 'created_at', 'updated_at']
        read_only_fields = fields


class CheckoutLineSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)


class CheckoutSerializer(RuleValidationMixin, serializers.Serializer):
    """Checkout payload. Lines come from ``items`` when given, else from the cart."""
    billing_address = serializers.DictField()
    shipping_address = serializers.DictField(required=False)
    same_as_billing = serializers.BooleanField(required=False, default=True)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES)
    email = serializers.EmailField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    items = CheckoutLineSerializer(many=True, required=False)

    def get_validation_rules(self, data):
        payment_methods = [choice[0] for choice in Order.PAYMENT_METHOD_CHOICES]
        rules = {
            'billing_address': rule(COMMON_RULES['required'], custom=_address_check('Billing')),
            'payment_method': rule(
                COMMON_RULES['required'],
                custom=lambda value: None if value in payment_methods else 'Please select a valid payment method',
            ),
            'notes': rule(max_length=1000),
        }
        if not _flag(data.get('same_as_billing'), default=True):
            rules['shipping_address'] = rule(COMMON_RULES['required'], custom=_address_check('Shipping'))
        request = self.context.get('request')
        if request is None or not request.user.is_authenticated:
            rules['email'] = COMMON_RULES['email']
        elif data.get('email'):
            rules['email'] = rule(email=True)
        return rules

    def validate(self, attrs):
        attrs['billing_address'] = _clean_address(attrs['billing_address'])
        if attrs.get('same_as_billing', True) or not attrs.get('shipping_address'):
            attrs['shipping_address'] = dict(attrs['billing_address'])
        else:
            attrs['shipping_address'] = _clean_address(attrs['shipping_address'])
        if attrs.get('email'):
            attrs['email'] = attrs['email'].lower()
        return attrs


class OrderStatusSerializer(RuleValidationMixin, serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)
    tracking_number = serializers.CharField(required=False, allow_blank=True, max_length=100)

    validation_rules = {
        'tracking_number': rule(max_length=100),
    }

    def validate_status(self, value):
        order = self.instance
        if order is not None and value != order.status and not order.can_transition_to(value):
            raise serializers.ValidationError(f"Cannot change status from {order.status} to {value}")
        return value

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError({'status': 'Provide status, payment_status or tracking_number'})
        return attrs


class DeliveryChargeSerializer(RuleValidatedSerializer):
    class Meta:
        model = DeliveryCharge
        fields = ['id', 'location_name', 'location_type', 'country', 'state', 'city', 'postal_code',
                  'base_charge', 'charge_per_kg', 'charge_per_item', 'free_shipping_threshold',
                  'minimum_order_amount', 'maximum_order_amount', 'enabled', 'priority',
                  'estimated_delivery_days', 'created_at', 'updated_at']

    def get_validation_rules(self, data):
        location_type = data.get('location_type') or getattr(self.instance, 'location_type', 'city')
        rules = {
            'location_name': rule(COMMON_RULES['required'], min_length=2, max_length=100),
            'base_charge': rule(custom=self._non_negative_money('Base charge')),
            'charge_per_kg': rule(custom=self._non_negative_money('Charge per kg')),
            'charge_per_item': rule(custom=self._non_negative_money('Charge per item')),
            'free_shipping_threshold': rule(custom=self._non_negative_money('Free shipping threshold')),
            'minimum_order_amount': rule(custom=self._non_negative_money('Minimum order amount')),
            'maximum_order_amount': rule(custom=self._maximum_check(data)),
            'estimated_delivery_days': rule(custom=non_negative_integer('Estimated delivery days must be a non-negative number')),
        }
        location_field = LOCATION_FIELD_BY_TYPE.get(location_type)
        if location_field:
            rules[location_field] = rule(COMMON_RULES['required'], max_length=100)
        return rules

    @staticmethod
    def _non_negative_money(label):
        def check(value):
            amount = _money(value)
            if amount is None or amount < 0:
                return f'{label} must be 0 or greater'
            return None
        return check

    def _maximum_check(self, data):
        def check(value):
            maximum = _money(value)
            if maximum is None or maximum < 0:
                return 'Maximum order amount must be 0 or greater'
            minimum = _money(data.get('minimum_order_amount'))
            if minimum is None and self.instance is not None:
                minimum = self.instance.minimum_order_amount
            if minimum is not None and maximum < minimum:
                return 'Maximum order amount must be greater than minimum order amount'
            return None
        return check


class DeliveryQuoteSerializer(serializers.Serializer):
    country = serializers.CharField(required=False, allow_blank=True, default='')
    state = serializers.CharField(required=False, allow_blank=True, default='')
    city = serializers.CharField(required=False, allow_blank=True, default='')
    postal_code = serializers.CharField(required=False, allow_blank=True, default='')
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    item_count = serializers.IntegerField(required=False, min_value=0, default=0)
    weight_kg = serializers.DecimalField(max_digits=8, decimal_places=3, required=False, min_value=Decimal('0'), default=Decimal('0'))
