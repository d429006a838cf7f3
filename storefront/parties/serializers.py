from django.db import transaction
from rest_framework import serializers

from storefront.core.models import User
from storefront.core.serializers import RuleValidatedSerializer
from storefront.core.validation import COMMON_RULES, rule
from .models import Customer, Address

ADDRESS_RULES = {
    'first_name': COMMON_RULES['required'],
    'last_name': COMMON_RULES['required'],
    'address_line1': COMMON_RULES['required'],
    'city': COMMON_RULES['required'],
    'state': COMMON_RULES['required'],
    'postal_code': rule(COMMON_RULES['postal_code'], required=True),
    'country': COMMON_RULES['required'],
    'phone': COMMON_RULES['phone'],
}


def _wants_account(data):
    return str(data.get('create_account', '')).lower() in ('true', '1')


class AddressSerializer(RuleValidatedSerializer):
    validation_rules = ADDRESS_RULES

    class Meta:
        model = Address
        fields = ['id', 'customer', 'label', 'address_type', 'first_name', 'last_name', 'company',
                  'address_line1', 'address_line2', 'city', 'state', 'postal_code', 'country',
                  'phone', 'email', 'is_default', 'created_at', 'updated_at']
        read_only_fields = ['customer', 'created_at', 'updated_at']


class CustomerSerializer(RuleValidatedSerializer):
    full_name = serializers.CharField(read_only=True)
    addresses = AddressSerializer(many=True, read_only=True)
    has_account = serializers.SerializerMethodField()
    create_account = serializers.BooleanField(write_only=True, required=False, default=False)
    password = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = Customer
        fields = ['id', 'first_name', 'last_name', 'full_name', 'email', 'phone', 'notes',
                  'accepts_marketing', 'is_active', 'has_account', 'create_account', 'password',
                  'addresses', 'created_at', 'updated_at']

    def get_has_account(self, obj):
        return obj.user_id is not None

    def get_validation_rules(self, data):
        rules = {
            'email': COMMON_RULES['email'],
            'first_name': rule(COMMON_RULES['required'], min_length=2),
            'last_name': rule(COMMON_RULES['required'], min_length=2),
            'phone': COMMON_RULES['phone'],
        }
        if self.instance is None and _wants_account(data):
            rules['password'] = rule(COMMON_RULES['required'], min_length=8)
        elif data.get('password'):
            rules['password'] = rule(min_length=8)
        return rules

    def validate_email(self, value):
        value = value.lower()
        if _wants_account(self.initial_data) and User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return value

    @transaction.atomic
    def create(self, validated_data):
        create_account = validated_data.pop('create_account', False)
        password = validated_data.pop('password', '')
        customer = Customer.objects.create(**validated_data)
        if create_account:
            user = User(
                username=customer.email,
                email=customer.email,
                first_name=customer.first_name,
                last_name=customer.last_name,
                phone=customer.phone or None,
            )
            user.set_password(password)
            user.save()
            customer.user = user
            customer.save(update_fields=['user'])
        return customer

    @transaction.atomic
    def update(self, instance, validated_data):
        validated_data.pop('create_account', None)
        password = validated_data.pop('password', '')
        customer = super().update(instance, validated_data)
        if customer.user_id:
            user = customer.user
            user.first_name = customer.first_name
            user.last_name = customer.last_name
            user.email = customer.email
            user.is_active = customer.is_active
            if password:
                user.set_password(password)
            user.save()
        return customer
