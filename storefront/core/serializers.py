from collections.abc import Mapping

from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework.settings import api_settings

from .models import User, Setting, AuditLog, AdminRole, ApiKey
from .validation import COMMON_RULES, rule, validate_form


class RuleValidationMixin:
    """Run a declarative rule set against the raw payload before field conversion.

    Subclasses set ``validation_rules`` or override ``get_validation_rules``
    when a rule depends on other submitted fields. Partial updates validate
    the submitted fields, plus the stored value of every field listed in
    ``dependent_fields`` under a submitted field.
    """
    validation_rules = {}
    # submitted field -> fields whose rules change with it
    dependent_fields = {}

    def get_validation_rules(self, data):
        return self.validation_rules

    def require_mapping(self, data):
        if not isinstance(data, Mapping):
            message = self.error_messages['invalid'].format(datatype=type(data).__name__)
            raise serializers.ValidationError({api_settings.NON_FIELD_ERRORS_KEY: [message]}, code='invalid')

    def partial_form(self, data):
        form = {name: data.get(name) for name in data}
        if self.instance is None:
            return form
        for name, dependents in self.dependent_fields.items():
            if name not in data:
                continue
            for dependent in dependents:
                if dependent not in form:
                    form[dependent] = getattr(self.instance, dependent, None)
        return form

    def to_internal_value(self, data):
        self.require_mapping(data)
        rules = self.get_validation_rules(data)
        form = data
        if self.partial:
            form = self.partial_form(data)
            rules = {name: field_rule for name, field_rule in rules.items() if name in form}
        result = validate_form(form, rules)
        if not result.is_valid:
            raise serializers.ValidationError(result.errors)
        return super().to_internal_value(data)


class RuleValidatedSerializer(RuleValidationMixin, serializers.ModelSerializer):
    """ModelSerializer whose payload is checked against a rule set first"""


class UserSerializer(serializers.ModelSerializer):
    groups = serializers.SlugRelatedField(many=True, read_only=True, slug_field='name')

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'is_active', 'is_staff', 'is_superuser', 'groups', 'created_at', 'updated_at']
        read_only_fields = ['is_superuser', 'created_at', 'updated_at']


class UserCreateSerializer(RuleValidatedSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True, required=False)

    validation_rules = {
        'username': rule(COMMON_RULES['required'], min_length=3, max_length=150),
        'email': COMMON_RULES['email'],
        'password': rule(COMMON_RULES['required'], min_length=8),
        'phone': COMMON_RULES['phone'],
    }

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name', 'phone']

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return value.lower()

    def validate(self, attrs):
        confirm = attrs.get('password_confirm')
        if confirm is not None and attrs['password'] != confirm:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm', None)
        password = validated_data.pop('password')
        user = User(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class LoginSerializer(serializers.Serializer):
    """Login with either email or username"""
    email = serializers.CharField(required=False, allow_blank=True)
    username = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        identifier = (attrs.get('email') or attrs.get('username') or '').strip()
        if not identifier:
            raise serializers.ValidationError({'email': 'email is required'})

        username = identifier
        if '@' in identifier:
            user = User.objects.filter(email__iexact=identifier).first()
            username = user.username if user else identifier

        user = authenticate(
            request=self.context.get('request'),
            username=username,
            password=attrs['password'],
        )
        if user is None:
            existing = User.objects.filter(username=username).first()
            if existing and not existing.is_active and existing.check_password(attrs['password']):
                raise serializers.ValidationError({'non_field_errors': 'User account is disabled.'})
            raise serializers.ValidationError({'non_field_errors': 'Invalid email or password.'})
        attrs['user'] = user
        return attrs


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Current password is incorrect.')
        return value


class SettingSerializer(RuleValidatedSerializer):
    validation_rules = {
        'key': rule(COMMON_RULES['required'], max_length=100),
        'value': COMMON_RULES['required'],
    }

    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'changes', 'ip_address', 'created_at']


def _known_permissions(available):
    def check(value):
        if not isinstance(value, (list, tuple)):
            return 'Permissions must be a list'
        unknown = [str(permission) for permission in value if permission not in available]
        if unknown:
            return f"Unknown permissions: {', '.join(unknown)}"
        return None
    return check


class AdminRoleSerializer(RuleValidatedSerializer):
    validation_rules = {
        'name': rule(COMMON_RULES['required'], min_length=2, max_length=100),
        'permissions': rule(
            min=1,
            custom=_known_permissions(AdminRole.AVAILABLE_PERMISSIONS),
        ),
    }

    class Meta:
        model = AdminRole
        fields = ['id', 'name', 'description', 'permissions', 'is_active', 'created_at', 'updated_at']


class ApiKeySerializer(RuleValidatedSerializer):
    """The plaintext key is only present in the response that created it"""
    key = serializers.SerializerMethodField()

    validation_rules = {
        'name': rule(COMMON_RULES['required'], min_length=2, max_length=100),
        'permissions': rule(custom=_known_permissions(ApiKey.AVAILABLE_PERMISSIONS)),
    }

    class Meta:
        model = ApiKey
        fields = ['id', 'name', 'key', 'key_prefix', 'permissions', 'is_active', 'last_used_at', 'created_at', 'updated_at']
        read_only_fields = ['key_prefix', 'last_used_at', 'created_at', 'updated_at']

    def get_key(self, obj):
        return getattr(obj, 'raw_key', None)

    def create(self, validated_data):
        raw_key = ApiKey.generate_key()
        api_key = ApiKey(**validated_data)
        api_key.set_key(raw_key)
        api_key.save()
        api_key.raw_key = raw_key
        return api_key
