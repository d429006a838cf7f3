import logging
from collections.abc import Mapping

from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from .models import Setting, AuditLog, AdminRole, ApiKey
from .permissions import DenyApiKey, resource_permission
from .responses import api_response, api_error, validation_failed
from .serializers import (
    UserSerializer, UserCreateSerializer, LoginSerializer, ChangePasswordSerializer,
    SettingSerializer, AuditLogSerializer, AdminRoleSerializer, ApiKeySerializer,
)
from .utils import create_audit_log, audit_instance, diff_fields

User = get_user_model()
logger = logging.getLogger(__name__)

SettingsPermission = resource_permission('settings')


def _submitted_refresh_token(request):
    data = request.data if isinstance(request.data, Mapping) else {}
    return data.get('refresh_token') or data.get('refresh')


def get_tokens_for_user(user):
    """Issue an access/refresh pair carrying the username and groups"""
    refresh = RefreshToken.for_user(user)
    refresh['username'] = user.username
    refresh['groups'] = list(user.groups.values_list('name', flat=True))
    return {
        'access_token': str(refresh.access_token),
        'refresh_token': str(refresh),
    }


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            # User referenced in token doesn't exist anymore
            raise InvalidToken('Token is invalid. User no longer exists.')


# Auth views
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_failed(serializer)

    user = serializer.save()
    logger.info(f"Registered user {user.username}")
    return api_response(
        {'user': UserSerializer(user).data, **get_tokens_for_user(user)},
        message='Registration successful',
        status_code=status.HTTP_201_CREATED,
    )


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with email or username and password"""
    serializer = LoginSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        if 'non_field_errors' not in serializer.errors:
            return validation_failed(serializer)
        return api_error(str(serializer.errors['non_field_errors'][0]), status_code=status.HTTP_401_UNAUTHORIZED)

    user = serializer.validated_data['user']
    create_audit_log(request=request, action='login', model_name='User', object_id=user.pk,
                     object_name=user.username, user=user)
    return api_response({'user': UserSerializer(user).data, **get_tokens_for_user(user)}, message='Login successful')


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh(request):
    """Exchange a refresh token for a new access token (and rotated refresh token)"""
    refresh_token = _submitted_refresh_token(request)
    if not refresh_token:
        return api_error('Validation failed', errors={'refresh_token': 'refresh_token is required'})

    serializer = CustomTokenRefreshSerializer(data={'refresh': refresh_token})
    try:
        serializer.is_valid(raise_exception=True)
    except AuthenticationFailed as e:
        return api_error(str(e.detail), status_code=status.HTTP_401_UNAUTHORIZED)

    data = {'access_token': serializer.validated_data['access']}
    if 'refresh' in serializer.validated_data:
        data['refresh_token'] = serializer.validated_data['refresh']
    return api_response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def profile(request):
    """Current user"""
    return api_response({'user': UserSerializer(request.user).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Blacklist the submitted refresh token"""
    refresh_token = _submitted_refresh_token(request)
    if refresh_token:
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as e:
            logger.info(f"Logout with unusable refresh token for {request.user.username}: {e}")
    create_audit_log(request=request, action='logout', model_name='User', object_id=request.user.pk,
                     object_name=request.user.username)
    return api_response(message='Logged out')


@api_view(['POST'])
@permission_classes([IsAuthenticated, DenyApiKey])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return validation_failed(serializer)
    request.user.set_password(serializer.validated_data['new_password'])
    request.user.save(update_fields=['password', 'updated_at'])
    return api_response(message='Password changed successfully')


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser, DenyApiKey])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all().order_by('username')
        search = request.query_params.get('search', '').strip()
        if search:
            users = users.filter(
                Q(username__icontains=search) |
                Q(email__icontains=search) |
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search)
            )
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            users = users.filter(is_active=is_active.lower() == 'true')
        return api_response(UserSerializer(users, many=True).data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        user = serializer.save()
        audit_instance(request, 'create', user)
        return api_response(UserSerializer(user).data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser, DenyApiKey])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return api_response(UserSerializer(user).data)
    elif request.method in ('PUT', 'PATCH'):
        before = UserSerializer(user).data
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return validation_failed(serializer)
        serializer.save()
        audit_instance(request, 'update', user, diff_fields(before, serializer.data))
        return api_response(serializer.data)
    else:  # DELETE
        if user.pk == request.user.pk:
            return api_error('You cannot delete your own account.', status_code=status.HTTP_400_BAD_REQUEST)
        audit_instance(request, 'delete', user)
        user.delete()
        return api_response(message='User deleted')


def _crud_detail(request, instance, serializer_class):
    """GET/PUT/PATCH/DELETE on a single admin record"""
    if request.method == 'GET':
        return api_response(serializer_class(instance).data)
    elif request.method in ('PUT', 'PATCH'):
        before = serializer_class(instance).data
        serializer = serializer_class(instance, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return validation_failed(serializer)
        serializer.save()
        audit_instance(request, 'update', instance, diff_fields(before, serializer.data))
        return api_response(serializer.data)
    else:  # DELETE
        audit_instance(request, 'delete', instance)
        instance.delete()
        return api_response(message=f'{instance.__class__.__name__} deleted')


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser, SettingsPermission])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings = Setting.objects.all().order_by('key')
        return api_response(SettingSerializer(settings, many=True).data)
    else:
        serializer = SettingSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        setting = serializer.save()
        audit_instance(request, 'create', setting)
        return api_response(serializer.data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser, SettingsPermission])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    return _crud_detail(request, get_object_or_404(Setting, pk=pk), SettingSerializer)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, SettingsPermission])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    # Filter by user if not admin
    if not request.user.is_staff:
        queryset = queryset.filter(user=request.user)

    action_filter = request.query_params.get('action')
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model')
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    date_from = request.query_params.get('date_from')
    date_to = request.query_params.get('date_to')
    if date_from:
        queryset = queryset.filter(created_at__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__lte=date_to)

    queryset = queryset.order_by('-created_at')
    return api_response(AuditLogSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, SettingsPermission])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)

    if not request.user.is_staff and audit_log.user != request.user:
        return api_error('Permission denied', status_code=status.HTTP_403_FORBIDDEN)

    return api_response(AuditLogSerializer(audit_log).data)


# Admin role views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser, DenyApiKey])
def admin_role_list_create(request):
    if request.method == 'GET':
        roles = AdminRole.objects.all()
        search = request.query_params.get('search', '').strip()
        if search:
            roles = roles.filter(Q(name__icontains=search) | Q(description__icontains=search))
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            roles = roles.filter(is_active=is_active.lower() == 'true')
        return api_response(AdminRoleSerializer(roles, many=True).data)
    else:
        serializer = AdminRoleSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        role = serializer.save()
        audit_instance(request, 'create', role)
        return api_response(serializer.data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser, DenyApiKey])
def admin_role_detail(request, pk):
    return _crud_detail(request, get_object_or_404(AdminRole, pk=pk), AdminRoleSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser, DenyApiKey])
def available_permissions(request):
    """Permission strings that roles and API keys may be granted"""
    return api_response({
        'admin_roles': AdminRole.AVAILABLE_PERMISSIONS,
        'api_keys': ApiKey.AVAILABLE_PERMISSIONS,
    })


# API key views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser, DenyApiKey])
def api_key_list_create(request):
    """List API keys or issue a new one. The key itself is only returned here, once."""
    if request.method == 'GET':
        keys = ApiKey.objects.all()
        search = request.query_params.get('search', '').strip()
        if search:
            keys = keys.filter(Q(name__icontains=search) | Q(key_prefix__icontains=search))
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            keys = keys.filter(is_active=is_active.lower() == 'true')
        return api_response(ApiKeySerializer(keys, many=True).data)
    else:
        serializer = ApiKeySerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        api_key = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='api_key_issue', model_name='ApiKey',
                         object_id=api_key.pk, object_name=str(api_key))
        return api_response(serializer.data, message='Store this key now. It will not be shown again.',
                            status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser, DenyApiKey])
def api_key_detail(request, pk):
    return _crud_detail(request, get_object_or_404(ApiKey, pk=pk), ApiKeySerializer)
