from rest_framework.permissions import SAFE_METHODS, BasePermission

from .models import ApiKey


class IsAdminOrReadOnly(BasePermission):
    """Authenticated users may read; only staff may write"""

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return bool(request.user.is_staff)


def resource_permission(resource):
    """Limit API key callers to the scopes granted on their key.

    JWT-authenticated requests pass through unchanged.
    """

    class ResourcePermission(BasePermission):
        message = f'API key lacks permission for {resource}.'

        def has_permission(self, request, view):
            if not isinstance(request.auth, ApiKey):
                return True
            action = 'read' if request.method in SAFE_METHODS else 'write'
            return f'{resource}.{action}' in (request.auth.permissions or [])

    ResourcePermission.__name__ = f'{resource.title()}ResourcePermission'
    return ResourcePermission


class DenyApiKey(BasePermission):
    """Account, role and key management is only open to signed-in staff, never to API keys"""
    message = 'API keys cannot manage users, roles or keys.'

    def has_permission(self, request, view):
        return not isinstance(request.auth, ApiKey)
