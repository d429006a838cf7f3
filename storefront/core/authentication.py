"""
API key authentication for server-to-server callers.

Keys are sent in a dedicated header::

    X-API-Key: sk_...

A key authenticates as the staff user who issued it. Which resources it may
touch is limited by its ``permissions`` list.
"""
import logging

from django.utils import timezone
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed

from .models import ApiKey

logger = logging.getLogger(__name__)

API_KEY_HEADER = 'HTTP_X_API_KEY'


class ApiKeyAuthentication(BaseAuthentication):

    def authenticate(self, request):
        raw_key = request.META.get(API_KEY_HEADER, '').strip()
        if not raw_key:
            return None

        candidates = ApiKey.objects.select_related('created_by').filter(
            key_prefix=raw_key[:8], is_active=True,
        )
        api_key = next((candidate for candidate in candidates if candidate.check_key(raw_key)), None)
        if api_key is None:
            logger.warning(f"Rejected API key with prefix {raw_key[:8]}")
            raise AuthenticationFailed('Invalid API key.')

        user = api_key.created_by
        if user is None or not user.is_active:
            raise AuthenticationFailed('API key owner is inactive.')

        ApiKey.objects.filter(pk=api_key.pk).update(last_used_at=timezone.now())
        return user, api_key

    def authenticate_header(self, request):
        return 'X-API-Key'
