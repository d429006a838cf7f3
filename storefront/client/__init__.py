"""Python client for the storefront API"""
from .api import ApiClient, ServiceResponse
from .cart import CartSession
from .config import ClientConfig
from .exceptions import ApiError, AuthenticationError, NetworkError
from .services import StorefrontServices
from .session import SessionManager, ANONYMOUS, LOADING, AUTHENTICATED
from .storage import FileTokenStore, MemoryTokenStore, TokenStore

__all__ = [
    'ApiClient', 'ServiceResponse', 'CartSession', 'ClientConfig',
    'ApiError', 'AuthenticationError', 'NetworkError',
    'StorefrontServices', 'SessionManager', 'ANONYMOUS', 'LOADING', 'AUTHENTICATED',
    'FileTokenStore', 'MemoryTokenStore', 'TokenStore',
]
