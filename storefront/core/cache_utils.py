"""
Caching utilities for expensive listing queries

Keys embed a namespace version counter. Bumping the counter makes every key
in the namespace unreachable, which works on both Redis and local-memory
backends without scanning for keys.
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
SHOP_PRODUCTS_CACHE_TTL = 120  # 2 minutes
SHOP_TAXONOMY_CACHE_TTL = 600  # 10 minutes


def _version_key(namespace):
    return f"{namespace}:version"


def get_namespace_version(namespace):
    version = cache.get(_version_key(namespace))
    if version is None:
        cache.add(_version_key(namespace), 1, None)
        version = cache.get(_version_key(namespace), 1)
    return version


def bump_namespace(namespace):
    """Invalidate every cached entry under a namespace"""
    try:
        cache.incr(_version_key(namespace))
    except ValueError:
        # Key was never set or was evicted
        cache.set(_version_key(namespace), 2, None)
    logger.debug(f"Invalidated cache namespace: {namespace}")


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:v{get_namespace_version(prefix)}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, key_prefix="shop_products")
        def list_products(filters):
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator
