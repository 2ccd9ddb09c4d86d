"""
Caching helpers for expensive read endpoints.
Uses Redis (django-redis) in production and the local-memory cache otherwise.
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger('gold360.core')

# Cache TTLs (in seconds)
PRODUCTS_LIST_CACHE_TTL = 120  # 2 minutes
DASHBOARD_CACHE_TTL = 300  # 5 minutes

# Key prefixes
PRODUCTS_PREFIX = 'products'
DASHBOARD_PREFIX = 'dashboard'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache the result of an expensive function

    Usage:
        @cached_query(cache_ttl=300, key_prefix=DASHBOARD_PREFIX)
        def build_dashboard(today):
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


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys starting with a prefix.

    django-redis exposes delete_pattern; other backends are cleared entirely.
    """
    delete_pattern = getattr(cache, 'delete_pattern', None)
    if delete_pattern is not None:
        try:
            deleted = delete_pattern(f"{pattern}:*")
            logger.debug(f"Invalidated {deleted} cache keys for {pattern}")
            return
        except Exception as e:
            logger.warning(f"Cache pattern delete failed for {pattern}: {e}")
    cache.clear()


def invalidate_stock_caches():
    """Stock levels feed the product list and the dashboard"""
    invalidate_cache_pattern(PRODUCTS_PREFIX)
    invalidate_cache_pattern(DASHBOARD_PREFIX)
