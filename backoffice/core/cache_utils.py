"""
Caching helpers for small, frequently read lists (offices, directions).
Backed by Redis through django-redis in production, local memory otherwise.
"""
from django.core.cache import cache
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
OFFICES_LIST_CACHE_TTL = 300  # 5 minutes
DIRECTIONS_LIST_CACHE_TTL = 600  # 10 minutes

OFFICES_LIST_KEYS = ['offices_list:active', 'offices_list:all']
DIRECTIONS_LIST_KEYS = ['directions_list:active', 'directions_list:all']


def list_cache_key(prefix, include_inactive):
    return f"{prefix}:{'all' if include_inactive else 'active'}"


def get_cached_list(cache_key):
    data = cache.get(cache_key)
    if data is not None:
        logger.debug(f"Cache HIT for {cache_key}")
    else:
        logger.debug(f"Cache MISS for {cache_key}")
    return data


def cache_list(cache_key, data, ttl):
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached list: {cache_key}")


def invalidate_offices_cache():
    """Invalidate cached office lists"""
    try:
        cache.delete_many(OFFICES_LIST_KEYS)
        logger.info("Invalidated offices cache")
    except Exception as e:
        logger.warning(f"Error invalidating offices cache: {e}")


def invalidate_directions_cache():
    """Invalidate cached direction lists"""
    try:
        cache.delete_many(DIRECTIONS_LIST_KEYS)
        logger.info("Invalidated directions cache")
    except Exception as e:
        logger.warning(f"Error invalidating directions cache: {e}")
