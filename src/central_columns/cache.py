"""
Caching for schema introspection.

Strategy lookups (column lists, keys, unique constraints) are cached per
strategy method in cachetools TTL caches.
"""
import functools
import logging
import threading

import cachetools

logger = logging.getLogger(__name__)


class Cache:
    """Cache manager for introspection results.

    Thread-safe singleton that manages all TTL caches.
    """

    _instance = None
    _caches: dict[str, cachetools.TTLCache] = {}
    _lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> 'Cache':
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def get_cache(self, name: str, maxsize: int = 100, ttl: int = 300) -> cachetools.TTLCache:
        """Get or create a TTL cache with the given name.

        Args:
            name: Name of the cache
            maxsize: Maximum cache size
            ttl: Time-to-live in seconds

        Returns
            TTLCache instance
        """
        if name not in self._caches:
            with self._lock:
                if name not in self._caches:
                    self._caches[name] = cachetools.TTLCache(maxsize=maxsize, ttl=ttl)
        return self._caches[name]

    def clear_all(self) -> None:
        """Clear all managed caches."""
        with self._lock:
            for cache in self._caches.values():
                cache.clear()

    def clear_for_table(self, table_name: str) -> None:
        """Clear all cache entries related to a specific table.

        Args:
            table_name: Name of the table to clear cache entries for
        """
        with self._lock:
            for cache in self._caches.values():
                keys_to_clear = [
                    key for key in list(cache.keys())
                    if str(key).startswith(f'{table_name}:')
                ]
                for key in keys_to_clear:
                    if key in cache:
                        del cache[key]
                        logger.debug(f'Cleared cache entry {key} for table {table_name}')


def _connection_token(cn) -> str:
    """Stable identity of a connection for the lifetime of the process.

    Connection wrappers carry a `cache_token` that is never reused; other
    objects fall back to their type and id.
    """
    token = getattr(cn, 'cache_token', None)
    if isinstance(token, str):
        return token
    return f'{type(cn).__name__}-{id(cn)}'


def _create_cache_key(table_name: str, token: str, method_args: tuple, method_kwargs: dict) -> str:
    """Create a deterministic cache key from arguments.

    Table names keep their case since quoted identifiers are case-sensitive.
    Excludes connection objects (detected by cursor/driver_connection attributes).
    """
    args_str = ':'.join(
        repr(arg) for arg in method_args
        if not hasattr(arg, 'cursor') and not hasattr(arg, 'driver_connection')
    )

    kwargs_str = ':'.join(
        f'{k}={repr(v)}' for k, v in sorted(method_kwargs.items())
        if k != 'bypass_cache'
        and not hasattr(v, 'cursor')
        and not hasattr(v, 'driver_connection')
    )

    return f'{table_name}:{token}:{args_str}:{kwargs_str}'


def cacheable_strategy(cache_name: str, ttl: int = 300, maxsize: int = 50):
    """Decorator for caching strategy method results.

    Caches results keyed by the table name, the connection and the method
    arguments. Respects bypass_cache parameter to skip cache lookup; the
    flag is handed on to the method so nested lookups read fresh too.

    Args:
        cache_name: Base name for the cache
        ttl: Time-to-live in seconds
        maxsize: Maximum cache size
    """
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, cn, table, *args, bypass_cache=False, **kwargs):
            if bypass_cache:
                logger.debug(f'Bypassing cache for {method.__name__}({table})')
                return method(self, cn, table, *args, bypass_cache=True, **kwargs)

            strategy_class = self.__class__.__name__
            specific_cache_name = f'{cache_name}_{strategy_class}_{method.__name__}'

            cache = Cache.get_instance().get_cache(specific_cache_name, ttl=ttl, maxsize=maxsize)
            cache_key = _create_cache_key(table, _connection_token(cn), args, kwargs)

            if cache_key in cache:
                logger.debug(f'Cache hit for {method.__name__}({table})')
                return cache[cache_key]

            logger.debug(f'Cache miss for {method.__name__}({table})')
            result = method(self, cn, table, *args, bypass_cache=False, **kwargs)
            cache[cache_key] = result
            return result

        return wrapper
    return decorator
