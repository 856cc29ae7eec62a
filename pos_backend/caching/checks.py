# caching/checks.py

"""
System check: prefix invalidation must reach every worker.

A shared backend (Redis via Django's own client, Memcached, database)
without delete_pattern() only sees keys tracked by the local process,
so another worker's writes would leave stale entries behind.
Process-local backends (LocMem, Dummy) are exact with the in-process
registry.
"""

from django.core.cache.backends.dummy import DummyCache
from django.core.cache.backends.locmem import LocMemCache
from django.core.checks import Error

PROCESS_LOCAL_BACKENDS = (LocMemCache, DummyCache)


def pattern_invalidation_errors(service) -> list:
    backend = service.backend
    if service.supports_patterns or isinstance(backend, PROCESS_LOCAL_BACKENDS):
        return []

    return [
        Error(
            f"Cache backend {type(backend).__name__} cannot delete keys by pattern.",
            hint="Use django-redis (CACHE_URL=rediscache://...) or a LocMem cache.",
            id="caching.E001",
        )
    ]


def check_pattern_invalidation(app_configs, **kwargs):
    from caching.service import get_cache_service

    return pattern_invalidation_errors(get_cache_service())
