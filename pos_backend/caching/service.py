# caching/service.py

"""
READ CACHE SERVICE

Thin wrapper over Django's cache framework used by every read-side lookup
and invalidated by every engine write.

Rules:
- The cache is never authoritative. A failing backend degrades to a miss.
- Pattern invalidation uses delete_pattern() when the backend offers it
  (django-redis). Otherwise keys are tracked per family in-process so
  invalidation stays exact on LocMem.
- Cache errors are logged and swallowed; they never fail a sale.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Iterable, Optional

from django.core.cache import caches

from caching.keys import default_ttl, family_of

logger = logging.getLogger(__name__)

_MISSING = object()


class CacheService:
    def __init__(self, alias: str = "default", backend=None):
        self.alias = alias
        self._backend = backend
        self._registry: dict[str, set[str]] = defaultdict(set)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def backend(self):
        if self._backend is None:
            self._backend = caches[self.alias]
        return self._backend

    @property
    def supports_patterns(self) -> bool:
        return callable(getattr(self.backend, "delete_pattern", None))

    # ------------------------------------------------------------
    # Registry (LocMem fallback)
    # ------------------------------------------------------------
    def _track(self, key: str) -> None:
        with self._lock:
            self._registry[family_of(key)].add(key)

    def _forget(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._registry.get(family_of(key), set()).discard(key)

    def _tracked_with_prefix(self, prefix: str) -> list[str]:
        with self._lock:
            family_keys = self._registry.get(family_of(prefix), set())
            return [k for k in family_keys if k.startswith(prefix)]

    # ------------------------------------------------------------
    # Reads / writes
    # ------------------------------------------------------------
    def get(self, key: str, default: Any = None) -> Any:
        try:
            value = self.backend.get(key, _MISSING)
        except Exception:
            logger.warning("Cache read failed", extra={"key": key}, exc_info=True)
            value = _MISSING

        if value is _MISSING:
            self.misses += 1
            return default

        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        if ttl_seconds is None:
            ttl_seconds = default_ttl(key)

        try:
            self.backend.set(key, value, ttl_seconds)
        except Exception:
            logger.warning("Cache write failed", extra={"key": key}, exc_info=True)
            return

        self._track(key)

    def get_or_set(
        self,
        key: str,
        fn: Callable[[], Any],
        ttl_seconds: Optional[int] = None,
    ) -> Any:
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value

        value = fn()
        self.set(key, value, ttl_seconds)
        return value

    # ------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------
    def invalidate(self, key: str) -> None:
        try:
            self.backend.delete(key)
        except Exception:
            logger.warning("Cache delete failed", extra={"key": key}, exc_info=True)
        self._forget([key])

    def invalidate_pattern(self, prefix: str) -> int:
        """
        Drop every key starting with prefix. "sales:*" and "sales:" are
        equivalent. Returns the number of tracked keys removed.
        """
        prefix = str(prefix).rstrip("*")
        if not prefix:
            raise ValueError("Refusing to invalidate an empty prefix; use clear()")

        tracked = self._tracked_with_prefix(prefix)

        try:
            if self.supports_patterns:
                self.backend.delete_pattern(f"{prefix}*")
            elif tracked:
                self.backend.delete_many(tracked)
        except Exception:
            logger.warning(
                "Cache pattern invalidation failed",
                extra={"pattern": prefix},
                exc_info=True,
            )

        self._forget(tracked)
        return len(tracked)

    def invalidate_families(self, families: Iterable[str]) -> None:
        families = list(dict.fromkeys(families))
        for family in families:
            self.invalidate_pattern(f"{family}:")

        logger.debug("Cache families invalidated", extra={"families": families})

    def clear(self) -> None:
        try:
            self.backend.clear()
        except Exception:
            logger.warning("Cache clear failed", exc_info=True)

        with self._lock:
            self._registry.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict:
        with self._lock:
            tracked = sum(len(keys) for keys in self._registry.values())
        return {"hits": self.hits, "misses": self.misses, "tracked_keys": tracked}


# ------------------------------------------------------------
# Process-wide instance
# ------------------------------------------------------------
_service: Optional[CacheService] = None
_service_lock = threading.Lock()


def get_cache_service() -> CacheService:
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = CacheService()
    return _service


def reset_cache_service() -> None:
    """Clear the shared cache and drop the process-wide instance."""
    global _service
    with _service_lock:
        (_service or CacheService()).clear()
        _service = None
