# caching/apps.py

from django.apps import AppConfig
from django.core import checks


class CachingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "caching"
    verbose_name = "Read Cache"

    def ready(self):
        import caching.signals  # noqa: F401
        from caching.checks import check_pattern_invalidation
        from caching.service import get_cache_service

        checks.register(check_pattern_invalidation, checks.Tags.caches)

        # Construct the process-wide cache service at startup.
        get_cache_service()
