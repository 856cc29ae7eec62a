# caching/signals.py

"""
Cache invalidation for rows edited outside the sale engine
(admin, shell, back office). Engine writes invalidate on their own.
"""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from caching.keys import FAMILY_CUSTOMERS, FAMILY_DELEGATES, FAMILY_INVENTORY, with_related
from caching.service import get_cache_service


@receiver(post_save, sender="products.Product")
@receiver(post_delete, sender="products.Product")
def invalidate_product_cache(sender, instance, **kwargs):
    get_cache_service().invalidate_families(with_related(FAMILY_INVENTORY))


@receiver(post_save, sender="customers.Customer")
@receiver(post_delete, sender="customers.Customer")
def invalidate_customer_cache(sender, instance, **kwargs):
    get_cache_service().invalidate_families(with_related(FAMILY_CUSTOMERS))


@receiver(post_save, sender="delegates.Delegate")
@receiver(post_delete, sender="delegates.Delegate")
def invalidate_delegate_cache(sender, instance, **kwargs):
    get_cache_service().invalidate_families(with_related(FAMILY_DELEGATES))
