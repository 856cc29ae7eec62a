# sales/services/queries.py

"""
SALES READ SIDE (CACHED)

Serialized payloads cached under the "sales" family. Every engine write
invalidates the family, so a read after a write never sees stale data.
"""

from __future__ import annotations

from caching.keys import FAMILY_SALES, make_key
from caching.service import get_cache_service
from sales.serializers import SaleSerializer
from sales.services.sale_service import get_sale


def sale_detail(sale_id, *, cache=None) -> dict:
    cache = cache or get_cache_service()

    def load():
        return dict(SaleSerializer(get_sale(sale_id)).data)

    return cache.get_or_set(make_key(FAMILY_SALES, "sale", str(sale_id)), load)


def sale_list(params: dict, loader, *, cache=None):
    """
    Cache one page of the sales list, keyed by its query parameters.
    `loader` builds the page payload on a miss.
    """
    cache = cache or get_cache_service()
    return cache.get_or_set(make_key(FAMILY_SALES, "list", **params), loader)
