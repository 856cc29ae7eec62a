# products/services/catalog.py

"""
CATALOG LOOKUPS

- resolve_products(): authoritative DB read used by the sale engine.
- product_snapshot() / lookup_by_barcode(): cached read-side lookups
  (family "inventory", invalidated by every stock write).
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError

from caching.keys import FAMILY_INVENTORY, make_key
from caching.service import get_cache_service
from common.exceptions import NotFoundError, ValidationError
from products.models import Product


def snapshot(product: Product) -> dict:
    return {
        "id": str(product.id),
        "sku": product.sku,
        "barcode": product.barcode,
        "name": product.name,
        "unit_price": str(product.unit_price),
        "current_stock": int(product.current_stock),
        "is_low_stock": product.is_low_stock,
        "is_active": product.is_active,
    }


def resolve_products(product_ids) -> dict:
    """
    Load products by id. Missing ids raise NotFoundError; inactive products
    cannot be sold.
    """
    wanted = {str(pk) for pk in product_ids}
    if not wanted:
        return {}

    try:
        found = {str(p.id): p for p in Product.objects.filter(pk__in=list(wanted))}
    except (DjangoValidationError, ValueError) as exc:
        raise NotFoundError("One or more products were not found") from exc

    missing = sorted(wanted - set(found))
    if missing:
        raise NotFoundError(f"Product {missing[0]} not found", product_ids=missing)

    inactive = [p.name for p in found.values() if not p.is_active]
    if inactive:
        raise ValidationError(f"Product {inactive[0]} is not active")

    return found


def product_snapshot(product_id, *, cache=None) -> dict:
    cache = cache or get_cache_service()

    def load():
        try:
            product = Product.objects.get(pk=product_id)
        except (Product.DoesNotExist, DjangoValidationError, ValueError) as exc:
            raise NotFoundError(f"Product {product_id} not found") from exc
        return snapshot(product)

    return cache.get_or_set(make_key(FAMILY_INVENTORY, "product", str(product_id)), load)


def lookup_by_barcode(barcode: str, *, cache=None) -> dict:
    code = (barcode or "").strip()
    if not code:
        raise ValidationError("barcode is required")

    cache = cache or get_cache_service()

    def load():
        product = Product.objects.filter(barcode=code, is_active=True).first()
        if product is None:
            raise NotFoundError(f"No active product with barcode {code}")
        return snapshot(product)

    return cache.get_or_set(make_key(FAMILY_INVENTORY, "barcode", code), load)
