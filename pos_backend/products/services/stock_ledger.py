# products/services/stock_ledger.py

"""
======================================================
PATH: products/services/stock_ledger.py
======================================================
STOCK MOVEMENT LEDGER

Purpose:
- Append immutable IN / OUT movements.
- Keep Product.current_stock in step with the ledger (incremental F() update).
- Recompute current_stock from the ledger on demand (projection).
- Detect and repair drift between the materialized value and the ledger.

Rules:
- Quantities are positive integer units; direction carries the sign.
- append() joins the caller's transaction.atomic() block, so a failed sale
  leaves neither the movement nor the stock delta behind.
- Manual (non-catalog) sale lines never reach this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from caching.keys import FAMILY_INVENTORY, with_related
from caching.service import get_cache_service
from common.exceptions import InsufficientStockError, NotFoundError, ValidationError
from common.money import to_int_qty
from products.models import Product, StockMovement

logger = logging.getLogger(__name__)

INTAKE_REFERENCE_TYPES = {
    StockMovement.ReferenceType.OPENING,
    StockMovement.ReferenceType.PURCHASE,
    StockMovement.ReferenceType.ADJUSTMENT,
}


@dataclass(frozen=True)
class StockDrift:
    product_id: object
    product_name: str
    materialized: int
    ledger: int

    @property
    def delta(self) -> int:
        return self.ledger - self.materialized


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------
def _product_filter(product_id):
    try:
        return Product.objects.filter(pk=product_id)
    except (DjangoValidationError, ValueError, TypeError) as exc:
        raise NotFoundError(f"Product {product_id} not found") from exc


def _require_product_exists(product_id) -> None:
    try:
        exists = _product_filter(product_id).exists()
    except (DjangoValidationError, ValueError, TypeError) as exc:
        raise NotFoundError(f"Product {product_id} not found") from exc
    if not exists:
        raise NotFoundError(f"Product {product_id} not found", product_id=str(product_id))


def _django_message(exc: DjangoValidationError) -> str:
    messages = getattr(exc, "messages", None) or [str(exc)]
    return "; ".join(str(m) for m in messages)


def _signed_totals():
    return {
        "inbound": Coalesce(
            Sum("quantity", filter=Q(direction=StockMovement.Direction.IN)), 0
        ),
        "outbound": Coalesce(
            Sum("quantity", filter=Q(direction=StockMovement.Direction.OUT)), 0
        ),
    }


def _ledger_total(product_id) -> int:
    row = StockMovement.objects.filter(product_id=product_id).aggregate(
        **_signed_totals()
    )
    return int(row["inbound"]) - int(row["outbound"])


def _invalidate(cache) -> None:
    (cache or get_cache_service()).invalidate_families(with_related(FAMILY_INVENTORY))


# ------------------------------------------------------------
# Ledger writes
# ------------------------------------------------------------
def append(
    product_id,
    direction: str,
    quantity,
    reference_type: str,
    reference_id,
    note: str = "",
) -> StockMovement:
    """
    Append one movement and apply its delta to current_stock.

    Callers own cache invalidation; this function only writes the ledger.
    """
    qty = to_int_qty(quantity)
    if qty <= 0:
        raise ValidationError("quantity must be greater than zero")

    if direction not in StockMovement.Direction.values:
        raise ValidationError(f"Invalid movement direction: {direction!r}")

    with transaction.atomic():
        _require_product_exists(product_id)

        try:
            movement = StockMovement.objects.create(
                product_id=product_id,
                direction=direction,
                quantity=qty,
                reference_type=reference_type,
                reference_id=str(reference_id or ""),
                note=(note or "")[:255],
            )
        except DjangoValidationError as exc:
            raise ValidationError(_django_message(exc)) from exc

        delta = qty if direction == StockMovement.Direction.IN else -qty
        Product.objects.filter(pk=product_id).update(
            current_stock=F("current_stock") + delta,
            updated_at=timezone.now(),
        )

    logger.debug(
        "Stock movement appended",
        extra={
            "product_id": str(product_id),
            "direction": direction,
            "quantity": qty,
            "reference_type": reference_type,
            "reference_id": str(reference_id or ""),
        },
    )
    return movement


def receive_stock(
    product_id,
    quantity,
    reference_type: str = StockMovement.ReferenceType.PURCHASE,
    reference_id="",
    note: str = "",
    *,
    cache=None,
) -> StockMovement:
    """
    Stock intake path (opening balance, purchase receipt, positive adjustment).
    """
    if reference_type not in INTAKE_REFERENCE_TYPES:
        raise ValidationError(f"{reference_type} is not a stock intake reference")

    with transaction.atomic():
        movement = append(
            product_id,
            StockMovement.Direction.IN,
            quantity,
            reference_type,
            reference_id,
            note,
        )

    _invalidate(cache)
    return movement


# ------------------------------------------------------------
# Reads
# ------------------------------------------------------------
def get_current_stock(product_id) -> int:
    try:
        value = _product_filter(product_id).values_list("current_stock", flat=True).first()
    except (DjangoValidationError, ValueError, TypeError) as exc:
        raise NotFoundError(f"Product {product_id} not found") from exc

    if value is None:
        raise NotFoundError(f"Product {product_id} not found", product_id=str(product_id))
    return int(value)


def ensure_available(requirements: dict) -> None:
    """
    Verify every product can cover its requested quantity.

    `requirements` maps product_id -> total units (already summed across lines).
    A no-op when INVENTORY_ALLOW_NEGATIVE_STOCK is enabled.
    """
    if getattr(settings, "INVENTORY_ALLOW_NEGATIVE_STOCK", False):
        return
    if not requirements:
        return

    rows = {
        str(pk): (name, stock)
        for pk, name, stock in Product.objects.filter(
            pk__in=list(requirements.keys())
        ).values_list("id", "name", "current_stock")
    }

    for product_id, requested in requirements.items():
        row = rows.get(str(product_id))
        if row is None:
            raise NotFoundError(f"Product {product_id} not found", product_id=str(product_id))

        name, available = row
        if int(requested) > int(available):
            raise InsufficientStockError(
                f"Insufficient stock for {name}: requested {requested}, available {available}",
                product_id=str(product_id),
                requested=int(requested),
                available=int(available),
            )


# ------------------------------------------------------------
# Projection / reconciliation
# ------------------------------------------------------------
def project_current_stock(product_id, *, cache=None) -> int:
    """
    Full recompute: current_stock = sum(IN) - sum(OUT) over the ledger.
    Writes the materialized value and returns it.
    """
    with transaction.atomic():
        _require_product_exists(product_id)
        total = _ledger_total(product_id)
        Product.objects.filter(pk=product_id).update(
            current_stock=total,
            updated_at=timezone.now(),
        )

    _invalidate(cache)
    return total


def find_drift() -> list[StockDrift]:
    ledger = {
        row["product_id"]: int(row["inbound"]) - int(row["outbound"])
        for row in StockMovement.objects.values("product_id").annotate(
            **_signed_totals()
        )
    }

    drift = []
    for pk, name, materialized in Product.objects.values_list(
        "id", "name", "current_stock"
    ).order_by("name"):
        expected = ledger.get(pk, 0)
        if int(materialized) != expected:
            drift.append(
                StockDrift(
                    product_id=pk,
                    product_name=name,
                    materialized=int(materialized),
                    ledger=expected,
                )
            )
    return drift


def reconcile_all(repair: bool = True, *, cache=None) -> list[StockDrift]:
    """
    Compare every product against its ledger. With repair=True the
    materialized value is overwritten with the ledger value.
    """
    drift = find_drift()

    for item in drift:
        logger.warning(
            "Stock drift detected",
            extra={
                "product_id": str(item.product_id),
                "materialized": item.materialized,
                "ledger": item.ledger,
                "repair": repair,
            },
        )

    if repair and drift:
        with transaction.atomic():
            for item in drift:
                Product.objects.filter(pk=item.product_id).update(
                    current_stock=item.ledger,
                    updated_at=timezone.now(),
                )
        _invalidate(cache)

    return drift
