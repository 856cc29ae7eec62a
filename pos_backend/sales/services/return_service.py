# sales/services/return_service.py

"""
======================================================
PATH: sales/services/return_service.py
======================================================
RETURN PROCESSOR

Partial and full returns against completed sales.

Rules:
- Sale must be completed or partially_returned.
- Duplicate lines for the same item are aggregated before checks.
- Ceiling per line: requested <= quantity - returned_quantity.
- Line totals are recomputed on the remaining quantity.
- Catalog lines put stock back through the ledger (one IN per line).
- net = subtotal - discount + tax, recomputed from the lines:
    - every line fully returned -> sale discount and tax cleared (net = 0)
    - otherwise the discount is clamped so net never goes negative
- paid = min(old paid, new net); the difference is refunded money.
- Debt is re-synchronized; commissions are left as recorded.
- Every attempt leaves a SaleReturn row; rejected ones carry the error.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal

from django.db import DatabaseError, transaction

from caching.keys import FAMILY_SALES, with_related
from caching.service import get_cache_service
from common.exceptions import (
    PersistenceError,
    ReturnRangeError,
    SaleEngineError,
    ValidationError,
)
from common.money import ZERO, money, to_int_qty
from debts.services.debt_sync import sync_debt_for_sale
from products.models import StockMovement
from products.services import stock_ledger
from sales.models import Sale, SaleItem, SaleReturn, SaleReturnItem
from sales.services.commands import ReturnLine
from sales.services.sale_lifecycle import ensure_settled, validate_transition
from sales.services.sale_service import get_sale
from sales.services.totals import line_amounts, payment_status_for, sale_totals

logger = logging.getLogger(__name__)


def _normalize_lines(return_lines) -> dict:
    """
    Aggregate by sale_item_id. Returns {str(sale_item_id): quantity}.
    """
    lines = list(return_lines or [])
    if not lines:
        raise ValidationError("At least one return line is required")

    aggregated = defaultdict(int)
    for line in lines:
        if not isinstance(line, ReturnLine):
            raise ValidationError(f"Unsupported return line: {type(line).__name__}")

        qty = to_int_qty(line.quantity)
        if qty <= 0:
            raise ValidationError("Return quantity must be greater than zero")

        aggregated[str(line.sale_item_id)] += qty

    return dict(aggregated)


def _apply_return(sale: Sale, requested: dict, reason: str, user) -> SaleReturn:
    ensure_settled(sale=sale, operation="return")

    items = {str(item.id): item for item in sale.items.select_related("product")}

    for item_id, qty in requested.items():
        item = items.get(item_id)
        if item is None:
            raise ValidationError(f"Item {item_id} is not part of sale {sale.invoice_no}")
        if qty > item.remaining_quantity:
            raise ReturnRangeError(
                f"Cannot return {qty} of {item.display_name}: "
                f"only {item.remaining_quantity} remaining",
                sale_item_id=item_id,
                requested=qty,
                remaining=item.remaining_quantity,
            )

    returned_lines = []
    for item_id, qty in requested.items():
        item = items[item_id]
        old_total = money(item.total)

        item.returned_quantity = int(item.returned_quantity) + qty
        amounts = line_amounts(
            item.remaining_quantity,
            item.unit_price,
            item.discount_percent,
            item.tax_percent,
        )
        item.total = amounts.total
        item.line_total = amounts.line_total
        item.save(update_fields=list(SaleItem.MUTABLE_FIELDS))

        if item.is_catalog:
            stock_ledger.append(
                item.product_id,
                StockMovement.Direction.IN,
                qty,
                StockMovement.ReferenceType.SALE_RETURN,
                sale.id,
                note=f"Return on {sale.invoice_no}",
            )

        returned_lines.append((item, qty, old_total - item.total))

    fully_returned = all(item.remaining_quantity == 0 for item in items.values())

    if fully_returned:
        discount, tax = ZERO, ZERO
    else:
        discount, tax = money(sale.discount_amount), money(sale.tax_amount)
        subtotal = sale_totals((i.total for i in items.values()), ZERO, ZERO).subtotal
        if subtotal - discount + tax < ZERO:
            discount = subtotal + tax

    totals = sale_totals((i.total for i in items.values()), discount, tax)

    old_paid = money(sale.paid_amount)
    new_paid = min(old_paid, totals.net)

    target_status = Sale.STATUS_RETURNED if fully_returned else Sale.STATUS_PARTIALLY_RETURNED
    validate_transition(sale=sale, target_status=target_status)

    sale.subtotal_amount = totals.subtotal
    sale.discount_amount = totals.discount
    sale.tax_amount = totals.tax
    sale.net_amount = totals.net
    sale.paid_amount = new_paid
    sale.payment_status = payment_status_for(totals.net, new_paid)
    sale.status = target_status
    sale.save(
        update_fields=[
            "subtotal_amount",
            "discount_amount",
            "tax_amount",
            "net_amount",
            "paid_amount",
            "payment_status",
            "status",
            "updated_at",
        ]
    )

    sync_debt_for_sale(sale)

    sale_return = SaleReturn.objects.create(
        sale=sale,
        status=SaleReturn.STATUS_COMPLETED,
        reason=reason or "",
        total_amount=sum((value for _, _, value in returned_lines), Decimal("0.00")),
        refund_amount=old_paid - new_paid,
        created_by=user if getattr(user, "pk", None) else None,
    )
    SaleReturnItem.objects.bulk_create(
        [
            SaleReturnItem(
                sale_return=sale_return,
                sale_item=item,
                quantity=qty,
                unit_price=item.unit_price,
                total=value,
            )
            for item, qty, value in returned_lines
        ]
    )
    return sale_return


def _record_rejection(sale: Sale, reason: str, user, exc: SaleEngineError) -> None:
    try:
        SaleReturn.objects.create(
            sale=sale,
            status=SaleReturn.STATUS_REJECTED,
            reason=reason or "",
            error_message=exc.message or str(exc),
            created_by=user if getattr(user, "pk", None) else None,
        )
    except DatabaseError:
        logger.exception("Could not record rejected return", extra={"sale_id": str(sale.id)})

    logger.warning(
        "Return rejected",
        extra={"sale_id": str(sale.id), "code": exc.code, "error": exc.message},
    )


def process_return(sale_id, return_lines, reason: str = "", *, user=None, cache=None) -> Sale:
    """
    Return units from a sale. Returns the updated Sale.
    """
    sale = get_sale(sale_id)

    try:
        with transaction.atomic():
            requested = _normalize_lines(return_lines)
            sale = get_sale(sale.id)
            sale_return = _apply_return(sale, requested, reason, user)
    except SaleEngineError as exc:
        _record_rejection(sale, reason, user, exc)
        raise
    except DatabaseError as exc:
        raise PersistenceError("Return could not be saved") from exc

    (cache or get_cache_service()).invalidate_families(with_related(FAMILY_SALES))

    logger.info(
        "Return processed",
        extra={
            "sale_id": str(sale.id),
            "sale_return_id": str(sale_return.id),
            "status": sale.status,
            "returned_value": str(sale_return.total_amount),
            "refund_amount": str(sale_return.refund_amount),
        },
    )
    return sale
