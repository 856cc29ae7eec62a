# sales/services/sale_service.py

"""
======================================================
PATH: sales/services/sale_service.py
======================================================
SALE TRANSACTION PROCESSOR

SINGLE SOURCE OF TRUTH for:
- Sale + SaleItem creation
- Totals calculation
- Stock deduction (through the stock ledger)
- Debt synchronization
- Delegate commission

GUARANTEES:
- Validation happens before any write
- One transaction.atomic() block per operation: all effects or none
- A failing commission never rolls back the sale (savepoint)
- Caches are invalidated after the block commits
- Held (pending) sales carry their debt but move no stock and earn no
  commission until complete_sale()
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from caching.keys import FAMILY_SALES, with_related
from caching.service import get_cache_service
from common.exceptions import (
    DuplicateSaleError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from common.money import ZERO, money, percent, to_int_qty
from customers.models import Customer
from debts.services.debt_sync import sync_debt_for_sale
from delegates.models import Delegate
from delegates.services.commission import record_commission
from products.models import StockMovement
from products.services import catalog, stock_ledger
from sales.models import Sale, SaleItem
from sales.services.commands import CatalogLine, ManualLine, SaleCommand
from sales.services.duplicate_guard import check_duplicate
from sales.services.sale_lifecycle import validate_transition
from sales.services.totals import line_amounts, payment_status_for, sale_totals

logger = logging.getLogger(__name__)

MANUAL_ITEM_DEFAULT_NAME = "Miscellaneous"

PAYMENT_METHODS = {choice for choice, _ in Sale.PAYMENT_METHOD_CHOICES}


# ============================================================
# PLAN (validated command, nothing written yet)
# ============================================================


@dataclass(frozen=True)
class _PlannedLine:
    line_type: str
    product: object
    description: str
    quantity: int
    unit_price: object
    discount_percent: object
    tax_percent: object
    total: object
    line_total: object


@dataclass(frozen=True)
class _SalePlan:
    customer: object
    delegate: object
    lines: list
    subtotal: object
    discount: object
    tax: object
    net: object
    paid: object
    change: object


def _non_negative(value, *, field_name: str):
    amount = money(value)
    if amount < ZERO:
        raise ValidationError(f"{field_name} cannot be negative")
    return amount


def _resolve_customer(customer_id):
    if customer_id in (None, ""):
        return None
    try:
        customer = Customer.objects.filter(pk=customer_id).first()
    except (DjangoValidationError, ValueError) as exc:
        raise NotFoundError(f"Customer {customer_id} not found") from exc
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found")
    return customer


def _resolve_delegate(delegate_id):
    if delegate_id in (None, ""):
        return None
    try:
        delegate = Delegate.objects.filter(pk=delegate_id).first()
    except (DjangoValidationError, ValueError) as exc:
        raise NotFoundError(f"Delegate {delegate_id} not found") from exc
    if delegate is None:
        raise NotFoundError(f"Delegate {delegate_id} not found")
    if not delegate.is_active:
        raise ValidationError(f"Delegate {delegate.name} is not active")
    return delegate


def _plan_line(line, products) -> _PlannedLine:
    quantity = to_int_qty(line.quantity)
    if quantity <= 0:
        raise ValidationError("quantity must be greater than zero")

    discount_pct = percent(line.discount_percent, field_name="discount_percent")
    tax_pct = percent(line.tax_percent, field_name="tax_percent")

    if isinstance(line, CatalogLine):
        product = products[str(line.product_id)]
        raw_price = product.unit_price if line.unit_price is None else line.unit_price
        line_type = SaleItem.LINE_CATALOG
        description = ""
    else:
        product = None
        raw_price = line.unit_price
        line_type = SaleItem.LINE_MANUAL
        description = (line.description or "").strip() or MANUAL_ITEM_DEFAULT_NAME

    unit_price = money(raw_price)
    if unit_price <= ZERO:
        raise ValidationError("unit_price must be greater than zero")

    amounts = line_amounts(quantity, unit_price, discount_pct, tax_pct)

    return _PlannedLine(
        line_type=line_type,
        product=product,
        description=description[:255],
        quantity=quantity,
        unit_price=unit_price,
        discount_percent=discount_pct,
        tax_percent=tax_pct,
        total=amounts.total,
        line_total=amounts.line_total,
    )


def _plan(command: SaleCommand) -> _SalePlan:
    lines = list(command.lines or [])
    if not lines:
        raise ValidationError("A sale needs at least one line")

    for line in lines:
        if not isinstance(line, (CatalogLine, ManualLine)):
            raise ValidationError(f"Unsupported sale line: {type(line).__name__}")

    method = (command.payment_method or "").strip().lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"Unsupported payment method: {command.payment_method!r}")

    paid = _non_negative(command.paid_amount, field_name="paid_amount")
    discount = _non_negative(command.discount_amount, field_name="discount_amount")
    tax = _non_negative(command.tax_amount, field_name="tax_amount")

    customer = _resolve_customer(command.customer_id)
    delegate = _resolve_delegate(command.delegate_id)

    products = catalog.resolve_products(
        line.product_id for line in lines if isinstance(line, CatalogLine)
    )

    planned = [_plan_line(line, products) for line in lines]

    totals = sale_totals((p.total for p in planned), discount, tax)
    if totals.discount > totals.subtotal + totals.tax:
        raise ValidationError("discount_amount cannot exceed subtotal plus tax")

    applied_paid = min(paid, totals.net)

    return _SalePlan(
        customer=customer,
        delegate=delegate,
        lines=planned,
        subtotal=totals.subtotal,
        discount=totals.discount,
        tax=totals.tax,
        net=totals.net,
        paid=applied_paid,
        change=paid - applied_paid,
    )


# ============================================================
# SIDE EFFECTS (inside the caller's atomic block)
# ============================================================


def _record_commission_safely(sale: Sale) -> None:
    try:
        with transaction.atomic():
            record_commission(sale.delegate, sale)
    except Exception:
        logger.exception(
            "Commission recording failed; sale kept",
            extra={"sale_id": str(sale.id), "delegate_id": str(sale.delegate_id)},
        )


def _apply_side_effects(sale: Sale, items) -> None:
    catalog_items = [item for item in items if item.line_type == SaleItem.LINE_CATALOG]

    requirements = defaultdict(int)
    for item in catalog_items:
        requirements[item.product_id] += int(item.quantity)
    stock_ledger.ensure_available(dict(requirements))

    for item in catalog_items:
        stock_ledger.append(
            item.product_id,
            StockMovement.Direction.OUT,
            item.quantity,
            StockMovement.ReferenceType.SALE,
            sale.id,
            note=sale.invoice_no,
        )

    sync_debt_for_sale(sale)

    if sale.delegate_id:
        _record_commission_safely(sale)


def _invalidate(cache) -> None:
    (cache or get_cache_service()).invalidate_families(with_related(FAMILY_SALES))


def get_sale(sale_id) -> Sale:
    try:
        return Sale.objects.select_related("customer", "delegate").get(pk=sale_id)
    except (Sale.DoesNotExist, DjangoValidationError, ValueError) as exc:
        raise NotFoundError(f"Sale {sale_id} not found") from exc


# ============================================================
# OPERATIONS
# ============================================================


def create_sale(command: SaleCommand, *, user=None, cache=None) -> Sale:
    """
    Validate, persist and apply a sale.

    Returns the saved Sale. With command.hold the sale stays pending: its
    debt is recorded now, stock and commission are applied by complete_sale().
    """
    plan = _plan(command)
    idempotency_key = (command.idempotency_key or "").strip() or None

    try:
        with transaction.atomic():
            check_duplicate(
                customer_id=plan.customer.id if plan.customer else None,
                net_amount=plan.net,
                idempotency_key=idempotency_key,
            )

            sale = Sale.objects.create(
                customer=plan.customer,
                delegate=plan.delegate,
                created_by=user if getattr(user, "pk", None) else None,
                subtotal_amount=plan.subtotal,
                discount_amount=plan.discount,
                tax_amount=plan.tax,
                net_amount=plan.net,
                paid_amount=plan.paid,
                payment_method=command.payment_method.strip().lower(),
                payment_status=payment_status_for(plan.net, plan.paid),
                status=Sale.STATUS_PENDING if command.hold else Sale.STATUS_COMPLETED,
                idempotency_key=idempotency_key,
                notes=command.notes or "",
                due_date=command.due_date,
            )

            items = SaleItem.objects.bulk_create(
                [
                    SaleItem(
                        sale=sale,
                        line_type=line.line_type,
                        product=line.product,
                        description=line.description,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        discount_percent=line.discount_percent,
                        tax_percent=line.tax_percent,
                        total=line.total,
                        line_total=line.line_total,
                    )
                    for line in plan.lines
                ]
            )

            if command.hold:
                sync_debt_for_sale(sale)
            else:
                _apply_side_effects(sale, items)

    except IntegrityError as exc:
        if idempotency_key and Sale.objects.filter(idempotency_key=idempotency_key).exists():
            raise DuplicateSaleError(
                f"Sale with idempotency key {idempotency_key} already exists"
            ) from exc
        raise PersistenceError("Sale could not be saved") from exc
    except DatabaseError as exc:
        raise PersistenceError("Sale could not be saved") from exc

    _invalidate(cache)

    logger.info(
        "Sale created",
        extra={
            "sale_id": str(sale.id),
            "invoice_no": sale.invoice_no,
            "status": sale.status,
            "net_amount": str(sale.net_amount),
            "paid_amount": str(sale.paid_amount),
            "change": str(plan.change),
        },
    )
    return sale


def complete_sale(sale_id, *, cache=None) -> Sale:
    """
    pending -> completed. Applies stock and commission effects and
    re-synchronizes the debt.
    """
    try:
        with transaction.atomic():
            sale = get_sale(sale_id)
            validate_transition(sale=sale, target_status=Sale.STATUS_COMPLETED)

            sale.status = Sale.STATUS_COMPLETED
            sale.completed_at = timezone.now()
            sale.save(update_fields=["status", "completed_at", "updated_at"])

            _apply_side_effects(sale, list(sale.items.all()))
    except DatabaseError as exc:
        raise PersistenceError("Sale could not be completed") from exc

    _invalidate(cache)
    logger.info("Sale completed", extra={"sale_id": str(sale.id)})
    return sale


def cancel_sale(sale_id, *, cache=None) -> Sale:
    """
    pending -> cancelled. A pending sale moved no stock, so only its
    debt row is dropped.
    """
    try:
        with transaction.atomic():
            sale = get_sale(sale_id)
            validate_transition(sale=sale, target_status=Sale.STATUS_CANCELLED)

            sale.status = Sale.STATUS_CANCELLED
            sale.save(update_fields=["status", "updated_at"])

            sync_debt_for_sale(sale)
    except DatabaseError as exc:
        raise PersistenceError("Sale could not be cancelled") from exc

    _invalidate(cache)
    logger.info("Sale cancelled", extra={"sale_id": str(sale.id)})
    return sale
