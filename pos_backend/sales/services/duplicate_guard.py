# sales/services/duplicate_guard.py

"""
DUPLICATE SALE GUARD

A sale is a duplicate when:
- its idempotency key was already used, or
- the same customer, anonymous walk-ins counting as one
  customer, got a sale with the same net amount (|delta| < 0.01) within
  SALES_DUPLICATE_WINDOW_SECONDS. A fresh key does not bypass the window.

The unique constraint on Sale.idempotency_key backs the key path against
concurrent inserts (see sale_service.create_sale).
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

from common.exceptions import DuplicateSaleError
from common.money import MONEY_EPSILON, money
from sales.models import Sale

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 5


def window_seconds() -> int:
    return int(getattr(settings, "SALES_DUPLICATE_WINDOW_SECONDS", DEFAULT_WINDOW_SECONDS))


def check_duplicate(*, customer_id, net_amount: Decimal, idempotency_key=None, now=None) -> None:
    if idempotency_key:
        existing = Sale.objects.filter(idempotency_key=idempotency_key).first()
        if existing is not None:
            raise DuplicateSaleError(
                f"Sale with idempotency key {idempotency_key} already exists "
                f"({existing.invoice_no})",
                sale_id=str(existing.id),
            )

    window = window_seconds()
    if window <= 0:
        return

    net = money(net_amount)
    since = (now or timezone.now()) - timedelta(seconds=window)

    qs = Sale.objects.filter(
        created_at__gte=since,
        net_amount__gt=net - MONEY_EPSILON,
        net_amount__lt=net + MONEY_EPSILON,
    ).exclude(status=Sale.STATUS_CANCELLED)

    if customer_id is None:
        qs = qs.filter(customer__isnull=True)
    else:
        qs = qs.filter(customer_id=customer_id)

    existing = qs.order_by("-created_at").first()
    if existing is not None:
        logger.warning(
            "Duplicate sale rejected",
            extra={
                "existing_sale_id": str(existing.id),
                "customer_id": str(customer_id) if customer_id else None,
                "net_amount": str(net),
            },
        )
        raise DuplicateSaleError(
            f"An identical sale ({existing.invoice_no}) was recorded less than "
            f"{window} seconds ago",
            sale_id=str(existing.id),
        )
