# debts/services/debt_sync.py

"""
DEBT LEDGER SYNCHRONIZER

sync_debt_for_sale() is the only writer of Debt rows. It runs inside the
sale engine's atomic block after every change to a sale's net or paid amount.

Rules:
- remaining = net_amount - paid_amount
- remaining <= 0  -> the sale has no debt row
- a cancelled sale has no debt row
- remaining > 0   -> exactly one row with amount = remaining
- status is "unpaid" when nothing was paid, otherwise "partial"
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db.models import Sum

from caching.keys import FAMILY_DEBTS, make_key
from caching.service import get_cache_service
from common.money import ZERO, money
from debts.models import Debt

logger = logging.getLogger(__name__)


def sync_debt_for_sale(sale) -> Debt | None:
    remaining = money(sale.net_amount) - money(sale.paid_amount)
    if sale.status == sale.STATUS_CANCELLED:
        remaining = ZERO

    if remaining <= ZERO:
        deleted, _ = Debt.objects.filter(sale_id=sale.id).delete()
        if deleted:
            logger.info("Debt settled", extra={"sale_id": str(sale.id)})
        return None

    status = Debt.STATUS_UNPAID if money(sale.paid_amount) <= ZERO else Debt.STATUS_PARTIAL

    debt, created = Debt.objects.update_or_create(
        sale_id=sale.id,
        defaults={
            "customer_id": sale.customer_id,
            "amount": remaining,
            "status": status,
            "due_date": getattr(sale, "due_date", None),
        },
    )

    logger.info(
        "Debt synchronized",
        extra={
            "sale_id": str(sale.id),
            "amount": str(remaining),
            "status": status,
            "debt_created": created,
        },
    )
    return debt


def outstanding_for_customer(customer_id, *, cache=None) -> Decimal:
    """
    Total outstanding debt of one customer (cached aggregate).
    """
    cache = cache or get_cache_service()

    def load():
        total = Debt.objects.filter(customer_id=customer_id).aggregate(
            total=Sum("amount")
        )["total"]
        return money(total)

    return cache.get_or_set(make_key(FAMILY_DEBTS, "outstanding", str(customer_id)), load)
