# sales/services/payment_service.py

"""
PAYMENT RECORDING

The only path (besides returns) that changes Sale.paid_amount.

Rules:
- Allowed on completed / partially_returned sales with money still owed.
- paid_amount never exceeds net_amount.
- Overpayment is credited to the customer's balance; on anonymous sales
  it is change handed back.
- Debt is re-synchronized in the same transaction.
"""

from __future__ import annotations

import logging

from django.db import DatabaseError, transaction

from caching.keys import FAMILY_SALES, with_related
from caching.service import get_cache_service
from common.exceptions import ConsistencyError, PersistenceError, ValidationError
from common.money import ZERO, money
from customers.services.balance import credit_balance
from debts.services.debt_sync import sync_debt_for_sale
from sales.models import Sale
from sales.services.sale_lifecycle import ensure_settled
from sales.services.sale_service import get_sale
from sales.services.totals import payment_status_for

logger = logging.getLogger(__name__)


def record_payment(sale_id, amount, *, cache=None) -> Sale:
    amount = money(amount)
    if amount <= ZERO:
        raise ValidationError("Payment amount must be greater than zero")

    try:
        with transaction.atomic():
            sale = get_sale(sale_id)
            ensure_settled(sale=sale, operation="record a payment on")

            outstanding = money(sale.net_amount) - money(sale.paid_amount)
            if outstanding <= ZERO:
                raise ConsistencyError(f"Sale {sale.invoice_no} is already fully paid")

            applied = min(amount, outstanding)
            excess = amount - applied

            sale.paid_amount = money(sale.paid_amount) + applied
            sale.payment_status = payment_status_for(sale.net_amount, sale.paid_amount)
            sale.save(update_fields=["paid_amount", "payment_status", "updated_at"])

            sync_debt_for_sale(sale)

            credited = ZERO
            if excess > ZERO and sale.customer_id:
                credit_balance(sale.customer_id, excess)
                credited = excess
    except DatabaseError as exc:
        raise PersistenceError("Payment could not be saved") from exc

    (cache or get_cache_service()).invalidate_families(with_related(FAMILY_SALES))

    logger.info(
        "Payment recorded",
        extra={
            "sale_id": str(sale.id),
            "applied": str(applied),
            "credited": str(credited),
            "change": str(excess - credited),
        },
    )
    return sale
