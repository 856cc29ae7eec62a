# customers/services/balance.py

"""
CUSTOMER BALANCE UPDATER

Credits overpayments to Customer.current_balance.
Runs inside the caller's transaction; the caller invalidates the cache.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from caching.keys import FAMILY_CUSTOMERS, make_key
from caching.service import get_cache_service
from common.exceptions import NotFoundError, ValidationError
from common.money import ZERO, money
from customers.models import Customer

logger = logging.getLogger(__name__)


def credit_balance(customer_id, amount) -> Decimal:
    """
    Add amount to the customer's balance and return the new balance.
    """
    amount = money(amount)
    if amount <= ZERO:
        raise ValidationError("credit amount must be greater than zero")

    with transaction.atomic():
        updated = Customer.objects.filter(pk=customer_id).update(
            current_balance=F("current_balance") + amount,
            updated_at=timezone.now(),
        )
        if not updated:
            raise NotFoundError(f"Customer {customer_id} not found")

        balance = Customer.objects.values_list("current_balance", flat=True).get(
            pk=customer_id
        )

    logger.info(
        "Customer balance credited",
        extra={"customer_id": str(customer_id), "amount": str(amount)},
    )
    return balance


def get_balance(customer_id, *, cache=None) -> Decimal:
    cache = cache or get_cache_service()

    def load():
        balance = (
            Customer.objects.filter(pk=customer_id)
            .values_list("current_balance", flat=True)
            .first()
        )
        if balance is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        return balance

    return cache.get_or_set(make_key(FAMILY_CUSTOMERS, "balance", str(customer_id)), load)
