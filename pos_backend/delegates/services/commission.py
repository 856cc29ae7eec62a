# delegates/services/commission.py

"""
COMMISSION CALCULATOR

- calculate_commission(): pure policy evaluation, rounded half-up to 0.01.
- record_commission(): snapshot the policy and persist the amount once.

A zero commission is not recorded.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db.models import Count, Sum

from caching.keys import FAMILY_DELEGATES, make_key
from caching.service import get_cache_service
from common.exceptions import ValidationError
from common.money import HUNDRED, ZERO, money, percent
from delegates.models import Commission, Delegate

logger = logging.getLogger(__name__)


def calculate_commission(delegate: Delegate, sale_amount) -> Decimal:
    base = money(sale_amount)
    kind = getattr(delegate, "commission_type", None)

    if kind == Delegate.CommissionType.PERCENTAGE:
        rate = percent(delegate.commission_rate, field_name="commission_rate")
        return money(base * rate / HUNDRED)

    if kind == Delegate.CommissionType.FIXED:
        amount = money(delegate.commission_amount)
        if amount < ZERO:
            raise ValidationError("commission_amount cannot be negative")
        return amount

    raise ValidationError(f"Unknown commission type: {kind!r}")


def record_commission(delegate: Delegate, sale) -> Commission | None:
    """
    Persist the delegate's commission for a sale.
    Returns the existing row when one is already recorded.
    """
    existing = Commission.objects.filter(sale=sale, delegate=delegate).first()
    if existing is not None:
        return existing

    amount = calculate_commission(delegate, sale.net_amount)
    if amount <= ZERO:
        return None

    commission = Commission.objects.create(
        sale=sale,
        delegate=delegate,
        base_amount=money(sale.net_amount),
        amount=amount,
        commission_type=delegate.commission_type,
        commission_rate=money(delegate.commission_rate),
    )

    logger.info(
        "Commission recorded",
        extra={
            "sale_id": str(sale.id),
            "delegate_id": str(delegate.id),
            "amount": str(amount),
        },
    )
    return commission


def commission_summary(delegate_id, *, cache=None) -> dict:
    cache = cache or get_cache_service()

    def load():
        row = Commission.objects.filter(delegate_id=delegate_id).aggregate(
            total=Sum("amount"),
            count=Count("id"),
        )
        return {
            "delegate_id": str(delegate_id),
            "total": str(money(row["total"])),
            "count": int(row["count"] or 0),
        }

    return cache.get_or_set(make_key(FAMILY_DELEGATES, "summary", str(delegate_id)), load)
