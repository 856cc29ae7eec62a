# sales/services/totals.py

"""
SALE TOTALS (PURE)

    line discount = qty * price * discount% / 100
    line total    = qty * price - line discount
    line tax      = line total * tax% / 100        (display only)
    subtotal      = sum(line totals)
    net           = subtotal - sale discount + sale tax

Every amount is rounded half-up to 0.01.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from common.money import HUNDRED, ZERO, money
from sales.models import Sale


@dataclass(frozen=True)
class LineAmounts:
    gross: Decimal
    discount: Decimal
    total: Decimal
    tax: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class SaleTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    net: Decimal


def line_amounts(quantity: int, unit_price, discount_percent, tax_percent) -> LineAmounts:
    gross = money(Decimal(int(quantity)) * Decimal(unit_price))
    discount = money(gross * Decimal(discount_percent) / HUNDRED)
    total = gross - discount
    tax = money(total * Decimal(tax_percent) / HUNDRED)
    return LineAmounts(
        gross=gross,
        discount=discount,
        total=total,
        tax=tax,
        line_total=total + tax,
    )


def sale_totals(line_totals, discount_amount, tax_amount) -> SaleTotals:
    subtotal = money(sum((money(t) for t in line_totals), ZERO))
    discount = money(discount_amount)
    tax = money(tax_amount)
    return SaleTotals(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        net=subtotal - discount + tax,
    )


def payment_status_for(net_amount, paid_amount) -> str:
    net = money(net_amount)
    paid = money(paid_amount)

    if paid >= net:
        return Sale.PAYMENT_PAID
    if paid > ZERO:
        return Sale.PAYMENT_PARTIAL
    return Sale.PAYMENT_UNPAID
