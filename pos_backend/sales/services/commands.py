# sales/services/commands.py

"""
ENGINE COMMANDS

Typed inputs of the sale / return processors. Line items are an explicit
tagged variant: CatalogLine (moves stock) or ManualLine (never does).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Union


@dataclass(frozen=True)
class CatalogLine:
    product_id: object
    quantity: int
    # None means "use the product's current price"
    unit_price: Optional[Decimal] = None
    discount_percent: Decimal = Decimal("0")
    tax_percent: Decimal = Decimal("0")


@dataclass(frozen=True)
class ManualLine:
    description: str
    quantity: int
    unit_price: Decimal
    discount_percent: Decimal = Decimal("0")
    tax_percent: Decimal = Decimal("0")


SaleLine = Union[CatalogLine, ManualLine]


@dataclass(frozen=True)
class SaleCommand:
    lines: list = field(default_factory=list)
    payment_method: str = "cash"
    paid_amount: Decimal = Decimal("0")
    customer_id: object = None
    discount_amount: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    delegate_id: object = None
    idempotency_key: Optional[str] = None
    notes: str = ""
    due_date: Optional[date] = None
    # Hold the sale as pending; side effects run on complete_sale()
    hold: bool = False


@dataclass(frozen=True)
class ReturnLine:
    sale_item_id: object
    quantity: int
