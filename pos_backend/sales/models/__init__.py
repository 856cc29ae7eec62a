# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS

Purpose:
- Central export surface for sales app models.
"""

from .sale import Sale
from .sale_item import SaleItem
from .sale_return import SaleReturn, SaleReturnItem

__all__ = [
    "Sale",
    "SaleItem",
    "SaleReturn",
    "SaleReturnItem",
]
