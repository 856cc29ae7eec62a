from .commands import (
    PaymentInputSerializer,
    ReturnInputSerializer,
    SaleCreateSerializer,
)
from .sale import (
    SaleItemSerializer,
    SaleReturnSerializer,
    SaleSerializer,
)

__all__ = [
    "SaleSerializer",
    "SaleItemSerializer",
    "SaleReturnSerializer",
    "SaleCreateSerializer",
    "ReturnInputSerializer",
    "PaymentInputSerializer",
]
