# products/models/stock_movement.py

"""
CANONICAL INVENTORY LEDGER

Immutable inventory ledger entry.

GUARANTEES:
- Append-only (no updates, no deletes)
- Created ONCE, never edited
- Direction validated against reference type
- Every movement names what caused it (reference_type + reference_id)
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models

from .product import Product


class StockMovement(models.Model):
    class Direction(models.TextChoices):
        IN = "in", "Stock In"
        OUT = "out", "Stock Out"

    class ReferenceType(models.TextChoices):
        SALE = "sale", "Sale"
        SALE_RETURN = "sale_return", "Sale Return"
        OPENING = "opening", "Opening Balance"
        PURCHASE = "purchase", "Purchase Receipt"
        ADJUSTMENT = "adjustment", "Manual Adjustment"

    REFERENCE_TO_DIRECTION = {
        ReferenceType.SALE: Direction.OUT,
        ReferenceType.SALE_RETURN: Direction.IN,
        ReferenceType.OPENING: Direction.IN,
        ReferenceType.PURCHASE: Direction.IN,
        ReferenceType.ADJUSTMENT: None,
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product, on_delete=models.PROTECT, related_name="stock_movements"
    )

    direction = models.CharField(max_length=3, choices=Direction.choices)
    quantity = models.PositiveIntegerField()

    reference_type = models.CharField(max_length=20, choices=ReferenceType.choices)
    reference_id = models.CharField(max_length=64, blank=True, default="")

    note = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["product", "created_at"], name="products_sm_prod_created_idx"),
            models.Index(fields=["reference_type", "reference_id"], name="products_sm_reference_idx"),
        ]

    def clean(self):
        if not self.quantity or self.quantity <= 0:
            raise ValidationError("quantity must be greater than zero")

        expected = self.REFERENCE_TO_DIRECTION.get(self.reference_type)
        if expected and self.direction != expected:
            raise ValidationError(
                f"{self.reference_type} requires direction={expected}"
            )

        if self.reference_type in {
            self.ReferenceType.SALE,
            self.ReferenceType.SALE_RETURN,
        } and not self.reference_id:
            raise ValidationError("sale movements must reference the sale")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("StockMovement records are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "StockMovement records are immutable and cannot be deleted"
        )

    @property
    def signed_quantity(self) -> int:
        if self.direction == self.Direction.OUT:
            return -int(self.quantity)
        return int(self.quantity)

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        return f"{product_name} | {self.direction} {self.quantity} | {self.reference_type}"
