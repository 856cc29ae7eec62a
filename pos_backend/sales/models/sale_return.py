# sales/models/sale_return.py

"""
SALE RETURN AUDIT (IMMUTABLE)

Purpose:
- One row per return attempt on a sale, accepted or rejected.
- Accepted returns carry their lines, the returned value and the money
  handed back to the customer.
- Rejected attempts carry the error message so every attempt is traceable.

Created once. Never updated. Never deleted.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .sale import Sale
from .sale_item import SaleItem

User = settings.AUTH_USER_MODEL


class SaleReturn(models.Model):
    STATUS_COMPLETED = "completed"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
        (STATUS_REJECTED, "Rejected"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.PROTECT,
        related_name="returns",
    )

    status = models.CharField(max_length=16, choices=STATUS_CHOICES)
    reason = models.TextField(blank=True, default="")

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Value of the returned lines.",
    )
    refund_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Paid money handed back (old paid - new paid).",
    )

    error_message = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processed_returns",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sale", "created_at"], name="sales_ret_sale_created_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("SaleReturn records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("SaleReturn records cannot be deleted")

    def __str__(self):
        inv = getattr(self.sale, "invoice_no", None) or str(self.sale_id)
        return f"Return | {inv} | {self.status}"


class SaleReturnItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale_return = models.ForeignKey(
        SaleReturn,
        on_delete=models.CASCADE,
        related_name="items",
    )
    sale_item = models.ForeignKey(
        SaleItem,
        on_delete=models.PROTECT,
        related_name="return_lines",
    )

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["id"]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("SaleReturnItem records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("SaleReturnItem records cannot be deleted")

    def __str__(self):
        return f"{self.sale_item_id} x {self.quantity}"
