# delegates/models/commission.py

"""
PATH: delegates/models/commission.py

Commission earned by a delegate on one sale.

GUARANTEES:
- One row per (sale, delegate)
- Policy (type + rate) is snapshotted at creation
- Immutable after creation: returns and later policy edits never change it
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models

from .delegate import Delegate


class Commission(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        "sales.Sale",
        on_delete=models.PROTECT,
        related_name="commissions",
    )
    delegate = models.ForeignKey(
        Delegate,
        on_delete=models.PROTECT,
        related_name="commissions",
    )

    base_amount = models.DecimalField(max_digits=12, decimal_places=2)
    amount = models.DecimalField(max_digits=12, decimal_places=2)

    commission_type = models.CharField(
        max_length=16, choices=Delegate.CommissionType.choices
    )
    commission_rate = models.DecimalField(max_digits=5, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["sale", "delegate"],
                name="uniq_commission_per_sale_delegate",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Commission records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Commission records cannot be deleted")

    def __str__(self):
        return f"{self.delegate_id} | {self.sale_id} | {self.amount}"
