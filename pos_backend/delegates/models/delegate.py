# delegates/models/delegate.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Delegate(models.Model):
    """
    A sales representative attached to sales.

    Commission policy:
    - PERCENTAGE: commission_rate percent of the sale net amount
    - FIXED: commission_amount per sale
    Policy changes never touch commissions already recorded.
    """

    class CommissionType(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"
        FIXED = "fixed", "Fixed Amount"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, blank=True, default="")

    commission_type = models.CharField(
        max_length=16,
        choices=CommissionType.choices,
        default=CommissionType.PERCENTAGE,
    )
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Percent of the sale (e.g. 5.00) when type is percentage.",
    )
    commission_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Flat amount per sale when type is fixed.",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def clean(self):
        if self.commission_rate is not None and not (
            Decimal("0") <= Decimal(self.commission_rate) <= Decimal("100")
        ):
            raise ValidationError("commission_rate must be between 0 and 100")

        if self.commission_amount is not None and Decimal(self.commission_amount) < 0:
            raise ValidationError("commission_amount cannot be negative")

    def __str__(self):
        return self.name
