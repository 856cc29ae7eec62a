# customers/models/customer.py

import uuid
from decimal import Decimal

from django.db import models


class Customer(models.Model):
    """
    A known buyer. Sales without a customer are anonymous walk-ins.

    current_balance is credit held for the customer (overpayments).
    It is only changed through customers.services.balance.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, db_index=True)
    phone = models.CharField(max_length=32, blank=True, default="")

    current_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name
