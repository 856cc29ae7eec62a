# debts/models/debt.py

"""
PATH: debts/models/debt.py

Outstanding balance of one sale.

GUARANTEES:
- At most one Debt per Sale (OneToOne)
- Exists only while sale.net_amount - sale.paid_amount > 0
- Written exclusively by debts.services.debt_sync
"""

import uuid

from django.db import models


class Debt(models.Model):
    STATUS_UNPAID = "unpaid"
    STATUS_PARTIAL = "partial"

    STATUS_CHOICES = (
        (STATUS_UNPAID, "Unpaid"),
        (STATUS_PARTIAL, "Partially Paid"),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.OneToOneField(
        "sales.Sale",
        on_delete=models.CASCADE,
        related_name="debt",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="debts",
    )

    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, db_index=True)

    due_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="debt_amount_positive",
            ),
        ]

    def __str__(self):
        return f"Debt {self.amount} ({self.status}) for sale {self.sale_id}"
