# sales/models/sale_item.py

"""
SALE ITEM

One line of a sale, as an explicit tagged variant:

- catalog: references a Product, moves stock
- manual:  free-text description, never touches stock

After creation only the return bookkeeping changes
(returned_quantity, total, line_total).
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from products.models import Product

from .sale import Sale


class SaleItem(models.Model):
    LINE_CATALOG = "catalog"
    LINE_MANUAL = "manual"

    LINE_TYPE_CHOICES = [
        (LINE_CATALOG, "Catalog Product"),
        (LINE_MANUAL, "Manual Item"),
    ]

    # Fields the return processor may rewrite.
    MUTABLE_FIELDS = ("returned_quantity", "total", "line_total")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(
        Sale,
        on_delete=models.CASCADE,
        related_name="items",
    )

    line_type = models.CharField(max_length=10, choices=LINE_TYPE_CHOICES)

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="sale_items",
    )
    description = models.CharField(max_length=255, blank=True, default="")

    quantity = models.PositiveIntegerField()
    returned_quantity = models.PositiveIntegerField(default=0)

    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00")
    )
    tax_percent = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00")
    )

    # remaining quantity * unit_price - line discount
    total = models.DecimalField(max_digits=12, decimal_places=2)
    # total + line tax (display only)
    line_total = models.DecimalField(max_digits=12, decimal_places=2)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["sale", "created_at"], name="sales_item_sale_created_idx"),
            models.Index(fields=["product", "created_at"], name="sales_item_prod_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="sale_item_quantity_positive",
            ),
            models.CheckConstraint(
                condition=Q(returned_quantity__lte=F("quantity")),
                name="sale_item_returned_within_quantity",
            ),
            models.CheckConstraint(
                condition=(
                    Q(line_type="catalog", product__isnull=False)
                    | Q(line_type="manual", product__isnull=True)
                ),
                name="sale_item_line_type_matches_product",
            ),
        ]

    @property
    def is_catalog(self) -> bool:
        return self.line_type == self.LINE_CATALOG

    @property
    def remaining_quantity(self) -> int:
        return int(self.quantity) - int(self.returned_quantity or 0)

    @property
    def display_name(self) -> str:
        if self.is_catalog and self.product_id:
            return getattr(self.product, "name", "") or str(self.product_id)
        return self.description

    def save(self, *args, **kwargs):
        if not self._state.adding:
            previous = SaleItem.objects.filter(pk=self.pk).first()
            if previous is None:
                raise ValidationError("SaleItem records are immutable")

            for field in (
                "sale_id",
                "line_type",
                "product_id",
                "description",
                "quantity",
                "unit_price",
                "discount_percent",
                "tax_percent",
            ):
                if getattr(self, field) != getattr(previous, field):
                    raise ValidationError(f"SaleItem field '{field}' is immutable")

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("SaleItem records cannot be deleted")

    def __str__(self):
        return f"{self.display_name} x {self.quantity}"
