# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a sellable catalog product.

    STOCK MODEL (IMPORTANT):
    - current_stock is a MATERIALIZED value
    - The source of truth is the StockMovement ledger
    - current_stock == sum(IN) - sum(OUT) for this product
    - Only products.services.stock_ledger writes current_stock
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    barcode = models.CharField(
        max_length=64,
        unique=True,
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=255, db_index=True)

    # Current/default selling price
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    # Signed: negative only when INVENTORY_ALLOW_NEGATIVE_STOCK is enabled
    current_stock = models.IntegerField(default=0, editable=False)

    low_stock_threshold = models.PositiveIntegerField(default=10)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["sku"], name="products_pr_sku_idx"),
            models.Index(fields=["name"], name="products_pr_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.unit_price is None or Decimal(self.unit_price) <= 0:
            raise ValidationError("Unit price must be greater than zero")

        if self.barcode is not None:
            self.barcode = self.barcode.strip() or None

    @property
    def is_low_stock(self) -> bool:
        return int(self.current_stock or 0) <= int(self.low_stock_threshold or 0)
