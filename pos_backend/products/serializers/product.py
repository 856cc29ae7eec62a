# products/serializers/product.py

"""
PRODUCT SERIALIZERS

- current_stock is read-only: only the stock ledger changes it.
"""

from rest_framework import serializers

from products.models import Product, StockMovement


class ProductSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "barcode",
            "name",
            "unit_price",
            "current_stock",
            "low_stock_threshold",
            "is_low_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class StockMovementSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockMovement
        fields = [
            "id",
            "direction",
            "quantity",
            "reference_type",
            "reference_id",
            "note",
            "created_at",
        ]
        read_only_fields = fields
