# sales/serializers/sale.py

"""
SALE READ SERIALIZERS

Receipt-ready payloads for sales, their lines and return attempts.
"""

from rest_framework import serializers

from sales.models import Sale, SaleItem, SaleReturn, SaleReturnItem


class SaleItemSerializer(serializers.ModelSerializer):
    """
    Sale line item serializer (read-only).
    Designed for receipts + UI display.
    """

    name = serializers.CharField(source="display_name", read_only=True)
    sku = serializers.SerializerMethodField()
    remaining_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = SaleItem
        fields = [
            "id",
            "line_type",
            "product",
            "name",
            "sku",
            "description",
            "quantity",
            "returned_quantity",
            "remaining_quantity",
            "unit_price",
            "discount_percent",
            "tax_percent",
            "total",
            "line_total",
        ]
        read_only_fields = fields

    def get_sku(self, obj):
        product = getattr(obj, "product", None)
        return getattr(product, "sku", None)


class SaleReturnItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = SaleReturnItem
        fields = ["id", "sale_item", "quantity", "unit_price", "total"]
        read_only_fields = fields


class SaleReturnSerializer(serializers.ModelSerializer):
    items = SaleReturnItemSerializer(many=True, read_only=True)

    class Meta:
        model = SaleReturn
        fields = [
            "id",
            "status",
            "reason",
            "total_amount",
            "refund_amount",
            "error_message",
            "created_by",
            "created_at",
            "items",
        ]
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    items = SaleItemSerializer(many=True, read_only=True)
    returns = SaleReturnSerializer(many=True, read_only=True)
    customer_name = serializers.SerializerMethodField()
    remaining_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, read_only=True
    )

    class Meta:
        model = Sale
        fields = [
            "id",
            "invoice_no",
            "customer",
            "customer_name",
            "delegate",
            "created_by",
            "subtotal_amount",
            "discount_amount",
            "tax_amount",
            "net_amount",
            "paid_amount",
            "remaining_amount",
            "payment_method",
            "payment_status",
            "status",
            "notes",
            "due_date",
            "created_at",
            "completed_at",
            "items",
            "returns",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj):
        customer = getattr(obj, "customer", None)
        return getattr(customer, "name", None)
