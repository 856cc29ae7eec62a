# sales/serializers/commands.py

"""
ENGINE COMMAND INPUT

Shape checks only. Business rules (stock, ceilings, duplicates, totals)
are enforced by the engine and reported through its typed errors.
"""

from rest_framework import serializers

from sales.models import Sale
from sales.services.commands import (
    CatalogLine,
    ManualLine,
    ReturnLine,
    SaleCommand,
)

LINE_TYPES = ("catalog", "manual")


class SaleLineInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=LINE_TYPES, default="catalog")
    product_id = serializers.UUIDField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    discount_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, default=0
    )
    tax_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, default=0
    )

    def validate(self, attrs):
        if attrs["type"] == "catalog":
            if not attrs.get("product_id"):
                raise serializers.ValidationError("product_id is required for catalog items")
        elif attrs.get("unit_price") is None:
            raise serializers.ValidationError("unit_price is required for manual items")
        return attrs

    def to_line(self, attrs):
        common = {
            "quantity": attrs["quantity"],
            "unit_price": attrs.get("unit_price"),
            "discount_percent": attrs["discount_percent"],
            "tax_percent": attrs["tax_percent"],
        }
        if attrs["type"] == "catalog":
            return CatalogLine(product_id=attrs["product_id"], **common)
        return ManualLine(description=attrs.get("description", ""), **common)


class SaleCreateSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    items = SaleLineInputSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(
        choices=[c for c, _ in Sale.PAYMENT_METHOD_CHOICES],
        default=Sale.PAYMENT_CASH,
    )
    paid_amount = serializers.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, default=0)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2, default=0)
    delegate_id = serializers.UUIDField(required=False, allow_null=True)
    idempotency_key = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=128
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    due_date = serializers.DateField(required=False, allow_null=True)
    hold = serializers.BooleanField(required=False, default=False)

    def to_command(self) -> SaleCommand:
        data = self.validated_data
        line_serializer = SaleLineInputSerializer()
        return SaleCommand(
            lines=[line_serializer.to_line(item) for item in data["items"]],
            payment_method=data["payment_method"],
            paid_amount=data["paid_amount"],
            customer_id=data.get("customer_id"),
            discount_amount=data["discount_amount"],
            tax_amount=data["tax_amount"],
            delegate_id=data.get("delegate_id"),
            idempotency_key=data.get("idempotency_key") or None,
            notes=data["notes"],
            due_date=data.get("due_date"),
            hold=data["hold"],
        )


class ReturnLineInputSerializer(serializers.Serializer):
    sale_item_id = serializers.UUIDField()
    quantity = serializers.IntegerField()


class ReturnInputSerializer(serializers.Serializer):
    items = ReturnLineInputSerializer(many=True, allow_empty=False)
    reason = serializers.CharField(required=False, allow_blank=True, default="")

    def to_lines(self):
        return [
            ReturnLine(sale_item_id=item["sale_item_id"], quantity=item["quantity"])
            for item in self.validated_data["items"]
        ]


class PaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
