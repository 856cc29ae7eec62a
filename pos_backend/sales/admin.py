# sales/admin.py

from django.contrib import admin

from sales.models import Sale, SaleItem, SaleReturn, SaleReturnItem


# ======================================================
# SALE ADMIN
# ======================================================


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    can_delete = False
    fields = (
        "line_type",
        "product",
        "description",
        "quantity",
        "returned_quantity",
        "unit_price",
        "discount_percent",
        "tax_percent",
        "total",
        "line_total",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    """
    Sales are written by the sale engine only.
    """

    list_display = (
        "invoice_no",
        "status",
        "customer",
        "net_amount",
        "paid_amount",
        "payment_status",
        "created_at",
    )
    readonly_fields = (
        "invoice_no",
        "customer",
        "delegate",
        "created_by",
        "subtotal_amount",
        "discount_amount",
        "tax_amount",
        "net_amount",
        "paid_amount",
        "payment_method",
        "payment_status",
        "status",
        "idempotency_key",
        "created_at",
        "completed_at",
    )
    search_fields = ("invoice_no", "customer__name", "idempotency_key")
    list_filter = ("status", "payment_status", "payment_method", "created_at")
    inlines = [SaleItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ======================================================
# RETURN AUDIT ADMIN
# ======================================================


class SaleReturnItemInline(admin.TabularInline):
    model = SaleReturnItem
    extra = 0
    can_delete = False
    fields = ("sale_item", "quantity", "unit_price", "total")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(SaleReturn)
class SaleReturnAdmin(admin.ModelAdmin):
    list_display = (
        "sale",
        "status",
        "total_amount",
        "refund_amount",
        "created_by",
        "created_at",
    )
    list_filter = ("status", "created_at")
    search_fields = ("sale__invoice_no",)
    inlines = [SaleReturnItemInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
