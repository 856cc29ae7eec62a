# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (ledger-safe):

- current_stock is never edited by hand; it is derived from the ledger.
- StockMovement rows are immutable: no add, change or delete from admin.
- Drift is repaired with the "Recompute stock from ledger" action.
"""

from __future__ import annotations

from django.contrib import admin, messages

from products.models import Product, StockMovement
from products.services import stock_ledger


@admin.action(description="Recompute stock from ledger")
def reconcile_selected(modeladmin, request, queryset):
    for product in queryset:
        stock_ledger.project_current_stock(product.id)
    messages.success(request, f"Reconciled {queryset.count()} product(s).")


class StockMovementInline(admin.TabularInline):
    model = StockMovement
    extra = 0
    can_delete = False
    fields = ("direction", "quantity", "reference_type", "reference_id", "note", "created_at")
    readonly_fields = fields
    ordering = ("-created_at",)

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "barcode", "unit_price", "current_stock", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "sku", "barcode")
    readonly_fields = ("current_stock", "created_at", "updated_at")
    inlines = [StockMovementInline]
    actions = [reconcile_selected]


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("product", "direction", "quantity", "reference_type", "reference_id", "created_at")
    list_filter = ("direction", "reference_type")
    search_fields = ("product__name", "product__sku", "reference_id")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
