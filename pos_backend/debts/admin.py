# debts/admin.py

from django.contrib import admin

from debts.models import Debt


@admin.register(Debt)
class DebtAdmin(admin.ModelAdmin):
    """
    Debts are derived from sales; admin is read-only.
    """

    list_display = ("sale", "customer", "amount", "status", "due_date", "updated_at")
    list_filter = ("status",)
    search_fields = ("sale__invoice_no", "customer__name")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
