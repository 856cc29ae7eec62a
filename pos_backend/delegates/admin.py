# delegates/admin.py

from django.contrib import admin

from delegates.models import Commission, Delegate


@admin.register(Delegate)
class DelegateAdmin(admin.ModelAdmin):
    list_display = ("name", "commission_type", "commission_rate", "commission_amount", "is_active")
    list_filter = ("commission_type", "is_active")
    search_fields = ("name", "phone")


@admin.register(Commission)
class CommissionAdmin(admin.ModelAdmin):
    list_display = ("delegate", "sale", "amount", "commission_type", "commission_rate", "created_at")
    list_filter = ("commission_type",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
