# customers/admin.py

from django.contrib import admin

from customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "current_balance", "created_at")
    search_fields = ("name", "phone")
    readonly_fields = ("current_balance", "created_at", "updated_at")
