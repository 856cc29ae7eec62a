# products/apps.py

from django.apps import AppConfig


class ProductsConfig(AppConfig):
    """
    Catalog products and the stock movement ledger.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "products"
    verbose_name = "Products & Stock"
