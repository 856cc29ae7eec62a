# delegates/apps.py

from django.apps import AppConfig


class DelegatesConfig(AppConfig):
    """
    Sales representatives and the commissions earned on their sales.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "delegates"
