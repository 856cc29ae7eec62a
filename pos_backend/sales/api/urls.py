# sales/api/urls.py

"""
SALES API URLS (CANONICAL)

Mounted under /api/sales/:
    GET  /api/sales/
    POST /api/sales/
    GET  /api/sales/<uuid>/
    POST /api/sales/<uuid>/returns/
    POST /api/sales/<uuid>/payments/
    POST /api/sales/<uuid>/complete/
    POST /api/sales/<uuid>/cancel/
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from sales.api.viewsets.sale import SaleViewSet

router = SimpleRouter()
router.register(r"", SaleViewSet, basename="sales")

urlpatterns = [
    path("", include(router.urls)),
]
