# products/urls.py

"""
PRODUCTS URLS

Mounted under /api/products/:
    GET  /api/products/
    GET  /api/products/lookup/?barcode=
    GET  /api/products/<id>/
    GET  /api/products/<id>/stock/
    POST /api/products/<id>/reconcile/
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from products.views import ProductViewSet

router = SimpleRouter()
router.register(r"", ProductViewSet, basename="products")

urlpatterns = [
    path("", include(router.urls)),
]
