# products/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Read-only catalog endpoints used by the POS screen
- Stock inspection straight from the ledger
- Staff-only reconciliation of the materialized stock value

Catalog CRUD lives in the back office, not here.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response

from products.models import Product
from products.serializers import ProductSerializer, StockMovementSerializer
from products.services import catalog, stock_ledger

RECENT_MOVEMENTS = 20


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["is_active", "sku", "barcode"]

    def get_queryset(self):
        return Product.objects.all().order_by("name")

    @extend_schema(
        parameters=[OpenApiParameter("barcode", str, OpenApiParameter.QUERY, required=True)],
    )
    @action(detail=False, methods=["get"], url_path="lookup")
    def lookup(self, request):
        """
        GET /api/products/lookup/?barcode=<code>
        """
        return Response(catalog.lookup_by_barcode(request.query_params.get("barcode")))

    @action(detail=True, methods=["get"], url_path="stock")
    def stock(self, request, pk=None):
        """
        GET /api/products/<id>/stock/

        Materialized stock plus the most recent ledger entries.
        """
        product = self.get_object()
        movements = product.stock_movements.order_by("-created_at")[:RECENT_MOVEMENTS]

        return Response(
            {
                "product_id": str(product.id),
                "current_stock": stock_ledger.get_current_stock(product.id),
                "movements": StockMovementSerializer(movements, many=True).data,
            }
        )

    @action(
        detail=True,
        methods=["post"],
        url_path="reconcile",
        permission_classes=[IsAuthenticated, IsAdminUser],
    )
    def reconcile(self, request, pk=None):
        """
        POST /api/products/<id>/reconcile/

        Recompute current_stock from the ledger.
        """
        product = self.get_object()
        before = int(product.current_stock)
        after = stock_ledger.project_current_stock(product.id)

        return Response(
            {
                "product_id": str(product.id),
                "previous_stock": before,
                "current_stock": after,
                "repaired": before != after,
            }
        )
