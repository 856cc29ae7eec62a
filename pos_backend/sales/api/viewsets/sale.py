# sales/api/viewsets/sale.py

"""
======================================================
PATH: sales/api/viewsets/sale.py
======================================================
SALE VIEWSET (STAFF)

Purpose:
- Create sales (POS checkout) through the sale engine.
- List + retrieve sales (cached read side).
- Returns, payments, completion and cancellation of held sales.

Security:
- Requires IsAuthenticated (JWT).

Errors:
- Engine errors are rendered by common.api.engine_exception_handler
  as {"error": {"code", "message"}}.
- Malformed input is rendered the same way with code "validation_error".
======================================================
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.api import error_response
from sales.models import Sale
from sales.serializers import (
    PaymentInputSerializer,
    ReturnInputSerializer,
    SaleCreateSerializer,
    SaleSerializer,
)
from sales.services import queries
from sales.services.payment_service import record_payment
from sales.services.return_service import process_return
from sales.services.sale_service import cancel_sale, complete_sale, create_sale


def _first_error(errors) -> str:
    """
    Flatten DRF serializer errors into one readable message.
    """
    if isinstance(errors, dict):
        for field, value in errors.items():
            message = _first_error(value)
            if field == "non_field_errors":
                return message
            return f"{field}: {message}"
    if isinstance(errors, (list, tuple)) and errors:
        return _first_error(errors[0])
    return str(errors)


def _invalid(serializer):
    return error_response(
        code="validation_error",
        message=_first_error(serializer.errors),
        http_status=status.HTTP_400_BAD_REQUEST,
    )


class SaleViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = SaleSerializer
    permission_classes = [IsAuthenticated]
    filterset_fields = ["customer", "status", "payment_status", "delegate"]

    # ======================================================
    # QUERYSET
    # ======================================================

    def get_queryset(self):
        return (
            Sale.objects.all()
            .select_related("customer")
            .prefetch_related("items", "items__product", "returns", "returns__items")
            .order_by("-created_at")
        )

    # ======================================================
    # READS (cached)
    # ======================================================

    def list(self, request, *args, **kwargs):
        params = request.query_params.dict()
        data = queries.sale_list(
            params,
            lambda: super(SaleViewSet, self).list(request, *args, **kwargs).data,
        )
        return Response(data)

    def retrieve(self, request, *args, **kwargs):
        return Response(queries.sale_detail(kwargs["pk"]))

    def _detail_response(self, sale, http_status=status.HTTP_200_OK):
        sale = self.get_queryset().get(pk=sale.pk)
        return Response(SaleSerializer(sale).data, status=http_status)

    # ======================================================
    # CREATE
    # POST /api/sales/
    # ======================================================

    @extend_schema(request=SaleCreateSerializer, responses={201: SaleSerializer})
    def create(self, request, *args, **kwargs):
        serializer = SaleCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer)

        sale = create_sale(serializer.to_command(), user=request.user)
        return self._detail_response(sale, status.HTTP_201_CREATED)

    # ======================================================
    # RETURNS
    # POST /api/sales/:id/returns/
    # ======================================================

    @extend_schema(request=ReturnInputSerializer, responses={200: SaleSerializer})
    @action(detail=True, methods=["post"], url_path="returns")
    def returns(self, request, pk=None):
        serializer = ReturnInputSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer)

        sale = process_return(
            pk,
            serializer.to_lines(),
            serializer.validated_data["reason"],
            user=request.user,
        )
        return self._detail_response(sale)

    # ======================================================
    # PAYMENTS
    # POST /api/sales/:id/payments/
    # ======================================================

    @extend_schema(request=PaymentInputSerializer, responses={200: SaleSerializer})
    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        serializer = PaymentInputSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer)

        sale = record_payment(pk, serializer.validated_data["amount"])
        return self._detail_response(sale)

    # ======================================================
    # HELD SALES
    # POST /api/sales/:id/complete/
    # POST /api/sales/:id/cancel/
    # ======================================================

    @extend_schema(request=None, responses={200: SaleSerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        return self._detail_response(complete_sale(pk))

    @extend_schema(request=None, responses={200: SaleSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        return self._detail_response(cancel_sale(pk))
