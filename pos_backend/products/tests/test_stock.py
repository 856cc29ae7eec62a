# products/tests/test_stock.py

from decimal import Decimal
from io import StringIO

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.management import call_command
from django.test import TestCase, override_settings

from common.exceptions import InsufficientStockError, NotFoundError, ValidationError
from products.models import Product, StockMovement
from products.services import stock_ledger
from caching.service import reset_cache_service


class StockLedgerTests(TestCase):
    """
    Stock ledger tests.

    GUARANTEES:
    - current_stock == sum(IN) - sum(OUT) after every append
    - Movements are immutable
    - Projection rebuilds the materialized value from the ledger
    """

    def setUp(self):
        reset_cache_service()
        self.product = Product.objects.create(
            name="Notebook A5",
            sku="NB-A5",
            unit_price=Decimal("3.50"),
        )

    def _stock(self):
        self.product.refresh_from_db()
        return self.product.current_stock

    # =====================================================
    # APPEND
    # =====================================================
    def test_append_in_and_out_updates_materialized_stock(self):
        stock_ledger.append(self.product.id, "in", 10, "opening", "init")
        stock_ledger.append(self.product.id, "out", 3, "sale", "sale-1")

        self.assertEqual(self._stock(), 7)
        self.assertEqual(stock_ledger.get_current_stock(self.product.id), 7)
        self.assertEqual(StockMovement.objects.filter(product=self.product).count(), 2)

    def test_append_rejects_non_positive_quantity(self):
        with self.assertRaises(ValidationError):
            stock_ledger.append(self.product.id, "in", 0, "opening", "init")
        with self.assertRaises(ValidationError):
            stock_ledger.append(self.product.id, "in", -2, "opening", "init")

        self.assertEqual(StockMovement.objects.count(), 0)

    def test_append_rejects_unknown_direction(self):
        with self.assertRaises(ValidationError):
            stock_ledger.append(self.product.id, "sideways", 1, "adjustment", "x")

    def test_direction_must_match_reference(self):
        """A sale can only take stock out."""
        with self.assertRaises(ValidationError):
            stock_ledger.append(self.product.id, "in", 1, "sale", "sale-1")

        self.assertEqual(self._stock(), 0)

    def test_sale_movement_requires_reference_id(self):
        with self.assertRaises(ValidationError):
            stock_ledger.append(self.product.id, "out", 1, "sale", "")

    def test_append_unknown_product(self):
        with self.assertRaises(NotFoundError):
            stock_ledger.append("00000000-0000-0000-0000-000000000000", "in", 1, "opening", "x")
        with self.assertRaises(NotFoundError):
            stock_ledger.append("not-a-uuid", "in", 1, "opening", "x")

    def test_movements_are_immutable(self):
        movement = stock_ledger.append(self.product.id, "in", 5, "opening", "init")

        movement.quantity = 50
        with self.assertRaises(DjangoValidationError):
            movement.save()

        with self.assertRaises(DjangoValidationError):
            movement.delete()

    def test_receive_stock_only_accepts_intake_references(self):
        stock_ledger.receive_stock(self.product.id, 12, reference_id="PO-1")
        self.assertEqual(self._stock(), 12)

        with self.assertRaises(ValidationError):
            stock_ledger.receive_stock(self.product.id, 1, reference_type="sale", reference_id="s")

    def test_get_current_stock_unknown_product(self):
        with self.assertRaises(NotFoundError):
            stock_ledger.get_current_stock("00000000-0000-0000-0000-000000000000")

    # =====================================================
    # AVAILABILITY
    # =====================================================
    def test_ensure_available_passes_within_stock(self):
        stock_ledger.append(self.product.id, "in", 4, "opening", "init")
        stock_ledger.ensure_available({self.product.id: 4})

    def test_ensure_available_raises_when_short(self):
        stock_ledger.append(self.product.id, "in", 4, "opening", "init")

        with self.assertRaises(InsufficientStockError) as ctx:
            stock_ledger.ensure_available({self.product.id: 5})

        self.assertEqual(ctx.exception.context["available"], 4)
        self.assertEqual(ctx.exception.context["requested"], 5)

    @override_settings(INVENTORY_ALLOW_NEGATIVE_STOCK=True)
    def test_negative_stock_allowed_by_setting(self):
        stock_ledger.ensure_available({self.product.id: 5})
        stock_ledger.append(self.product.id, "out", 5, "sale", "sale-1")

        self.assertEqual(self._stock(), -5)

    # =====================================================
    # PROJECTION / RECONCILIATION
    # =====================================================
    def test_projection_equals_signed_sum(self):
        stock_ledger.append(self.product.id, "in", 20, "opening", "init")
        stock_ledger.append(self.product.id, "out", 6, "sale", "s1")
        stock_ledger.append(self.product.id, "in", 2, "sale_return", "s1")
        stock_ledger.append(self.product.id, "out", 1, "adjustment", "count")

        Product.objects.filter(pk=self.product.pk).update(current_stock=999)

        self.assertEqual(stock_ledger.project_current_stock(self.product.id), 15)
        self.assertEqual(self._stock(), 15)

    def test_find_drift_and_repair(self):
        stock_ledger.append(self.product.id, "in", 8, "opening", "init")
        Product.objects.filter(pk=self.product.pk).update(current_stock=3)

        drift = stock_ledger.find_drift()
        self.assertEqual(len(drift), 1)
        self.assertEqual(drift[0].delta, 5)

        stock_ledger.reconcile_all(repair=True)
        self.assertEqual(self._stock(), 8)
        self.assertEqual(stock_ledger.find_drift(), [])

    def test_reconcile_command_dry_run_changes_nothing(self):
        stock_ledger.append(self.product.id, "in", 8, "opening", "init")
        Product.objects.filter(pk=self.product.pk).update(current_stock=1)

        out = StringIO()
        call_command("reconcile_stock", "--dry-run", stdout=out)

        self.assertIn("stored=1 ledger=8", out.getvalue())
        self.assertEqual(self._stock(), 1)

    def test_reconcile_command_repairs(self):
        stock_ledger.append(self.product.id, "in", 8, "opening", "init")
        Product.objects.filter(pk=self.product.pk).update(current_stock=1)

        out = StringIO()
        call_command("reconcile_stock", stdout=out)

        self.assertIn("Repaired 1 product(s).", out.getvalue())
        self.assertEqual(self._stock(), 8)
