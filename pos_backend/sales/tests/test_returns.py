# sales/tests/test_returns.py

import uuid
from decimal import Decimal

from django.test import TestCase

from caching.service import reset_cache_service
from common.exceptions import ConsistencyError, ReturnRangeError, ValidationError
from customers.models import Customer
from debts.models import Debt
from delegates.models import Commission, Delegate
from products.models import Product, StockMovement
from products.services import stock_ledger
from sales.models import Sale, SaleReturn
from sales.services.commands import CatalogLine, ManualLine, ReturnLine, SaleCommand
from sales.services.return_service import process_return
from sales.services.sale_service import create_sale


class ReturnTests(TestCase):
    """
    Return processor tests.

    GUARANTEES:
    - returned_quantity never exceeds quantity
    - net and paid are recomputed; debt follows
    - catalog units go back to stock through the ledger
    - every attempt is audited, rejected ones included
    """

    def setUp(self):
        reset_cache_service()
        self.customer = Customer.objects.create(name="Bola Books")
        self.pen = Product.objects.create(name="Pen", sku="PEN-1", unit_price=Decimal("10.00"))
        self.ink = Product.objects.create(name="Ink", sku="INK-1", unit_price=Decimal("20.00"))
        stock_ledger.append(self.pen.id, "in", 10, "opening", "init")
        stock_ledger.append(self.ink.id, "in", 10, "opening", "init")

    def make_sale(self, lines=None, **kwargs):
        kwargs.setdefault("idempotency_key", uuid.uuid4().hex)
        kwargs.setdefault("customer_id", self.customer.id)
        return create_sale(
            SaleCommand(
                lines=lines
                if lines is not None
                else [CatalogLine(self.pen.id, 3), CatalogLine(self.ink.id, 1)],
                **kwargs,
            )
        )

    def stock(self, product):
        product.refresh_from_db()
        return product.current_stock

    def pen_line(self, sale):
        return sale.items.get(product=self.pen)

    # =====================================================
    # PARTIAL / FULL
    # =====================================================

    def test_partial_return_recomputes_totals_and_debt(self):
        sale = self.make_sale(paid_amount=Decimal("20"))

        sale = process_return(sale.id, [ReturnLine(self.pen_line(sale).id, 1)])

        self.assertEqual(sale.net_amount, Decimal("40.00"))
        self.assertEqual(sale.paid_amount, Decimal("20.00"))
        self.assertEqual(sale.status, Sale.STATUS_PARTIALLY_RETURNED)
        self.assertEqual(sale.payment_status, Sale.PAYMENT_PARTIAL)
        self.assertEqual(Debt.objects.get(sale=sale).amount, Decimal("20.00"))
        self.assertEqual(self.stock(self.pen), 8)

        item = self.pen_line(sale)
        self.assertEqual(item.returned_quantity, 1)
        self.assertEqual(item.total, Decimal("20.00"))

        sale_return = SaleReturn.objects.get(sale=sale)
        self.assertEqual(sale_return.status, SaleReturn.STATUS_COMPLETED)
        self.assertEqual(sale_return.total_amount, Decimal("10.00"))
        self.assertEqual(sale_return.refund_amount, Decimal("0.00"))
        self.assertEqual(sale_return.items.get().quantity, 1)

    def test_return_refunds_paid_money_above_new_net(self):
        sale = self.make_sale(paid_amount=Decimal("50"))

        sale = process_return(sale.id, [ReturnLine(self.pen_line(sale).id, 2)])

        self.assertEqual(sale.net_amount, Decimal("30.00"))
        self.assertEqual(sale.paid_amount, Decimal("30.00"))
        self.assertEqual(sale.payment_status, Sale.PAYMENT_PAID)
        self.assertFalse(Debt.objects.filter(sale=sale).exists())
        self.assertEqual(SaleReturn.objects.get(sale=sale).refund_amount, Decimal("20.00"))

    def test_full_return_clears_sale(self):
        sale = self.make_sale(
            paid_amount=Decimal("30"),
            discount_amount=Decimal("5"),
            tax_amount=Decimal("2"),
        )
        lines = [ReturnLine(item.id, item.quantity) for item in sale.items.all()]

        sale = process_return(sale.id, lines, "Customer changed mind")

        self.assertEqual(sale.status, Sale.STATUS_RETURNED)
        self.assertEqual(sale.net_amount, Decimal("0.00"))
        self.assertEqual(sale.discount_amount, Decimal("0.00"))
        self.assertEqual(sale.tax_amount, Decimal("0.00"))
        self.assertEqual(sale.paid_amount, Decimal("0.00"))
        self.assertFalse(Debt.objects.filter(sale=sale).exists())
        self.assertEqual(self.stock(self.pen), 10)
        self.assertEqual(self.stock(self.ink), 10)

        sale_return = SaleReturn.objects.get(sale=sale)
        self.assertEqual(sale_return.reason, "Customer changed mind")
        self.assertEqual(sale_return.refund_amount, Decimal("30.00"))

    def test_discount_is_clamped_when_lines_remain(self):
        sale = self.make_sale(
            lines=[CatalogLine(self.pen.id, 2), ManualLine("Sticker", 1, Decimal("5"))],
            discount_amount=Decimal("20"),
        )
        self.assertEqual(sale.net_amount, Decimal("5.00"))

        sale = process_return(sale.id, [ReturnLine(self.pen_line(sale).id, 2)])

        self.assertEqual(sale.status, Sale.STATUS_PARTIALLY_RETURNED)
        self.assertEqual(sale.subtotal_amount, Decimal("5.00"))
        self.assertEqual(sale.discount_amount, Decimal("5.00"))
        self.assertEqual(sale.net_amount, Decimal("0.00"))

    def test_successive_returns(self):
        sale = self.make_sale()
        item_id = self.pen_line(sale).id

        process_return(sale.id, [ReturnLine(item_id, 1)])
        sale = process_return(sale.id, [ReturnLine(item_id, 2)])

        self.assertEqual(sale.status, Sale.STATUS_PARTIALLY_RETURNED)
        self.assertEqual(self.pen_line(sale).remaining_quantity, 0)
        self.assertEqual(SaleReturn.objects.filter(sale=sale).count(), 2)

    def test_manual_line_return_moves_no_stock(self):
        sale = self.make_sale(lines=[ManualLine("Binding", 2, Decimal("7.50"))])
        movements = StockMovement.objects.count()

        sale = process_return(sale.id, [ReturnLine(sale.items.get().id, 2)])

        self.assertEqual(sale.status, Sale.STATUS_RETURNED)
        self.assertEqual(StockMovement.objects.count(), movements)

    def test_return_movement_references_the_sale(self):
        sale = self.make_sale()

        process_return(sale.id, [ReturnLine(self.pen_line(sale).id, 1)])

        movement = StockMovement.objects.get(reference_type="sale_return")
        self.assertEqual(movement.direction, "in")
        self.assertEqual(movement.reference_id, str(sale.id))

    def test_commission_is_kept_after_return(self):
        delegate = Delegate.objects.create(name="Rep", commission_rate=Decimal("10"))
        sale = self.make_sale(delegate_id=delegate.id)

        process_return(sale.id, [ReturnLine(self.pen_line(sale).id, 3)])

        self.assertEqual(Commission.objects.get(sale=sale).amount, Decimal("5.00"))

    # =====================================================
    # REJECTIONS
    # =====================================================

    def test_over_return_rejected_and_audited(self):
        sale = self.make_sale()

        with self.assertRaises(ReturnRangeError) as ctx:
            process_return(sale.id, [ReturnLine(self.pen_line(sale).id, 4)])

        self.assertEqual(ctx.exception.context["remaining"], 3)
        self.assertEqual(self.stock(self.pen), 7)
        self.assertEqual(self.pen_line(sale).returned_quantity, 0)

        rejected = SaleReturn.objects.get(sale=sale)
        self.assertEqual(rejected.status, SaleReturn.STATUS_REJECTED)
        self.assertIn("only 3 remaining", rejected.error_message)

    def test_duplicate_lines_are_aggregated(self):
        sale = self.make_sale()
        item_id = self.pen_line(sale).id

        with self.assertRaises(ReturnRangeError):
            process_return(sale.id, [ReturnLine(item_id, 2), ReturnLine(item_id, 2)])

    def test_cumulative_ceiling(self):
        sale = self.make_sale()
        item_id = self.pen_line(sale).id
        process_return(sale.id, [ReturnLine(item_id, 2)])

        with self.assertRaises(ReturnRangeError):
            process_return(sale.id, [ReturnLine(item_id, 2)])

        self.assertEqual(self.pen_line(sale).returned_quantity, 2)
        self.assertEqual(self.stock(self.pen), 9)

    def test_rejected_return_leaves_other_lines_untouched(self):
        sale = self.make_sale()

        with self.assertRaises(ReturnRangeError):
            process_return(
                sale.id,
                [
                    ReturnLine(self.pen_line(sale).id, 1),
                    ReturnLine(sale.items.get(product=self.ink).id, 2),
                ],
            )

        sale.refresh_from_db()
        self.assertEqual(sale.net_amount, Decimal("50.00"))
        self.assertEqual(self.stock(self.pen), 7)

    def test_invalid_return_requests(self):
        sale = self.make_sale()
        other = self.make_sale(lines=[CatalogLine(self.ink.id, 2)])

        invalid = [
            [],
            [ReturnLine(self.pen_line(sale).id, 0)],
            [ReturnLine(other.items.get().id, 1)],
        ]
        for lines in invalid:
            with self.subTest(lines=lines):
                with self.assertRaises(ValidationError):
                    process_return(sale.id, lines)

        self.assertEqual(
            SaleReturn.objects.filter(sale=sale, status=SaleReturn.STATUS_REJECTED).count(),
            3,
        )

    def test_pending_and_returned_sales_reject_returns(self):
        held = self.make_sale(hold=True)
        with self.assertRaises(ConsistencyError):
            process_return(held.id, [ReturnLine(held.items.first().id, 1)])

        sale = self.make_sale(lines=[CatalogLine(self.ink.id, 1)])
        item_id = sale.items.get().id
        process_return(sale.id, [ReturnLine(item_id, 1)])
        with self.assertRaises(ConsistencyError):
            process_return(sale.id, [ReturnLine(item_id, 1)])
