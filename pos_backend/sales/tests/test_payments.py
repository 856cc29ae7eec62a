# sales/tests/test_payments.py

import uuid
from decimal import Decimal

from django.test import TestCase

from caching.service import reset_cache_service
from common.exceptions import ConsistencyError, ValidationError
from customers.models import Customer
from debts.models import Debt
from sales.models import Sale
from sales.services.commands import ManualLine, SaleCommand
from sales.services.payment_service import record_payment
from sales.services.sale_service import create_sale


class PaymentTests(TestCase):
    def setUp(self):
        reset_cache_service()
        self.customer = Customer.objects.create(name="Chidi Prints")

    def make_sale(self, paid="20", quantity=5, **kwargs):
        kwargs.setdefault("customer_id", self.customer.id)
        return create_sale(
            SaleCommand(
                lines=[ManualLine("Printing", quantity, Decimal("10"))],
                paid_amount=Decimal(paid),
                idempotency_key=uuid.uuid4().hex,
                **kwargs,
            )
        )

    def test_payment_reduces_debt(self):
        sale = self.make_sale()

        sale = record_payment(sale.id, Decimal("10"))

        self.assertEqual(sale.paid_amount, Decimal("30.00"))
        self.assertEqual(sale.payment_status, Sale.PAYMENT_PARTIAL)
        self.assertEqual(Debt.objects.get(sale=sale).amount, Decimal("20.00"))

    def test_settling_payment_removes_debt(self):
        sale = self.make_sale()

        sale = record_payment(sale.id, "30")

        self.assertEqual(sale.payment_status, Sale.PAYMENT_PAID)
        self.assertFalse(Debt.objects.filter(sale=sale).exists())
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("0.00"))

    def test_overpayment_is_credited_to_customer(self):
        sale = self.make_sale()

        sale = record_payment(sale.id, Decimal("45"))

        self.assertEqual(sale.paid_amount, Decimal("50.00"))
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("15.00"))

    def test_anonymous_overpayment_is_change(self):
        sale = self.make_sale(customer_id=None)

        sale = record_payment(sale.id, Decimal("45"))

        self.assertEqual(sale.paid_amount, Decimal("50.00"))
        self.assertEqual(
            Customer.objects.get(pk=self.customer.pk).current_balance, Decimal("0.00")
        )

    def test_rejected_payments(self):
        sale = self.make_sale(paid="50")

        with self.assertRaises(ValidationError):
            record_payment(sale.id, Decimal("0"))
        with self.assertRaises(ConsistencyError):
            record_payment(sale.id, Decimal("5"))

        held = self.make_sale(paid="0", quantity=2, hold=True)
        with self.assertRaises(ConsistencyError):
            record_payment(held.id, Decimal("5"))
