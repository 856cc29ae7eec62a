# debts/tests/test_debt_sync.py

from decimal import Decimal

from django.test import TestCase

from caching.service import reset_cache_service
from customers.models import Customer
from debts.models import Debt
from debts.services.debt_sync import outstanding_for_customer, sync_debt_for_sale
from sales.models import Sale


class DebtSyncTests(TestCase):
    """
    One Debt row per sale with money owed; none otherwise.
    """

    def setUp(self):
        reset_cache_service()
        self.customer = Customer.objects.create(name="Femi Traders")

    def make_sale(self, net, paid, customer=None):
        return Sale.objects.create(
            customer=customer,
            subtotal_amount=Decimal(net),
            net_amount=Decimal(net),
            paid_amount=Decimal(paid),
        )

    def test_unpaid_sale_gets_a_debt(self):
        sale = self.make_sale("40.00", "0.00", self.customer)

        debt = sync_debt_for_sale(sale)

        self.assertEqual(debt.amount, Decimal("40.00"))
        self.assertEqual(debt.status, Debt.STATUS_UNPAID)
        self.assertEqual(debt.customer, self.customer)

    def test_sync_updates_the_same_row(self):
        sale = self.make_sale("40.00", "0.00", self.customer)
        sync_debt_for_sale(sale)

        sale.paid_amount = Decimal("15.00")
        sale.save()
        debt = sync_debt_for_sale(sale)

        self.assertEqual(Debt.objects.filter(sale=sale).count(), 1)
        self.assertEqual(debt.amount, Decimal("25.00"))
        self.assertEqual(debt.status, Debt.STATUS_PARTIAL)

    def test_settled_sale_drops_its_debt(self):
        sale = self.make_sale("40.00", "10.00", self.customer)
        sync_debt_for_sale(sale)

        sale.paid_amount = Decimal("40.00")
        sale.save()

        self.assertIsNone(sync_debt_for_sale(sale))
        self.assertFalse(Debt.objects.exists())

    def test_anonymous_sale_debt(self):
        sale = self.make_sale("12.00", "2.00")

        debt = sync_debt_for_sale(sale)

        self.assertIsNone(debt.customer)
        self.assertEqual(debt.amount, Decimal("10.00"))

    def test_outstanding_for_customer(self):
        for net, paid in (("40.00", "0.00"), ("30.00", "10.00"), ("5.00", "5.00")):
            sync_debt_for_sale(self.make_sale(net, paid, self.customer))
        sync_debt_for_sale(self.make_sale("99.00", "0.00"))

        self.assertEqual(outstanding_for_customer(self.customer.id), Decimal("60.00"))
