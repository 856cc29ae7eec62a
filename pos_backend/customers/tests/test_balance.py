# customers/tests/test_balance.py

from decimal import Decimal

from django.test import TestCase

from caching.service import get_cache_service, reset_cache_service
from common.exceptions import NotFoundError, ValidationError
from customers.models import Customer
from customers.services.balance import credit_balance, get_balance


class CustomerBalanceTests(TestCase):
    def setUp(self):
        reset_cache_service()
        self.customer = Customer.objects.create(name="Dana Okafor", phone="0800")

    def test_credit_accumulates(self):
        self.assertEqual(credit_balance(self.customer.id, "5.00"), Decimal("5.00"))
        self.assertEqual(credit_balance(self.customer.id, Decimal("2.50")), Decimal("7.50"))

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.current_balance, Decimal("7.50"))

    def test_credit_must_be_positive(self):
        with self.assertRaises(ValidationError):
            credit_balance(self.customer.id, "0")
        with self.assertRaises(ValidationError):
            credit_balance(self.customer.id, "-1")

    def test_unknown_customer(self):
        with self.assertRaises(NotFoundError):
            credit_balance("00000000-0000-0000-0000-000000000000", "1.00")

    def test_cached_balance_reads(self):
        self.assertEqual(get_balance(self.customer.id), Decimal("0.00"))

        credit_balance(self.customer.id, "3.00")
        # Still cached: credit_balance leaves invalidation to the caller.
        self.assertEqual(get_balance(self.customer.id), Decimal("0.00"))

        get_cache_service().invalidate_families(["customers"])
        self.assertEqual(get_balance(self.customer.id), Decimal("3.00"))
