# products/tests/test_permissions.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from caching.service import reset_cache_service
from products.models import Product
from products.services import stock_ledger

User = get_user_model()


class ProductApiTests(TestCase):
    """
    Product endpoint tests.

    GUARANTEES:
    - Anonymous users get nothing
    - Any staff member can read stock
    - Only admins can reconcile
    """

    def setUp(self):
        reset_cache_service()
        self.client = APIClient()
        self.cashier = User.objects.create_user(username="cashier", password="password123")
        self.admin = User.objects.create_user(
            username="manager", password="password123", is_staff=True
        )

        self.product = Product.objects.create(
            name="Glue Stick",
            sku="GLU-1",
            barcode="123456",
            unit_price=Decimal("2.00"),
        )
        stock_ledger.append(self.product.id, "in", 30, "opening", "init")

    def test_anonymous_is_rejected(self):
        res = self.client.get(f"/api/products/{self.product.id}/stock/")
        self.assertEqual(res.status_code, 401)

    def test_stock_endpoint(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.get(f"/api/products/{self.product.id}/stock/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["current_stock"], 30)
        self.assertEqual(len(res.data["movements"]), 1)

    def test_lookup_endpoint(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.get("/api/products/lookup/", {"barcode": "123456"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["sku"], "GLU-1")

        res = self.client.get("/api/products/lookup/", {"barcode": "999"})
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "not_found")

    def test_cashier_cannot_reconcile(self):
        self.client.force_authenticate(self.cashier)
        res = self.client.post(f"/api/products/{self.product.id}/reconcile/")
        self.assertEqual(res.status_code, 403)

    def test_admin_reconcile_repairs_drift(self):
        Product.objects.filter(pk=self.product.pk).update(current_stock=2)

        self.client.force_authenticate(self.admin)
        res = self.client.post(f"/api/products/{self.product.id}/reconcile/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["previous_stock"], 2)
        self.assertEqual(res.data["current_stock"], 30)
        self.assertTrue(res.data["repaired"])
