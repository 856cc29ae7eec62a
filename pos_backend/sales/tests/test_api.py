# sales/tests/test_api.py

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from caching.service import reset_cache_service
from customers.models import Customer
from products.models import Product
from products.services import stock_ledger
from sales.models import Sale, SaleReturn

User = get_user_model()


class SaleApiTests(TestCase):
    """
    Sales endpoint tests.

    GUARANTEES:
    - Staff only (JWT / session)
    - Engine errors come back as {"error": {"code", "message"}}
    """

    def setUp(self):
        reset_cache_service()
        self.client = APIClient()
        self.cashier = User.objects.create_user(username="cashier", password="password123")
        self.customer = Customer.objects.create(name="Efe Supplies")
        self.product = Product.objects.create(
            name="Stapler", sku="STP-1", unit_price=Decimal("12.00")
        )
        stock_ledger.append(self.product.id, "in", 5, "opening", "init")

    def payload(self, **overrides):
        data = {
            "customer_id": str(self.customer.id),
            "items": [{"type": "catalog", "product_id": str(self.product.id), "quantity": 2}],
            "paid_amount": "10.00",
            "idempotency_key": "pos-1-0001",
        }
        data.update(overrides)
        return data

    def create(self, **overrides):
        return self.client.post("/api/sales/", self.payload(**overrides), format="json")

    def test_anonymous_is_rejected(self):
        res = self.create()
        self.assertEqual(res.status_code, 401)

        res = self.client.get("/api/sales/")
        self.assertEqual(res.status_code, 401)

    def test_create_sale(self):
        self.client.force_authenticate(self.cashier)

        res = self.create()

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["net_amount"], "24.00")
        self.assertEqual(res.data["payment_status"], Sale.PAYMENT_PARTIAL)
        self.assertEqual(res.data["remaining_amount"], "14.00")
        self.assertEqual(len(res.data["items"]), 1)
        self.assertEqual(Sale.objects.get().created_by, self.cashier)

    def test_create_with_manual_line(self):
        self.client.force_authenticate(self.cashier)

        res = self.create(
            items=[{"type": "manual", "description": "Repair", "quantity": 1, "unit_price": "8.00"}]
        )

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["items"][0]["name"], "Repair")

    def test_malformed_payload(self):
        self.client.force_authenticate(self.cashier)

        res = self.create(items=[{"type": "manual", "quantity": 1}])

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "validation_error")
        self.assertEqual(Sale.objects.count(), 0)

    def test_engine_errors_are_normalized(self):
        self.client.force_authenticate(self.cashier)

        res = self.create(items=[{"product_id": str(self.product.id), "quantity": 9}])
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "insufficient_stock")

        self.assertEqual(self.create().status_code, 201)
        res = self.create()
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "duplicate_sale")

        res = self.client.get("/api/sales/00000000-0000-0000-0000-000000000000/")
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "not_found")

    def test_list_and_retrieve(self):
        self.client.force_authenticate(self.cashier)
        sale_id = self.create().data["id"]

        res = self.client.get("/api/sales/")
        self.assertEqual(res.status_code, 200)
        rows = res.data["results"] if isinstance(res.data, dict) else res.data
        self.assertEqual([row["id"] for row in rows], [sale_id])

        res = self.client.get(f"/api/sales/{sale_id}/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["customer_name"], "Efe Supplies")

    def test_return_and_payment(self):
        self.client.force_authenticate(self.cashier)
        sale = self.create().data
        item_id = sale["items"][0]["id"]

        res = self.client.post(
            f"/api/sales/{sale['id']}/returns/",
            {"items": [{"sale_item_id": item_id, "quantity": 1}], "reason": "Damaged"},
            format="json",
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], Sale.STATUS_PARTIALLY_RETURNED)
        self.assertEqual(res.data["net_amount"], "12.00")
        self.assertEqual(len(res.data["returns"]), 1)

        res = self.client.post(
            f"/api/sales/{sale['id']}/returns/",
            {"items": [{"sale_item_id": item_id, "quantity": 5}]},
            format="json",
        )
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "return_out_of_range")
        self.assertEqual(SaleReturn.objects.filter(status=SaleReturn.STATUS_REJECTED).count(), 1)

        res = self.client.post(
            f"/api/sales/{sale['id']}/payments/", {"amount": "2.00"}, format="json"
        )
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["payment_status"], Sale.PAYMENT_PAID)

    def test_hold_complete_cancel(self):
        self.client.force_authenticate(self.cashier)

        held = self.create(hold=True).data
        self.assertEqual(held["status"], Sale.STATUS_PENDING)

        res = self.client.post(f"/api/sales/{held['id']}/complete/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["status"], Sale.STATUS_COMPLETED)

        res = self.client.post(f"/api/sales/{held['id']}/cancel/")
        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "invalid_transition")
