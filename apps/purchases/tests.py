from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.purchases.models import Purchase

User = get_user_model()


class PurchaseApiTests(APITestCase):
    def setUp(self):
        self.clerk = User.objects.create_user(
            username="clerk@depot.test", email="clerk@depot.test", password="clerk123", name="Clerk", role="employee"
        )
        self.auth_as("clerk@depot.test", "clerk123")

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def test_create_purchase_records_creator_and_audit(self):
        response = self.client.post(
            "/api/v1/purchases/",
            {"item_name": "  Jute sacks ", "quantity": "200", "cost": "3500.00", "purchase_date": "2024-02-10"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["item_name"], "Jute sacks")

        purchase = Purchase.objects.get(id=response.data["id"])
        self.assertEqual(purchase.created_by, self.clerk)
        self.assertEqual(purchase.cost, Decimal("3500.00"))
        self.assertTrue(AuditLog.objects.filter(action="purchases.create", entity_id=str(purchase.id)).exists())

    def test_purchase_date_defaults_to_today(self):
        response = self.client.post(
            "/api/v1/purchases/",
            {"item_name": "Twine", "quantity": "5", "cost": "120"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertIsNotNone(Purchase.objects.get(id=response.data["id"]).purchase_date)

    def test_invalid_quantity_and_cost_rejected(self):
        response = self.client.post(
            "/api/v1/purchases/",
            {"item_name": "Twine", "quantity": "0", "cost": "-1"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("quantity", response.data["fields"])
        self.assertIn("cost", response.data["fields"])
        self.assertFalse(Purchase.objects.exists())

    def test_list_filters_by_item_name_and_orders_newest_first(self):
        Purchase.objects.create(item_name="Jute sacks", quantity=10, cost=100, purchase_date=date(2024, 1, 5))
        Purchase.objects.create(item_name="Plastic sacks", quantity=10, cost=90, purchase_date=date(2024, 1, 9))
        Purchase.objects.create(item_name="Diesel", quantity=40, cost=4000, purchase_date=date(2024, 1, 7))

        response = self.client.get("/api/v1/purchases/", {"q": "SACKS", "generation": "12"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["X-Query-Generation"], "12")
        self.assertEqual([row["item_name"] for row in response.data], ["Plastic sacks", "Jute sacks"])

    def test_purchases_are_append_only(self):
        purchase = Purchase.objects.create(item_name="Diesel", quantity=40, cost=4000)
        self.assertEqual(self.client.delete(f"/api/v1/purchases/{purchase.id}/").status_code, 405)
        response = self.client.patch(f"/api/v1/purchases/{purchase.id}/", {"cost": "1"}, format="json")
        self.assertEqual(response.status_code, 405)

    def test_requires_authentication(self):
        self.client.credentials()
        self.assertEqual(self.client.get("/api/v1/purchases/").status_code, 401)
