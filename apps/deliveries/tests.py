from datetime import date
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.test import SimpleTestCase
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.deliveries.models import Delivery, DeliveryStatus, Payment, Truck
from apps.deliveries.pricing import compute_total_amount, derive_status
from apps.deliveries.services import create_delivery, record_payment

User = get_user_model()


def truck_payload(name="Truck 7"):
    return {
        "truck_name": name,
        "driver_name": "Karim",
        "license_number": "DHA-1234",
        "contact_number": "01700000000",
    }


class PricingTests(SimpleTestCase):
    def test_total_amount_formula(self):
        cases = [
            (0, "0", "0", "0"),
            (10, "500", "100", "0"),
            (3, "12.50", "0", "7.25"),
            (120, "480.75", "350", "1200.10"),
            (1, "0", "0", "99.99"),
        ]
        for sacks, price, fee, extra in cases:
            with self.subTest(sacks=sacks, price=price, fee=fee, extra=extra):
                expected = Decimal(sacks) * Decimal(price) + Decimal(fee) + Decimal(extra)
                total = compute_total_amount(
                    sacks_delivered=sacks,
                    per_sack_price=Decimal(price),
                    driver_fee=Decimal(fee),
                    extra_purchase_cost=Decimal(extra),
                )
                self.assertEqual(total, expected.quantize(Decimal("0.01")))

    def test_status_rule(self):
        cases = [
            ("0", "100", DeliveryStatus.DUE),
            ("0.01", "100", DeliveryStatus.PARTIAL),
            ("99.99", "100", DeliveryStatus.PARTIAL),
            ("100", "100", DeliveryStatus.PAID),
            ("150", "100", DeliveryStatus.PAID),
            ("0", "0", DeliveryStatus.PAID),
        ]
        for paid, total, expected in cases:
            with self.subTest(paid=paid, total=total):
                self.assertEqual(derive_status(Decimal(paid), Decimal(total)), expected)

    def test_sacks_scenario(self):
        total = compute_total_amount(sacks_delivered=10, per_sack_price=500, driver_fee=100, extra_purchase_cost=0)
        self.assertEqual(total, Decimal("5100.00"))
        self.assertEqual(derive_status(0, total), DeliveryStatus.DUE)
        self.assertEqual(derive_status(Decimal("5100"), total), DeliveryStatus.PAID)


class DeliveryApiTests(APITestCase):
    def setUp(self):
        self.owner = User.objects.create_user(
            username="owner@depot.test", email="owner@depot.test", password="owner123", role="owner"
        )
        self.employee = User.objects.create_user(
            username="clerk@depot.test", email="clerk@depot.test", password="clerk123", role="employee"
        )

    def auth_as(self, username, password):
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def make_delivery(self, *, receiver="Rahim Traders", delivery_date=None, sacks=10, price="500", paid="0"):
        return create_delivery(
            actor=self.owner,
            truck=truck_payload(),
            receiver_name=receiver,
            sacks_delivered=sacks,
            per_sack_price=Decimal(price),
            amount_paid=Decimal(paid),
            delivery_date=delivery_date or date(2024, 1, 15),
        )

    def delivery_payload(self, **overrides):
        payload = {
            "truck": truck_payload(),
            "receiver_name": "Rahim Traders",
            "receiver_phone": "01800000000",
            "receiver_address": "12 Mill Road",
            "sacks_delivered": 10,
            "per_sack_price": "500.00",
            "driver_fee": "100.00",
            "extra_purchase_cost": "0.00",
            "amount_paid": "0.00",
            "delivery_date": "2024-01-15",
        }
        payload.update(overrides)
        return payload

    def test_create_delivery_derives_total_status_and_invoice(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.post("/api/v1/deliveries/", self.delivery_payload(), format="json")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(Decimal(str(response.data["total_amount"])), Decimal("5100.00"))
        self.assertEqual(response.data["status"], "due")
        self.assertEqual(response.data["truck"]["driver_name"], "Karim")

        invoice = response.data["invoice"]
        self.assertEqual([line["description"] for line in invoice["lines"]], ["Sacks delivered", "Driver fee"])
        self.assertEqual(invoice["subtotal"], Decimal("5100.00"))
        self.assertEqual(invoice["amount_due"], Decimal("5100.00"))

        delivery = Delivery.objects.get(id=response.data["id"])
        self.assertEqual(delivery.created_by, self.employee)
        self.assertEqual(Truck.objects.count(), 1)
        self.assertFalse(Payment.objects.exists())
        self.assertTrue(AuditLog.objects.filter(action="deliveries.create", entity_id=str(delivery.id)).exists())

    def test_client_cannot_set_total_or_status(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.post(
            "/api/v1/deliveries/",
            self.delivery_payload(total_amount="1.00", status="paid"),
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Decimal(str(response.data["total_amount"])), Decimal("5100.00"))
        self.assertEqual(response.data["status"], "due")

    def test_initial_payment_marks_partial_and_is_logged(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.post(
            "/api/v1/deliveries/",
            self.delivery_payload(amount_paid="1000.00", extra_purchase_cost="250.00", extra_purchase_details="Twine"),
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["status"], "partial")
        self.assertEqual(Decimal(str(response.data["total_amount"])), Decimal("5350.00"))
        self.assertEqual(Decimal(str(response.data["amount_due"])), Decimal("4350.00"))
        self.assertEqual(response.data["invoice"]["lines"][-1]["description"], "Twine")

        payment = Payment.objects.get(delivery_id=response.data["id"])
        self.assertEqual(payment.payment_amount, Decimal("1000.00"))

    def test_negative_amounts_rejected(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.post(
            "/api/v1/deliveries/",
            self.delivery_payload(per_sack_price="-5.00"),
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("per_sack_price", response.data["fields"])
        self.assertEqual(Truck.objects.count(), 0)

    def test_failed_delivery_insert_leaves_no_truck(self):
        with mock.patch(
            "apps.deliveries.services.Delivery.objects.create",
            side_effect=IntegrityError("insert failed"),
        ):
            with self.assertRaises(IntegrityError):
                self.make_delivery()

        self.assertEqual(Truck.objects.count(), 0)
        self.assertEqual(Delivery.objects.count(), 0)

    def test_payment_scenario_settles_delivery(self):
        self.auth_as("clerk@depot.test", "clerk123")
        created = self.client.post("/api/v1/deliveries/", self.delivery_payload(), format="json")
        delivery_id = created.data["id"]

        response = self.client.post(
            f"/api/v1/deliveries/{delivery_id}/payments/",
            {"payment_amount": "5100.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["delivery"]["status"], "paid")
        self.assertEqual(Decimal(str(response.data["delivery"]["amount_paid"])), Decimal("5100.00"))

        listing = self.client.get(f"/api/v1/deliveries/{delivery_id}/payments/")
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(len(listing.data), 1)
        self.assertTrue(AuditLog.objects.filter(action="payments.create", entity_id=str(delivery_id)).exists())

    def test_payments_accumulate(self):
        delivery = self.make_delivery(sacks=10, price="100")

        delivery, _ = record_payment(actor=self.owner, delivery=delivery, payment_amount=Decimal("300"))
        self.assertEqual(delivery.amount_paid, Decimal("300.00"))
        self.assertEqual(delivery.status, DeliveryStatus.PARTIAL)

        delivery, _ = record_payment(actor=self.owner, delivery=delivery, payment_amount=Decimal("700"))
        delivery.refresh_from_db()
        self.assertEqual(delivery.amount_paid, Decimal("1000.00"))
        self.assertEqual(delivery.status, DeliveryStatus.PAID)
        self.assertEqual(delivery.payments.count(), 2)

    def test_overpayment_is_kept_as_credit(self):
        delivery = self.make_delivery(sacks=10, price="100")
        delivery, _ = record_payment(actor=self.owner, delivery=delivery, payment_amount=Decimal("1250"))

        self.assertEqual(delivery.status, DeliveryStatus.PAID)
        self.assertEqual(delivery.amount_due, Decimal("-250.00"))

    def test_payment_amount_must_be_positive(self):
        self.auth_as("clerk@depot.test", "clerk123")
        delivery = self.make_delivery()

        response = self.client.post(
            f"/api/v1/deliveries/{delivery.id}/payments/",
            {"payment_amount": "0.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("payment_amount", response.data["fields"])
        delivery.refresh_from_db()
        self.assertEqual(delivery.amount_paid, Decimal("0.00"))

    def test_total_beyond_storable_amount_rejected(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.post(
            "/api/v1/deliveries/",
            self.delivery_payload(sacks_delivered=100000, per_sack_price="9999999999.99"),
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("total_amount", response.data["fields"])
        self.assertFalse(Truck.objects.exists())

        quote = self.client.post(
            "/api/v1/deliveries/quote/",
            {"sacks_delivered": 100000, "per_sack_price": "9999999999.99"},
            format="json",
        )
        self.assertEqual(quote.status_code, 400)
        self.assertIn("total_amount", quote.data["fields"])

    def test_largest_storable_total_accepted(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.post(
            "/api/v1/deliveries/",
            self.delivery_payload(sacks_delivered=100, per_sack_price="9999999999.99", driver_fee="0.99"),
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Decimal(str(response.data["total_amount"])), Decimal("999999999999.99"))

    def test_cumulative_payment_beyond_storable_amount_rejected(self):
        delivery = self.make_delivery(sacks=100, price="9999999999.99", paid="999999999999.00")
        self.auth_as("clerk@depot.test", "clerk123")

        response = self.client.post(
            f"/api/v1/deliveries/{delivery.id}/payments/",
            {"payment_amount": "1.00"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid_payment")
        delivery.refresh_from_db()
        self.assertEqual(delivery.amount_paid, Decimal("999999999999.00"))
        self.assertEqual(delivery.payments.count(), 1)

    def test_list_filters_by_receiver_and_inclusive_date_range(self):
        self.make_delivery(receiver="Rahim Traders", delivery_date=date(2023, 12, 31))
        first = self.make_delivery(receiver="Rahim Traders", delivery_date=date(2024, 1, 1))
        last = self.make_delivery(receiver="rahim stores", delivery_date=date(2024, 1, 31))
        self.make_delivery(receiver="Karim Mills", delivery_date=date(2024, 1, 20))
        self.make_delivery(receiver="Rahim Traders", delivery_date=date(2024, 2, 1))
        self.auth_as("clerk@depot.test", "clerk123")

        response = self.client.get(
            "/api/v1/deliveries/",
            {"q": "RAHIM", "date_from": "2024-01-01", "date_to": "2024-01-31"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["id"] for row in response.data], [str(last.id), str(first.id)])

        unfiltered = self.client.get("/api/v1/deliveries/", {"date_from": "2024-01-01", "date_to": "2024-01-31"})
        dates = [row["delivery_date"] for row in unfiltered.data]
        self.assertEqual(dates, ["2024-01-31", "2024-01-20", "2024-01-01"])

    def test_list_rejects_inverted_date_range(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.get("/api/v1/deliveries/", {"date_from": "2024-02-01", "date_to": "2024-01-01"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("date_from", response.data["fields"])

    def test_list_echoes_query_generation(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.get("/api/v1/deliveries/", {"q": "ra", "generation": "42"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["X-Query-Generation"], "42")

        without = self.client.get("/api/v1/deliveries/")
        self.assertFalse(without.has_header("X-Query-Generation"))

    def test_invoice_view(self):
        delivery = self.make_delivery(sacks=4, price="250", paid="400")
        self.auth_as("owner@depot.test", "owner123")

        response = self.client.get(f"/api/v1/deliveries/{delivery.id}/invoice/")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["invoice_number"].startswith("INV-20240115-"))
        self.assertEqual(response.data["billed_to"]["name"], "Rahim Traders")
        self.assertEqual(len(response.data["lines"]), 1)
        self.assertEqual(response.data["lines"][0]["amount"], Decimal("1000.00"))
        self.assertEqual(response.data["amount_paid"], Decimal("400.00"))
        self.assertEqual(response.data["amount_due"], Decimal("600.00"))

    def test_quote_previews_total_and_status(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.post(
            "/api/v1/deliveries/quote/",
            {"sacks_delivered": 10, "per_sack_price": "500", "driver_fee": "100", "amount_paid": "2000"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total_amount"], Decimal("5100.00"))
        self.assertEqual(response.data["amount_due"], Decimal("3100.00"))
        self.assertEqual(response.data["status"], "partial")
        self.assertFalse(Delivery.objects.exists())

    def test_trucks_are_listed_read_only(self):
        self.make_delivery()
        self.auth_as("clerk@depot.test", "clerk123")

        response = self.client.get("/api/v1/trucks/", {"q": "karim"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)

        create = self.client.post("/api/v1/trucks/", truck_payload(), format="json")
        self.assertEqual(create.status_code, 405)

    def test_deliveries_cannot_be_deleted(self):
        delivery = self.make_delivery()
        self.auth_as("owner@depot.test", "owner123")
        response = self.client.delete(f"/api/v1/deliveries/{delivery.id}/")
        self.assertEqual(response.status_code, 405)
        self.assertTrue(Delivery.objects.filter(id=delivery.id).exists())

    def test_requires_authentication(self):
        response = self.client.get("/api/v1/deliveries/")
        self.assertEqual(response.status_code, 401)
