from datetime import date, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from apps.deliveries.models import Delivery
from apps.deliveries.services import create_delivery
from apps.reports.services import period_range, trailing_months

User = get_user_model()


class PeriodTests(SimpleTestCase):
    def test_period_range(self):
        self.assertEqual(period_range("daily", date(2024, 1, 15)), (date(2024, 1, 15), date(2024, 1, 15)))
        self.assertEqual(period_range("monthly", date(2024, 2, 10)), (date(2024, 2, 1), date(2024, 2, 29)))
        with self.assertRaises(ValueError):
            period_range("weekly", date(2024, 1, 15))

    def test_trailing_months_cross_year_boundary(self):
        self.assertEqual(
            trailing_months(date(2024, 2, 20)),
            [date(2023, 9, 1), date(2023, 10, 1), date(2023, 11, 1), date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)],
        )


class ReportApiTests(APITestCase):
    def setUp(self):
        self.clerk = User.objects.create_user(
            username="clerk@depot.test", email="clerk@depot.test", password="clerk123", name="Clerk", role="employee"
        )
        token = self.client.post(
            "/api/v1/auth/token/",
            {"username": "clerk@depot.test", "password": "clerk123"},
            format="json",
        ).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        self.truck_seq = 0

    def deliver(self, delivery_date, sacks=10, price="100", paid="0", receiver="Rahim Traders"):
        self.truck_seq += 1
        return create_delivery(
            actor=self.clerk,
            truck={"truck_name": f"Truck {self.truck_seq}", "driver_name": f"Driver {self.truck_seq}"},
            sacks_delivered=sacks,
            per_sack_price=Decimal(price),
            amount_paid=Decimal(paid),
            receiver_name=receiver,
            delivery_date=delivery_date,
        )

    def test_daily_report_covers_only_as_of(self):
        self.deliver(date(2024, 1, 14))
        self.deliver(date(2024, 1, 15), sacks=5, paid="200")
        self.deliver(date(2024, 1, 15), sacks=2)
        self.deliver(date(2024, 1, 16))

        response = self.client.get("/api/v1/reports/deliveries/", {"period": "daily", "as_of": "2024-01-15"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["range"], {"date_from": date(2024, 1, 15), "date_to": date(2024, 1, 15)})
        self.assertEqual(response.data["deliveries_count"], 2)
        self.assertEqual(response.data["total_amount"], Decimal("700.00"))
        self.assertEqual(response.data["amount_paid"], Decimal("200.00"))
        self.assertEqual(response.data["amount_due"], Decimal("500.00"))
        self.assertEqual({row["delivery_date"] for row in response.data["deliveries"]}, {"2024-01-15"})
        self.assertEqual(response.data["deliveries"][0]["driver_name"][:7], "Driver ")

    def test_monthly_report_is_inclusive_of_month_edges(self):
        self.deliver(date(2023, 12, 31))
        self.deliver(date(2024, 1, 1))
        self.deliver(date(2024, 1, 31))
        self.deliver(date(2024, 2, 1))

        response = self.client.get("/api/v1/reports/deliveries/", {"period": "monthly", "as_of": "2024-01-15"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["period"], "monthly")
        self.assertEqual([row["delivery_date"] for row in response.data["deliveries"]], ["2024-01-31", "2024-01-01"])

    def test_report_defaults_to_today(self):
        today = timezone.localdate()
        self.deliver(today)
        self.deliver(today - timedelta(days=1))

        response = self.client.get("/api/v1/reports/deliveries/")
        self.assertEqual(response.data["period"], "daily")
        self.assertEqual(response.data["deliveries_count"], 1)

    def test_empty_report_has_zero_totals(self):
        response = self.client.get("/api/v1/reports/deliveries/", {"period": "monthly", "as_of": "2030-05-05"})
        self.assertEqual(response.data["deliveries_count"], 0)
        self.assertEqual(response.data["total_amount"], Decimal("0.00"))
        self.assertEqual(response.data["deliveries"], [])

    def test_unknown_period_rejected(self):
        response = self.client.get("/api/v1/reports/deliveries/", {"period": "weekly"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("period", response.data["fields"])

    def test_dashboard_summary(self):
        self.deliver(date(2023, 12, 20), sacks=1, price="999")
        self.deliver(date(2024, 1, 10), sacks=10, price="100", paid="1000")
        self.deliver(date(2024, 3, 5), sacks=4, price="50", paid="50")
        self.deliver(date(2024, 6, 1), sacks=3, price="100")
        self.deliver(date(2024, 6, 15), sacks=2, price="100", paid="200")
        self.deliver(date(2024, 6, 15), sacks=1, price="100")

        response = self.client.get("/api/v1/dashboard/", {"as_of": "2024-06-15", "generation": "4"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["X-Query-Generation"], "4")

        data = response.data
        self.assertEqual(data["today_deliveries"], 2)
        self.assertEqual(data["month_deliveries"], 3)
        # 999 + 150 + 300 + 100 outstanding
        self.assertEqual(data["total_due"], Decimal("1549.00"))
        self.assertEqual(data["status_breakdown"], {"paid": 2, "due": 3, "partial": 1})

        months = data["monthly_totals"]
        self.assertEqual([m["month"] for m in months], ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"])
        self.assertEqual([m["label"] for m in months], ["Jan", "Feb", "Mar", "Apr", "May", "Jun"])
        self.assertEqual(
            [m["total_amount"] for m in months],
            [Decimal("1000.00"), Decimal("0.00"), Decimal("200.00"), Decimal("0.00"), Decimal("0.00"), Decimal("600.00")],
        )

    def test_dashboard_buckets_six_distinct_months_across_year_end(self):
        prices = ["10", "20", "30", "40", "50", "60"]
        days = [date(2023, 9, 30), date(2023, 10, 1), date(2023, 11, 15), date(2023, 12, 31), date(2024, 1, 1), date(2024, 2, 20)]
        for day, price in zip(days, prices):
            self.deliver(day, sacks=1, price=price)
        self.deliver(date(2023, 8, 31), sacks=1, price="999")
        self.deliver(date(2024, 3, 1), sacks=1, price="999")

        response = self.client.get("/api/v1/dashboard/", {"as_of": "2024-02-20"})
        months = response.data["monthly_totals"]
        self.assertEqual([m["month"] for m in months], ["2023-09", "2023-10", "2023-11", "2023-12", "2024-01", "2024-02"])
        self.assertEqual([m["label"] for m in months], ["Sep", "Oct", "Nov", "Dec", "Jan", "Feb"])
        self.assertEqual([m["total_amount"] for m in months], [Decimal(price).quantize(Decimal("0.01")) for price in prices])

    def test_dashboard_recent_deliveries_newest_first(self):
        created = [self.deliver(date(2024, 6, day)) for day in range(1, 8)]
        base = timezone.now()
        for offset, delivery in enumerate(created):
            Delivery.objects.filter(pk=delivery.pk).update(created_at=base - timedelta(minutes=offset))

        response = self.client.get("/api/v1/dashboard/", {"as_of": "2024-06-15"})
        recent = [row["id"] for row in response.data["recent_deliveries"]]
        self.assertEqual(recent, [str(delivery.id) for delivery in created[:5]])
