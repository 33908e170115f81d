from unittest import mock

from django.db import DatabaseError
from django.test import override_settings
from rest_framework.test import APITestCase


class HealthTests(APITestCase):
    def test_ok(self):
        response = self.client.get("/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"status": "ok"})

    @override_settings(CONFIGURATION_ERRORS=["DATABASE_URL is a placeholder value."])
    def test_misconfigured(self):
        response = self.client.get("/health/")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data["status"], "misconfigured")
        self.assertEqual(response.data["errors"], ["DATABASE_URL is a placeholder value."])

    def test_database_unavailable(self):
        with mock.patch("apps.health.views.connection") as connection:
            connection.cursor.side_effect = DatabaseError("connection refused")
            response = self.client.get("/health/")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data["status"], "unavailable")
