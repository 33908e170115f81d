from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser, Group
from django.test import TestCase, override_settings
from rest_framework.test import APIRequestFactory, APITestCase

from apps.common.permissions import RolePermission, capabilities_for, has_capability, resolve_role

User = get_user_model()


class CapabilityTests(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(username="owner@depot.test", password="owner123", role="owner")
        self.clerk = User.objects.create_user(username="clerk@depot.test", password="clerk123", role="employee")

    def test_owner_only_capabilities(self):
        self.assertTrue(has_capability(self.owner, "employees.view", "employees.manage"))
        self.assertFalse(has_capability(self.clerk, "employees.manage"))
        self.assertTrue(has_capability(self.clerk, "deliveries.create", "payments.create", "reports.view"))
        self.assertEqual(capabilities_for(AnonymousUser()), set())

    def test_group_membership_takes_precedence(self):
        self.clerk.groups.add(Group.objects.create(name="owner"))
        self.assertEqual(resolve_role(self.clerk), "owner")

    def test_role_permission_uses_view_action(self):
        factory = APIRequestFactory()
        view = SimpleNamespace(action="create", capability_map={"list": ["employees.view"], "create": ["employees.manage"]})
        request = factory.post("/")

        request.user = self.clerk
        self.assertFalse(RolePermission().has_permission(request, view))
        request.user = self.owner
        self.assertTrue(RolePermission().has_permission(request, view))
        request.user = AnonymousUser()
        self.assertFalse(RolePermission().has_permission(request, view))

    def test_unmapped_action_is_open_to_authenticated_users(self):
        request = APIRequestFactory().get("/")
        request.user = self.clerk
        view = SimpleNamespace(action="metadata", capability_map={"list": ["employees.view"]})
        self.assertTrue(RolePermission().has_permission(request, view))


class ConfigurationGateTests(APITestCase):
    @override_settings(CONFIGURATION_ERRORS=["DJANGO_SECRET_KEY is a placeholder value."])
    def test_api_answers_with_setup_instructions(self):
        response = self.client.get("/api/v1/deliveries/")
        self.assertEqual(response.status_code, 503)
        body = response.json()
        self.assertEqual(body["code"], "configuration_error")
        self.assertIn("DATABASE_URL", body["detail"])
        self.assertEqual(body["fields"]["settings"], ["DJANGO_SECRET_KEY is a placeholder value."])

    @override_settings(CONFIGURATION_ERRORS=[])
    def test_configured_server_passes_through(self):
        self.assertEqual(self.client.get("/api/v1/deliveries/").status_code, 401)
