import smtplib
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core import mail
from django.core.management import call_command
from rest_framework.test import APITestCase

from apps.accounts.models import UserRole
from apps.accounts.services import confirmation_link
from apps.audit.models import AuditLog

User = get_user_model()

EMPLOYEE_PASSWORD = "Sack-Yard-2024!"


class EmployeeAdministrationTests(APITestCase):
    def setUp(self):
        self.owner = User.objects.create_user(
            username="owner@depot.test", email="owner@depot.test", password="owner123", name="Owner", role="owner"
        )
        self.employee = User.objects.create_user(
            username="clerk@depot.test", email="clerk@depot.test", password="clerk123", name="Clerk", role="employee"
        )

    def auth(self, username, password):
        return self.client.post(
            "/api/v1/auth/token/",
            {"username": username, "password": password},
            format="json",
        )

    def auth_as(self, username, password):
        token = self.auth(username, password).data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def seed_groups(self):
        for role in UserRole.values:
            Group.objects.get_or_create(name=role)

    def create_payload(self, **overrides):
        payload = {
            "name": "New Hand",
            "email": "New.Hand@Depot.test",
            "password": EMPLOYEE_PASSWORD,
            "role": "employee",
        }
        payload.update(overrides)
        return payload

    def test_session_returns_profile_and_capabilities(self):
        self.auth_as("clerk@depot.test", "clerk123")
        response = self.client.get("/api/v1/auth/session/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["email"], "clerk@depot.test")
        self.assertEqual(response.data["role"], "employee")
        self.assertIn("deliveries.create", response.data["capabilities"])
        self.assertNotIn("employees.manage", response.data["capabilities"])

    def test_group_membership_overrides_role_field(self):
        self.seed_groups()
        self.employee.groups.add(Group.objects.get(name=UserRole.OWNER))
        self.auth_as("clerk@depot.test", "clerk123")

        response = self.client.get("/api/v1/auth/session/")
        self.assertEqual(response.data["role"], "owner")
        self.assertIn("employees.manage", response.data["capabilities"])

    def test_owner_lists_employees_with_email(self):
        self.auth_as("owner@depot.test", "owner123")
        response = self.client.get("/api/v1/employees/", {"generation": "3"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["X-Query-Generation"], "3")
        emails = {row["email"]: row["role"] for row in response.data}
        self.assertEqual(emails, {"owner@depot.test": "owner", "clerk@depot.test": "employee"})

    def test_employee_cannot_administer_employees(self):
        self.auth_as("clerk@depot.test", "clerk123")
        self.assertEqual(self.client.get("/api/v1/employees/").status_code, 403)
        response = self.client.post("/api/v1/employees/", self.create_payload(), format="json")
        self.assertEqual(response.status_code, 403)
        self.assertFalse(User.objects.filter(email="new.hand@depot.test").exists())

    def test_owner_creates_employee_pending_confirmation(self):
        self.seed_groups()
        self.auth_as("owner@depot.test", "owner123")

        response = self.client.post("/api/v1/employees/", self.create_payload(role="owner"), format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["outcome"], "created")
        self.assertIn("confirm their email", response.data["detail"])

        created = User.objects.get(email="new.hand@depot.test")
        self.assertFalse(created.is_active)
        self.assertEqual(created.name, "New Hand")
        self.assertEqual(created.role, UserRole.OWNER)
        self.assertTrue(created.groups.filter(name=UserRole.OWNER).exists())
        self.assertFalse(created.pending_role_assignment)

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["new.hand@depot.test"])
        self.assertTrue(AuditLog.objects.filter(action="employees.create", entity_id=str(created.id)).exists())

        login = self.auth("new.hand@depot.test", EMPLOYEE_PASSWORD)
        self.assertEqual(login.status_code, 401)

    def test_role_assignment_failure_is_reported_as_partial(self):
        self.auth_as("owner@depot.test", "owner123")

        response = self.client.post("/api/v1/employees/", self.create_payload(role="owner"), format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["outcome"], "partial")
        self.assertIn("failed to set role", response.data["detail"])
        self.assertTrue(response.data["employee"]["pending_role_assignment"])

        created = User.objects.get(email="new.hand@depot.test")
        self.assertEqual(created.role, UserRole.EMPLOYEE)
        self.assertTrue(created.pending_role_assignment)
        self.assertTrue(AuditLog.objects.filter(action="employees.role_failed", entity_id=str(created.id)).exists())

    def test_duplicate_email_rejected(self):
        self.auth_as("owner@depot.test", "owner123")
        response = self.client.post(
            "/api/v1/employees/",
            self.create_payload(email="CLERK@depot.test"),
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("email", response.data["fields"])

    def test_weak_password_rejected(self):
        self.auth_as("owner@depot.test", "owner123")
        response = self.client.post("/api/v1/employees/", self.create_payload(password="1234"), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("password", response.data["fields"])
        self.assertEqual(len(mail.outbox), 0)

    def test_email_failure_leaves_no_account(self):
        self.seed_groups()
        self.auth_as("owner@depot.test", "owner123")

        with mock.patch("apps.accounts.services.send_mail", side_effect=smtplib.SMTPException("relay down")):
            response = self.client.post("/api/v1/employees/", self.create_payload(), format="json")

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["code"], "email_delivery_failed")
        self.assertFalse(User.objects.filter(email="new.hand@depot.test").exists())

    def test_confirm_email_activates_account(self):
        self.seed_groups()
        self.auth_as("owner@depot.test", "owner123")
        self.client.post("/api/v1/employees/", self.create_payload(), format="json")
        created = User.objects.get(email="new.hand@depot.test")
        uid, token, link = confirmation_link(created)
        self.assertIn(uid, mail.outbox[0].body)

        self.client.credentials()
        response = self.client.post("/api/v1/auth/confirm-email/", {"uid": uid, "token": token}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["is_active"])

        created.refresh_from_db()
        self.assertIsNotNone(created.email_confirmed_at)
        self.assertEqual(self.auth("new.hand@depot.test", EMPLOYEE_PASSWORD).status_code, 200)

    def test_sign_in_ignores_email_case(self):
        self.seed_groups()
        self.auth_as("owner@depot.test", "owner123")
        self.client.post("/api/v1/employees/", self.create_payload(), format="json")
        created = User.objects.get(email="new.hand@depot.test")
        uid, token, _ = confirmation_link(created)
        self.client.credentials()
        self.client.post("/api/v1/auth/confirm-email/", {"uid": uid, "token": token}, format="json")

        response = self.auth(" New.Hand@Depot.test", EMPLOYEE_PASSWORD)
        self.assertEqual(response.status_code, 200)
        self.assertIn("access", response.data)

    def test_confirm_email_rejects_bad_token(self):
        uid, _, _ = confirmation_link(self.employee)
        response = self.client.post("/api/v1/auth/confirm-email/", {"uid": uid, "token": "nope"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "invalid_token")

    def test_logout_blacklists_refresh_token(self):
        tokens = self.auth("clerk@depot.test", "clerk123").data
        logout = self.client.post("/api/v1/auth/logout/", {"refresh": tokens["refresh"]}, format="json")
        self.assertEqual(logout.status_code, 200)

        refresh = self.client.post("/api/v1/auth/token/refresh/", {"refresh": tokens["refresh"]}, format="json")
        self.assertEqual(refresh.status_code, 401)


class AccountCommandTests(APITestCase):
    def test_seed_roles_is_idempotent(self):
        out = StringIO()
        call_command("seed_roles", stdout=out)
        call_command("seed_roles", stdout=out)
        self.assertEqual(set(Group.objects.values_list("name", flat=True)), {"owner", "employee"})
        self.assertIn("owner: exists", out.getvalue())

    def test_repair_pending_assigns_requested_role(self):
        owner = User.objects.create_user(username="owner@depot.test", password="owner123", role="owner")
        self.client.force_authenticate(owner)
        self.client.post(
            "/api/v1/employees/",
            {"name": "Late Boss", "email": "late@depot.test", "password": EMPLOYEE_PASSWORD, "role": "owner"},
            format="json",
        )
        pending = User.objects.get(email="late@depot.test")
        self.assertTrue(pending.pending_role_assignment)

        call_command("seed_roles", repair_pending=True, stdout=StringIO())

        pending.refresh_from_db()
        self.assertFalse(pending.pending_role_assignment)
        self.assertEqual(pending.role, UserRole.OWNER)
        self.assertTrue(pending.groups.filter(name=UserRole.OWNER).exists())

    def test_create_owner(self):
        call_command("create_owner", email="Boss@Depot.test", password="boss-pass-99", name="Boss", stdout=StringIO())
        owner = User.objects.get(username="boss@depot.test")
        self.assertEqual(owner.role, UserRole.OWNER)
        self.assertTrue(owner.is_active)
        self.assertTrue(owner.groups.filter(name=UserRole.OWNER).exists())
