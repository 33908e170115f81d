import logging
import smtplib
from dataclasses import dataclass

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.contrib.auth.tokens import default_token_generator
from django.core.mail import send_mail
from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode

from apps.accounts.models import UserRole
from apps.audit.models import AuditAction
from apps.audit.services import record_audit
from apps.common.exceptions import EmailDeliveryFailed

logger = logging.getLogger(__name__)

User = get_user_model()


class EmployeeCreationOutcome:
    CREATED = "created"
    PARTIAL = "partial"


@dataclass
class EmployeeCreationResult:
    outcome: str
    employee: User
    detail: str

    @property
    def is_partial(self):
        return self.outcome == EmployeeCreationOutcome.PARTIAL


class RoleAssignmentError(Exception):
    pass


def confirmation_link(user):
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = default_token_generator.make_token(user)
    return uid, token, f"{settings.DEPOT_CONFIRM_EMAIL_URL}?uid={uid}&token={token}"


def register_account(*, email, password, name):
    """First saga step: an inactive account with the default role plus a confirmation email."""
    with transaction.atomic():
        user = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            name=name,
            role=UserRole.EMPLOYEE,
            is_active=False,
        )
        _, _, link = confirmation_link(user)
        try:
            send_mail(
                subject="Confirm your depot account",
                message=f"Hello {name},\n\nConfirm your email address to sign in:\n{link}\n",
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[email],
            )
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Confirmation email to %s failed: %s", email, exc)
            raise EmailDeliveryFailed() from exc
    return user


def assign_profile(user, *, name, role):
    """Second saga step: name and role, role group included."""
    try:
        with transaction.atomic():
            group = Group.objects.get(name=role)
            user.name = name
            user.role = role
            user.pending_role_assignment = False
            user.save(update_fields=["name", "role", "pending_role_assignment"])
            user.groups.set([group])
    except Group.DoesNotExist as exc:
        raise RoleAssignmentError(f"role group '{role}' does not exist; run the seed_roles command") from exc
    except DatabaseError as exc:
        user.refresh_from_db()
        raise RoleAssignmentError(str(exc)) from exc


def flag_pending_role(user):
    User.objects.filter(pk=user.pk).update(pending_role_assignment=True)
    user.pending_role_assignment = True


def create_employee(*, actor, name, email, password, role):
    user = register_account(email=email, password=password, name=name)

    try:
        assign_profile(user, name=name, role=role)
    except RoleAssignmentError as exc:
        flag_pending_role(user)
        logger.warning("Employee %s created without role %s: %s", email, role, exc)
        record_audit(
            actor=actor,
            action=AuditAction.EMPLOYEE_ROLE_FAILED,
            entity_type="user",
            entity_id=user.id,
            payload={"email": email, "role": role, "error": str(exc)},
        )
        return EmployeeCreationResult(
            outcome=EmployeeCreationOutcome.PARTIAL,
            employee=user,
            detail=f"Employee account created, but failed to set role: {exc}",
        )

    logger.info("Employee %s created with role %s", email, role)
    record_audit(
        actor=actor,
        action=AuditAction.EMPLOYEE_CREATE,
        entity_type="user",
        entity_id=user.id,
        payload={"email": email, "role": role},
    )
    return EmployeeCreationResult(
        outcome=EmployeeCreationOutcome.CREATED,
        employee=user,
        detail="Employee created successfully. They must confirm their email address to sign in.",
    )


def confirm_email(*, uid, token):
    try:
        user = User.objects.get(pk=force_str(urlsafe_base64_decode(uid)))
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        return None

    if not default_token_generator.check_token(user, token):
        return None

    if not user.is_active or user.email_confirmed_at is None:
        user.is_active = True
        user.email_confirmed_at = timezone.now()
        user.save(update_fields=["is_active", "email_confirmed_at"])
        logger.info("Email confirmed for %s", user.email)
    return user
