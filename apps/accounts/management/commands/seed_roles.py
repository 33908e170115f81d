from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from apps.accounts.models import UserRole
from apps.accounts.services import RoleAssignmentError, assign_profile
from apps.audit.models import AuditAction, AuditLog

User = get_user_model()


class Command(BaseCommand):
    help = "Create the owner and employee role groups and optionally finish pending role assignments"

    def add_arguments(self, parser):
        parser.add_argument(
            "--repair-pending",
            action="store_true",
            help="Assign the requested role to employees whose role assignment failed at creation",
        )

    def handle(self, *args, **options):
        for role in UserRole.values:
            group, created = Group.objects.get_or_create(name=role)
            state = "created" if created else "exists"
            self.stdout.write(self.style.SUCCESS(f"{group.name}: {state}"))

        if options["repair_pending"]:
            self.repair_pending()

    def requested_role(self, user):
        failure = (
            AuditLog.objects.filter(action=AuditAction.EMPLOYEE_ROLE_FAILED, entity_type="user", entity_id=str(user.id))
            .order_by("-created_at")
            .first()
        )
        role = (failure.payload or {}).get("role") if failure else None
        return role if role in UserRole.values else user.role

    def repair_pending(self):
        for user in User.objects.filter(pending_role_assignment=True).order_by("date_joined"):
            role = self.requested_role(user)
            try:
                assign_profile(user, name=user.name, role=role)
            except RoleAssignmentError as exc:
                self.stderr.write(f"{user.email}: still pending ({exc})")
                continue
            self.stdout.write(self.style.SUCCESS(f"{user.email}: role {role} assigned"))
