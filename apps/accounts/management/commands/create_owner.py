from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.accounts.models import UserRole

User = get_user_model()


class Command(BaseCommand):
    help = "Create an active owner account that can sign in without email confirmation"

    def add_arguments(self, parser):
        parser.add_argument("--email", required=True)
        parser.add_argument("--password", required=True)
        parser.add_argument("--name", default="")

    def handle(self, *args, **options):
        email = options["email"].strip().lower()
        if User.objects.filter(username=email).exists():
            raise CommandError(f"A user with email {email} already exists.")

        owner = User.objects.create_user(
            username=email,
            email=email,
            password=options["password"],
            name=options["name"].strip(),
            role=UserRole.OWNER,
            email_confirmed_at=timezone.now(),
        )
        group, _ = Group.objects.get_or_create(name=UserRole.OWNER)
        owner.groups.add(group)
        self.stdout.write(self.style.SUCCESS(f"owner {owner.email}: created"))
