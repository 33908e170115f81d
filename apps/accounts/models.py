from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    OWNER = "owner", "Owner"
    EMPLOYEE = "employee", "Employee"


class User(AbstractUser):
    name = models.CharField(max_length=150, blank=True, default="")
    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.EMPLOYEE)
    email_confirmed_at = models.DateTimeField(null=True, blank=True)
    pending_role_assignment = models.BooleanField(default=False)

    def __str__(self):
        return self.name or self.email or self.username
