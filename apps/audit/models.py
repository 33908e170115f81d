import uuid

from django.db import models


class AuditAction(models.TextChoices):
    DELIVERY_CREATE = "deliveries.create", "Delivery created"
    PAYMENT_CREATE = "payments.create", "Payment recorded"
    PURCHASE_CREATE = "purchases.create", "Purchase recorded"
    EMPLOYEE_CREATE = "employees.create", "Employee created"
    EMPLOYEE_ROLE_FAILED = "employees.role_failed", "Employee role assignment failed"


class AuditLog(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    actor = models.ForeignKey("accounts.User", null=True, blank=True, on_delete=models.SET_NULL)
    action = models.CharField(max_length=80, choices=AuditAction.choices)
    entity_type = models.CharField(max_length=80)
    entity_id = models.CharField(max_length=80)
    payload = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["action", "created_at"], name="audit_action_created_idx"),
            models.Index(fields=["entity_type", "entity_id"], name="audit_entity_lookup_idx"),
        ]

    def __str__(self):
        return f"{self.action} {self.entity_type}:{self.entity_id}"
