import uuid

from django.db import models
from django.utils import timezone


class Purchase(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    item_name = models.CharField(max_length=150)
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    cost = models.DecimalField(max_digits=12, decimal_places=2)
    purchase_date = models.DateField(default=timezone.localdate)
    created_by = models.ForeignKey("accounts.User", null=True, blank=True, on_delete=models.SET_NULL, related_name="purchases")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-purchase_date", "-created_at"]
        indexes = [
            models.Index(fields=["purchase_date"], name="purchase_date_idx"),
            models.Index(fields=["item_name"], name="purchase_item_name_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(quantity__gt=0), name="purchase_quantity_gt_zero"),
            models.CheckConstraint(condition=models.Q(cost__gte=0), name="purchase_cost_gte_zero"),
        ]

    def __str__(self):
        return f"{self.item_name} x{self.quantity}"
