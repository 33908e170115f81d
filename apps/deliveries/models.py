import uuid

from django.db import models
from django.utils import timezone

from apps.deliveries.pricing import DeliveryStatus, derive_status


class Truck(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    truck_name = models.CharField(max_length=120)
    driver_name = models.CharField(max_length=120)
    license_number = models.CharField(max_length=60, blank=True, default="")
    contact_number = models.CharField(max_length=40, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["driver_name"], name="truck_driver_name_idx"),
        ]

    def __str__(self):
        return f"{self.truck_name} ({self.driver_name})"


class Delivery(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    truck = models.OneToOneField(Truck, on_delete=models.PROTECT, related_name="delivery")
    sacks_delivered = models.PositiveIntegerField(default=0)
    per_sack_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    amount_paid = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    driver_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    extra_purchase_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    extra_purchase_details = models.CharField(max_length=255, blank=True, default="")
    receiver_name = models.CharField(max_length=150)
    receiver_phone = models.CharField(max_length=40, blank=True, default="")
    receiver_address = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(max_length=16, choices=DeliveryStatus.choices, default=DeliveryStatus.DUE)
    delivery_date = models.DateField(default=timezone.localdate)
    created_by = models.ForeignKey("accounts.User", null=True, blank=True, on_delete=models.SET_NULL, related_name="deliveries")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-delivery_date", "-created_at"]
        verbose_name_plural = "deliveries"
        indexes = [
            models.Index(fields=["delivery_date"], name="delivery_date_idx"),
            models.Index(fields=["status", "delivery_date"], name="delivery_status_date_idx"),
            models.Index(fields=["created_at"], name="delivery_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(per_sack_price__gte=0), name="delivery_price_gte_zero"),
            models.CheckConstraint(condition=models.Q(driver_fee__gte=0), name="delivery_driver_fee_gte_zero"),
            models.CheckConstraint(condition=models.Q(extra_purchase_cost__gte=0), name="delivery_extra_cost_gte_zero"),
            models.CheckConstraint(condition=models.Q(amount_paid__gte=0), name="delivery_paid_gte_zero"),
        ]

    def __str__(self):
        return f"{self.receiver_name} {self.delivery_date}"

    @property
    def amount_due(self):
        return self.total_amount - self.amount_paid

    def save(self, *args, **kwargs):
        self.status = derive_status(self.amount_paid, self.total_amount)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "status" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "status"]
        super().save(*args, **kwargs)


class Payment(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    delivery = models.ForeignKey(Delivery, on_delete=models.PROTECT, related_name="payments")
    payment_amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_date = models.DateField(default=timezone.localdate)
    created_by = models.ForeignKey("accounts.User", null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-payment_date", "-created_at"]
        indexes = [
            models.Index(fields=["delivery", "payment_date"], name="payment_delivery_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=models.Q(payment_amount__gt=0), name="payment_amount_gt_zero"),
        ]
