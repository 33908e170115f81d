import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Truck",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("truck_name", models.CharField(max_length=120)),
                ("driver_name", models.CharField(max_length=120)),
                ("license_number", models.CharField(blank=True, default="", max_length=60)),
                ("contact_number", models.CharField(blank=True, default="", max_length=40)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["driver_name"], name="truck_driver_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Delivery",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sacks_delivered", models.PositiveIntegerField(default=0)),
                ("per_sack_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("amount_paid", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("driver_fee", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("extra_purchase_cost", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("extra_purchase_details", models.CharField(blank=True, default="", max_length=255)),
                ("receiver_name", models.CharField(max_length=150)),
                ("receiver_phone", models.CharField(blank=True, default="", max_length=40)),
                ("receiver_address", models.CharField(blank=True, default="", max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[("paid", "Paid"), ("partial", "Partial"), ("due", "Due")],
                        default="due",
                        max_length=16,
                    ),
                ),
                ("delivery_date", models.DateField(default=django.utils.timezone.localdate)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="deliveries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "truck",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delivery",
                        to="deliveries.truck",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "deliveries",
                "ordering": ["-delivery_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["delivery_date"], name="delivery_date_idx"),
                    models.Index(fields=["status", "delivery_date"], name="delivery_status_date_idx"),
                    models.Index(fields=["created_at"], name="delivery_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(per_sack_price__gte=0), name="delivery_price_gte_zero"),
                    models.CheckConstraint(condition=models.Q(driver_fee__gte=0), name="delivery_driver_fee_gte_zero"),
                    models.CheckConstraint(
                        condition=models.Q(extra_purchase_cost__gte=0), name="delivery_extra_cost_gte_zero"
                    ),
                    models.CheckConstraint(condition=models.Q(amount_paid__gte=0), name="delivery_paid_gte_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("payment_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("payment_date", models.DateField(default=django.utils.timezone.localdate)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "delivery",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="deliveries.delivery",
                    ),
                ),
            ],
            options={
                "ordering": ["-payment_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["delivery", "payment_date"], name="payment_delivery_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(payment_amount__gt=0), name="payment_amount_gt_zero"),
                ],
            },
        ),
    ]
