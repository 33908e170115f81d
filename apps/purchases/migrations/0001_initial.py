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
            name="Purchase",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("item_name", models.CharField(max_length=150)),
                ("quantity", models.DecimalField(decimal_places=2, max_digits=12)),
                ("cost", models.DecimalField(decimal_places=2, max_digits=12)),
                ("purchase_date", models.DateField(default=django.utils.timezone.localdate)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="purchases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-purchase_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["purchase_date"], name="purchase_date_idx"),
                    models.Index(fields=["item_name"], name="purchase_item_name_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(quantity__gt=0), name="purchase_quantity_gt_zero"),
                    models.CheckConstraint(condition=models.Q(cost__gte=0), name="purchase_cost_gte_zero"),
                ],
            },
        ),
    ]
