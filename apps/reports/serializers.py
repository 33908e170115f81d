from django.utils import timezone
from rest_framework import serializers

from apps.deliveries.models import Delivery
from apps.reports.services import ReportPeriod


class ReportQuerySerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=ReportPeriod.CHOICES, default=ReportPeriod.DAILY)
    as_of = serializers.DateField(required=False)

    def validate(self, attrs):
        attrs.setdefault("as_of", timezone.localdate())
        return attrs


class DashboardQuerySerializer(serializers.Serializer):
    as_of = serializers.DateField(required=False)

    def validate(self, attrs):
        attrs.setdefault("as_of", timezone.localdate())
        return attrs


class ReportRowSerializer(serializers.ModelSerializer):
    driver_name = serializers.CharField(source="truck.driver_name", read_only=True)

    class Meta:
        model = Delivery
        fields = ["id", "delivery_date", "driver_name", "receiver_name", "sacks_delivered", "total_amount", "amount_paid", "status"]
        read_only_fields = fields
