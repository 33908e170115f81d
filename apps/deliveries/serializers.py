from decimal import Decimal

from rest_framework import serializers

from apps.deliveries.models import Delivery, Payment, Truck
from apps.deliveries.pricing import MAX_AMOUNT, compute_total_amount, exceeds_max_amount

MONEY_KWARGS = {"max_digits": 12, "decimal_places": 2, "min_value": Decimal("0.00")}
MAX_SACKS = 2147483647


def validate_total_amount(attrs):
    total_amount = compute_total_amount(
        sacks_delivered=attrs.get("sacks_delivered", 0),
        per_sack_price=attrs.get("per_sack_price", 0),
        driver_fee=attrs.get("driver_fee", 0),
        extra_purchase_cost=attrs.get("extra_purchase_cost", 0),
    )
    if exceeds_max_amount(total_amount):
        raise serializers.ValidationError({"total_amount": f"total_amount must not exceed {MAX_AMOUNT}."})
    return attrs


class TruckSerializer(serializers.ModelSerializer):
    class Meta:
        model = Truck
        fields = ["id", "truck_name", "driver_name", "license_number", "contact_number", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_truck_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("truck_name is required")
        return value

    def validate_driver_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("driver_name is required")
        return value


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ["id", "delivery", "payment_amount", "payment_date", "created_by", "created_at"]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    payment_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_date = serializers.DateField(required=False)

    def validate_payment_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("payment_amount must be greater than 0")
        return value


class DeliverySerializer(serializers.ModelSerializer):
    truck = TruckSerializer()
    amount_due = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    per_sack_price = serializers.DecimalField(**MONEY_KWARGS)
    driver_fee = serializers.DecimalField(required=False, default=Decimal("0.00"), **MONEY_KWARGS)
    extra_purchase_cost = serializers.DecimalField(required=False, default=Decimal("0.00"), **MONEY_KWARGS)
    amount_paid = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), required=False, default=Decimal("0.00")
    )

    class Meta:
        model = Delivery
        fields = [
            "id",
            "truck",
            "sacks_delivered",
            "per_sack_price",
            "driver_fee",
            "extra_purchase_cost",
            "extra_purchase_details",
            "total_amount",
            "amount_paid",
            "amount_due",
            "status",
            "receiver_name",
            "receiver_phone",
            "receiver_address",
            "delivery_date",
            "created_by",
            "created_at",
        ]
        read_only_fields = ["id", "total_amount", "amount_due", "status", "created_by", "created_at"]
        extra_kwargs = {"delivery_date": {"required": False}}

    def validate_receiver_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("receiver_name is required")
        return value

    def validate(self, attrs):
        return validate_total_amount(attrs)


class DeliveryListSerializer(serializers.ModelSerializer):
    truck = TruckSerializer(read_only=True)
    amount_due = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Delivery
        fields = [
            "id",
            "truck",
            "sacks_delivered",
            "total_amount",
            "amount_paid",
            "amount_due",
            "status",
            "receiver_name",
            "receiver_phone",
            "delivery_date",
            "created_at",
        ]
        read_only_fields = fields


class DeliveryQuoteSerializer(serializers.Serializer):
    sacks_delivered = serializers.IntegerField(min_value=0, max_value=MAX_SACKS, default=0)
    per_sack_price = serializers.DecimalField(default=Decimal("0.00"), **MONEY_KWARGS)
    driver_fee = serializers.DecimalField(default=Decimal("0.00"), **MONEY_KWARGS)
    extra_purchase_cost = serializers.DecimalField(default=Decimal("0.00"), **MONEY_KWARGS)
    amount_paid = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )

    def validate(self, attrs):
        return validate_total_amount(attrs)


class DeliveryQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        date_from = attrs.get("date_from")
        date_to = attrs.get("date_to")
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({"date_from": "date_from must be before or equal to date_to."})
        return attrs
