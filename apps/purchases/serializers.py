from rest_framework import serializers

from apps.purchases.models import Purchase


class PurchaseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Purchase
        fields = [
            "id",
            "item_name",
            "quantity",
            "cost",
            "purchase_date",
            "created_by",
            "created_at",
        ]
        read_only_fields = ["id", "created_by", "created_at"]

    def validate_item_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("item_name is required")
        return value

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("quantity must be greater than 0")
        return value

    def validate_cost(self, value):
        if value < 0:
            raise serializers.ValidationError("cost must not be negative")
        return value

    def create(self, validated_data):
        validated_data["created_by"] = self.context["request"].user
        return super().create(validated_data)
