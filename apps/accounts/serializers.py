from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from apps.accounts.models import UserRole
from apps.common.permissions import capabilities_for, resolve_role

User = get_user_model()


class EmployeeSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "role",
            "email",
            "is_active",
            "email_confirmed_at",
            "pending_role_assignment",
            "date_joined",
        ]
        read_only_fields = fields


class EmployeeCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    role = serializers.ChoiceField(choices=UserRole.choices, default=UserRole.EMPLOYEE)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("name is required")
        return value

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(username__iexact=value).exists() or User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate(self, attrs):
        candidate = User(username=attrs["email"], email=attrs["email"], name=attrs["name"])
        try:
            validate_password(attrs["password"], user=candidate)
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"password": list(exc.messages)}) from exc
        return attrs


class ConfirmEmailSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()


class SessionSerializer(serializers.ModelSerializer):
    role = serializers.SerializerMethodField()
    capabilities = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "name", "role", "email", "capabilities"]
        read_only_fields = fields

    def get_role(self, obj):
        return resolve_role(obj)

    def get_capabilities(self, obj):
        return sorted(capabilities_for(obj))


class SignInSerializer(TokenObtainPairSerializer):
    """Accounts are keyed by lowercased email, so sign-in matches the address case-insensitively."""

    def validate(self, attrs):
        attrs[self.username_field] = attrs[self.username_field].strip().lower()
        return super().validate(attrs)
