from django.contrib.auth import get_user_model
from rest_framework import generics, mixins, status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView

from apps.accounts.serializers import (
    ConfirmEmailSerializer,
    EmployeeCreateSerializer,
    EmployeeSerializer,
    SessionSerializer,
    SignInSerializer,
)
from apps.accounts.services import confirm_email, create_employee
from apps.common.mixins import QueryGenerationMixin
from apps.common.permissions import RolePermission

User = get_user_model()


class SessionView(generics.RetrieveAPIView):
    serializer_class = SessionSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user


class ConfirmEmailView(generics.GenericAPIView):
    serializer_class = ConfirmEmailSerializer
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = confirm_email(**serializer.validated_data)
        if user is None:
            return Response(
                {"code": "invalid_token", "detail": "The confirmation link is invalid or has expired.", "fields": {}},
                status=400,
            )
        return Response({"email": user.email, "is_active": user.is_active}, status=200)


class EmployeeViewSet(QueryGenerationMixin, mixins.ListModelMixin, mixins.CreateModelMixin, viewsets.GenericViewSet):
    queryset = User.objects.order_by("name", "email")
    serializer_class = EmployeeSerializer
    permission_classes = [RolePermission]
    pagination_class = None
    capability_map = {
        "list": ["employees.view"],
        "create": ["employees.manage"],
    }

    def get_serializer_class(self):
        if self.action == "create":
            return EmployeeCreateSerializer
        return EmployeeSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = create_employee(actor=request.user, **serializer.validated_data)
        return Response(
            {
                "outcome": result.outcome,
                "detail": result.detail,
                "employee": EmployeeSerializer(result.employee).data,
            },
            status=status.HTTP_201_CREATED,
        )


class SignInView(TokenObtainPairView):
    serializer_class = SignInSerializer
