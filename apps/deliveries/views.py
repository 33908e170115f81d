from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.common.mixins import QueryGenerationMixin
from apps.common.permissions import RolePermission, has_capability
from apps.deliveries.invoices import build_invoice
from apps.deliveries.models import Delivery, Truck
from apps.deliveries.serializers import (
    DeliveryListSerializer,
    DeliveryQuerySerializer,
    DeliveryQuoteSerializer,
    DeliverySerializer,
    PaymentCreateSerializer,
    PaymentSerializer,
    TruckSerializer,
)
from apps.deliveries.services import create_delivery, quote_delivery, record_payment


class DeliveryViewSet(
    QueryGenerationMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    queryset = Delivery.objects.select_related("truck", "created_by").order_by("-delivery_date", "-created_at")
    serializer_class = DeliverySerializer
    permission_classes = [RolePermission]
    pagination_class = None
    capability_map = {
        "list": ["deliveries.view"],
        "retrieve": ["deliveries.view"],
        "create": ["deliveries.create"],
        "quote": ["deliveries.create"],
        "invoice": ["deliveries.view"],
        "payments": ["payments.view"],
    }

    def get_serializer_class(self):
        if self.action == "list":
            return DeliveryListSerializer
        return DeliverySerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action != "list":
            return queryset

        query_serializer = DeliveryQuerySerializer(data=self.request.query_params)
        query_serializer.is_valid(raise_exception=True)
        params = query_serializer.validated_data
        query = params.get("q", "").strip()
        if query:
            queryset = queryset.filter(receiver_name__icontains=query)
        if params.get("date_from"):
            queryset = queryset.filter(delivery_date__gte=params["date_from"])
        if params.get("date_to"):
            queryset = queryset.filter(delivery_date__lte=params["date_to"])
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = create_delivery(actor=request.user, **serializer.validated_data)
        payload = DeliverySerializer(delivery).data
        payload["invoice"] = build_invoice(delivery)
        return Response(payload, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def quote(self, request):
        serializer = DeliveryQuoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(quote_delivery(**serializer.validated_data), status=200)

    @action(detail=True, methods=["get"])
    def invoice(self, request, pk=None):
        return Response(build_invoice(self.get_object()), status=200)

    @action(detail=True, methods=["get", "post"])
    def payments(self, request, pk=None):
        delivery = self.get_object()
        if request.method == "GET":
            return Response(PaymentSerializer(delivery.payments.order_by("-payment_date", "-created_at"), many=True).data)

        if not has_capability(request.user, "payments.create"):
            return Response(
                {"code": "permission_denied", "detail": "You do not have permission to record payments.", "fields": {}},
                status=403,
            )
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            delivery, payment = record_payment(actor=request.user, delivery=delivery, **serializer.validated_data)
        except ValueError as exc:
            return Response({"code": "invalid_payment", "detail": str(exc), "fields": {}}, status=400)
        return Response(
            {
                "payment": PaymentSerializer(payment).data,
                "delivery": DeliverySerializer(delivery).data,
            },
            status=status.HTTP_201_CREATED,
        )


class TruckViewSet(QueryGenerationMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Truck.objects.order_by("-created_at")
    serializer_class = TruckSerializer
    permission_classes = [RolePermission]
    pagination_class = None
    capability_map = {
        "list": ["trucks.view"],
        "retrieve": ["trucks.view"],
    }

    def get_queryset(self):
        queryset = super().get_queryset()
        query = self.request.query_params.get("q", "").strip()
        if query:
            queryset = queryset.filter(Q(driver_name__icontains=query) | Q(truck_name__icontains=query))
        return queryset
