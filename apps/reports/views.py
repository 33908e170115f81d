from django.utils import timezone
from rest_framework import generics
from rest_framework.response import Response

from apps.common.mixins import QueryGenerationMixin
from apps.common.permissions import RolePermission
from apps.deliveries.serializers import DeliveryListSerializer
from apps.reports.serializers import DashboardQuerySerializer, ReportQuerySerializer, ReportRowSerializer
from apps.reports.services import dashboard_summary, delivery_rows, period_range, report_totals


class DeliveryReportView(QueryGenerationMixin, generics.GenericAPIView):
    permission_classes = [RolePermission]
    capability_map = {"get": ["reports.view"]}

    def get(self, request, *args, **kwargs):
        query_serializer = ReportQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        period = query_serializer.validated_data["period"]
        date_from, date_to = period_range(period, query_serializer.validated_data["as_of"])
        deliveries = delivery_rows(date_from, date_to)
        return Response(
            {
                "period": period,
                "range": {"date_from": date_from, "date_to": date_to},
                "generated_on": timezone.localdate(),
                **report_totals(deliveries),
                "deliveries": ReportRowSerializer(deliveries, many=True).data,
            }
        )


class DashboardView(QueryGenerationMixin, generics.GenericAPIView):
    permission_classes = [RolePermission]
    capability_map = {"get": ["dashboard.view"]}

    def get(self, request, *args, **kwargs):
        query_serializer = DashboardQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        summary = dashboard_summary(query_serializer.validated_data["as_of"])
        summary["recent_deliveries"] = DeliveryListSerializer(summary["recent_deliveries"], many=True).data
        return Response(summary)
