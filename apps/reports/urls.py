from django.urls import path

from apps.reports.views import DashboardView, DeliveryReportView

urlpatterns = [
    path("reports/deliveries/", DeliveryReportView.as_view(), name="delivery-report"),
    path("dashboard/", DashboardView.as_view(), name="dashboard"),
]
