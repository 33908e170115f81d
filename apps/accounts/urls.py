from django.urls import path
from rest_framework.routers import DefaultRouter

from apps.accounts.views import ConfirmEmailView, EmployeeViewSet, SessionView

router = DefaultRouter()
router.register("employees", EmployeeViewSet, basename="employee")

urlpatterns = [
    path("auth/session/", SessionView.as_view(), name="auth-session"),
    path("auth/confirm-email/", ConfirmEmailView.as_view(), name="auth-confirm-email"),
]
urlpatterns += router.urls
