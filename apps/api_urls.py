from django.urls import include, path
from rest_framework_simplejwt.views import TokenBlacklistView, TokenRefreshView

from apps.accounts.views import SignInView

urlpatterns = [
    path("auth/token/", SignInView.as_view(), name="token-obtain-pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("auth/logout/", TokenBlacklistView.as_view(), name="token-blacklist"),
    path("", include("apps.accounts.urls")),
    path("", include("apps.deliveries.urls")),
    path("", include("apps.purchases.urls")),
    path("", include("apps.reports.urls")),
]
