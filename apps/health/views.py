from django.conf import settings
from django.db import DatabaseError, connection
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.middleware import CONFIGURATION_HELP


class HealthView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        errors = list(getattr(settings, "CONFIGURATION_ERRORS", []))
        if errors:
            return Response(
                {"status": "misconfigured", "detail": CONFIGURATION_HELP, "errors": errors},
                status=503,
            )

        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except DatabaseError as exc:
            return Response({"status": "unavailable", "detail": str(exc), "errors": []}, status=503)

        return Response({"status": "ok"})
