import logging

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)

CONFIGURATION_HELP = (
    "The depot server is not configured. Set DJANGO_SECRET_KEY and DATABASE_URL in the environment "
    "or in the .env file next to manage.py, then restart the server."
)


class ConfigurationGateMiddleware:
    """Answer every request with setup instructions while the server runs on placeholder credentials."""

    exempt_prefixes = ("/health/",)

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        errors = list(getattr(settings, "CONFIGURATION_ERRORS", []))
        if not errors or request.path.startswith(self.exempt_prefixes):
            return self.get_response(request)

        logger.error("Rejected %s %s: server not configured (%s)", request.method, request.path, "; ".join(errors))
        return JsonResponse(
            {
                "code": "configuration_error",
                "detail": CONFIGURATION_HELP,
                "fields": {"settings": errors},
            },
            status=503,
        )
