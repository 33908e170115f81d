from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler


class EmailDeliveryFailed(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "The confirmation email could not be sent."
    default_code = "email_delivery_failed"


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return response

    if isinstance(response.data, dict):
        detail = response.data.get("detail", "Request failed")
        fields = {k: v for k, v in response.data.items() if k != "detail"}
    elif isinstance(response.data, list):
        detail = " ".join(str(item) for item in response.data) or "Request failed"
        fields = {}
    else:
        detail = "Request failed"
        fields = {}

    response.data = {
        "code": getattr(exc, "default_code", "error"),
        "detail": detail,
        "fields": fields,
    }
    return response
