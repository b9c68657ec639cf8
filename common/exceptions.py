# common/exceptions.py
import logging
import traceback

from django.conf import settings
from django.db import IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

log = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."
    default_code = "conflict"


class UpstreamUnavailable(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service failed."
    default_code = "upstream_error"


def _first_message(data):
    """Flatten DRF error payloads down to one human readable line."""
    if isinstance(data, dict):
        if "detail" in data:
            return _first_message(data["detail"])
        for key, value in data.items():
            msg = _first_message(value)
            if key == "non_field_errors":
                return msg
            return f"{key}: {msg}"
        return ""
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ""
    return str(data)


def custom_exception_handler(exc, context):
    """
    Every API error goes out as {"success": false, "error": "..."}.
    Field level serializer errors are kept under "errors".
    """
    response = exception_handler(exc, context)

    if response is not None:
        payload = {"success": False, "error": _first_message(response.data)}
        if isinstance(response.data, dict) and "detail" not in response.data:
            payload["errors"] = response.data
        response.data = payload
        return response

    if isinstance(exc, IntegrityError):
        log.warning("Integrity error: %s", exc)
        return Response(
            {"success": False, "error": "The record conflicts with existing data"},
            status=status.HTTP_409_CONFLICT,
        )

    log.exception("Unhandled error in %s", context.get("view").__class__.__name__)
    payload = {"success": False, "error": "Internal server error"}
    if settings.DEBUG:
        payload["message"] = str(exc)
        payload["stack"] = traceback.format_exc()
    return Response(payload, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
