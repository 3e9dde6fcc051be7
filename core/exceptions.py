"""Project-wide DRF exception handler.

Adds a machine-readable `code` next to `detail` for every API error whose
detail is a single message, so clients can tell state conflicts apart
(`insufficient_stock`, `illegal_transition`, ...). Anything DRF does not
recognise is logged with its traceback and answered with a generic 500.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import ErrorDetail
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s", view.__class__.__name__ if view else "view", exc_info=exc
        )
        return Response(
            {"detail": "Internal Server Error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    # Http404 / Django PermissionDenied are converted by DRF; their detail
    # carries the code as well.
    detail = response.data.get("detail") if isinstance(response.data, dict) else None
    if isinstance(detail, ErrorDetail):
        response.data["code"] = detail.code
    return response
