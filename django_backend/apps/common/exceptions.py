"""
Error taxonomy shared by every API surface.

Validation, not-found, forbidden and unauthenticated errors are the stock DRF
exceptions. InternalError covers storage and collaborator failures; anything
else that escapes a view is logged and answered with the same generic 500 body.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error."
    default_code = "internal_error"


def api_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER that never leaks internals to the caller."""
    response = exception_handler(exc, context)
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"

    if response is None:
        logger.error("Unhandled error in %s", view_name, exc_info=exc)
        return Response(
            {"detail": InternalError.default_detail},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, InternalError):
        cause = exc.__cause__
        logger.error("Internal error in %s: %s", view_name, cause or exc.detail, exc_info=cause)
        response.data = {"detail": InternalError.default_detail}

    return response
