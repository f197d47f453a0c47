import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from tokens.github import RemoteStoreError
from tokens.services import DuplicateTokenError, TokenNotFoundError, TokenStoreError, TokenValidationError

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (TokenValidationError, status.HTTP_400_BAD_REQUEST),
    (DuplicateTokenError, status.HTTP_400_BAD_REQUEST),
    (TokenNotFoundError, status.HTTP_404_NOT_FOUND),
)


def error_response(message: str, status_code: int, error: str = "") -> Response:
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    return Response(body, status=status_code)


def store_error_response(exc: Exception, failure_message: str) -> Response:
    """
    Map a token store or remote store exception to the failure envelope.

    Domain errors carry their own message; remote failures are reported with
    the action that failed and the underlying error.
    """
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return error_response(str(exc), status_code)

    if isinstance(exc, RemoteStoreError):
        return error_response(failure_message, status.HTTP_500_INTERNAL_SERVER_ERROR, error=str(exc))

    raise exc


def _flatten(detail) -> str:
    if isinstance(detail, dict):
        return "; ".join(f"{key}: {_flatten(value)}" for key, value in detail.items())
    if isinstance(detail, list):
        return "; ".join(_flatten(item) for item in detail)
    return str(detail)


def api_exception_handler(exc, context):
    """DRF exception handler that answers framework errors in the {success, message} envelope."""
    if isinstance(exc, (TokenStoreError, RemoteStoreError)):
        return store_error_response(exc, "Request failed")

    response = exception_handler(exc, context)
    if response is None:
        return None

    logger.debug(f"Rejected request with {response.status_code}: {exc}")
    response.data = {"success": False, "message": _flatten(response.data)}
    return response
