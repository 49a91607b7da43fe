"""JSON responses shared by the relay endpoints, all CORS-enabled."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from ipn_gateway.core.errors import IngestError, ValidationError

from .schemas import ErrorResponse

ALLOW_ORIGIN = {"Access-Control-Allow-Origin": "*"}

PREFLIGHT_HEADERS = {
    **ALLOW_ORIGIN,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def json_response(content: Dict[str, Any], status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=ALLOW_ORIGIN)


class MethodGated(Exception):
    """Carries the terminal response for a preflight or non-POST request."""

    def __init__(self, response: Response):
        super().__init__(response.status_code)
        self.response = response


def gate_method(request: Request) -> Optional[Response]:
    """
    Decide POST / preflight / reject before anything reads the body.

    Returns:
        Optional[Response]: Terminal response, or None to continue with POST
    """
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=PREFLIGHT_HEADERS)
    if request.method != "POST":
        return error_response("Method Not Allowed", status.HTTP_405_METHOD_NOT_ALLOWED)
    return None


async def require_post(request: Request) -> None:
    """
    Router-level dependency, resolved before the route's service dependencies:
    gated requests never build the notifier or the object store.

    Raises:
        MethodGated: For OPTIONS and every verb other than POST
    """
    gated = gate_method(request)
    if gated is not None:
        raise MethodGated(gated)


def error_response(
    message: str,
    status_code: int,
    error: Optional[str] = None,
    **extra: Any,
) -> JSONResponse:
    body = ErrorResponse(message=message, error=error, **extra)
    return json_response(body.model_dump(exclude_none=True), status_code)


def ingest_error_response(exc: IngestError) -> JSONResponse:
    """Structured response for a known gateway error."""
    extra: Dict[str, Any] = {}
    if isinstance(exc, ValidationError) and exc.missing_fields:
        extra["missing_fields"] = exc.missing_fields
    if exc.status_code >= 500:
        extra["timestamp"] = _timestamp()
    return error_response(exc.message, exc.status_code, **extra)


def internal_error_response(exc: Exception) -> JSONResponse:
    """Catch-all: never let a raw fault reach the caller."""
    return error_response(
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        error=str(exc),
        timestamp=_timestamp(),
    )
