"""
API routes for payment notifications and form relays.
"""
import time
from typing import Any, Dict, Union

import structlog
from fastapi import APIRouter, Depends, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ipn_gateway.core import (
    AuthError,
    FormRequestRelay,
    InboundBody,
    IngestError,
    PayloadFormatError,
    PaymentNotificationIngestor,
    UnsubscribeRelay,
    ValidationError,
    normalize_body,
)
from ipn_gateway.monitoring import HealthCheck
from ipn_gateway.monitoring.metrics import metrics

from .dependencies import (
    get_form_relay,
    get_health_check,
    get_ingestor,
    get_unsubscribe_relay,
)
from .responses import (
    ALL_METHODS,
    ingest_error_response,
    internal_error_response,
    json_response,
    require_post,
)
from .schemas import (
    ErrorResponse,
    FormRequestData,
    FormRequestResponse,
    HealthCheckResponse,
    IPNResponse,
    SideEffectModel,
    UnsubscribeData,
    UnsubscribeResponse,
)

logger = structlog.get_logger(__name__)

relay_router = APIRouter(prefix="/api", tags=["relays"], dependencies=[Depends(require_post)])
monitoring_router = APIRouter(tags=["monitoring"])

ERROR_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (400, 401, 405, 500)
}


def _ipn_outcome(exc: IngestError) -> str:
    if isinstance(exc, AuthError):
        return "invalid_signature"
    if isinstance(exc, PayloadFormatError):
        return "invalid_format"
    if isinstance(exc, ValidationError):
        return "validation_error"
    return "error"


async def _read_fields(request: Request) -> Dict[str, Any]:
    """Decode a relay body with the IPN fallback chain."""
    raw = await request.body()
    try:
        return normalize_body(InboundBody.from_request(raw, request.headers.get("content-type")))
    except PayloadFormatError as e:
        raise PayloadFormatError("Invalid request data format") from e


@relay_router.api_route(
    "/ipn",
    methods=ALL_METHODS,
    response_model=IPNResponse,
    responses=ERROR_RESPONSES,
    summary="Payment notification (IPN)",
    description="Verify, notify and archive a payment status callback",
)
async def receive_ipn(
    request: Request,
    ingestor: PaymentNotificationIngestor = Depends(get_ingestor),
) -> Response:
    """
    Receive a payment processor callback.

    Always answers with JSON; notification and archive failures are reported
    in ``side_effects`` without failing the request.
    """
    start_time = time.time()
    try:
        raw = await request.body()
        body = InboundBody.from_request(raw, request.headers.get("content-type"))
        signature = request.headers.get(ingestor.settings.ipn_signature_header)
        logger.info(
            "ipn_received",
            body_kind=body.kind.value,
            size_bytes=len(raw),
            has_signature=signature is not None,
        )

        result = await ingestor.ingest(body, signature)

    except IngestError as e:
        logger.warning("ipn_rejected", status_code=e.status_code, error=e.message)
        metrics.record_ipn(_ipn_outcome(e))
        return ingest_error_response(e)

    except Exception as e:
        logger.error("ipn_processing_error", error=str(e), error_type=type(e).__name__)
        metrics.record_ipn("internal_error")
        return internal_error_response(e)

    duration = time.time() - start_time
    metrics.record_ipn("processed")
    metrics.record_ipn_duration(duration)
    logger.info(
        "ipn_processed",
        payment_id=result.record.payment_id,
        status=result.record.status,
        duration_seconds=duration,
    )

    response = IPNResponse(
        payment_id=result.record.payment_id,
        status=result.record.status,
        processed_at=result.processed_at.isoformat(),
        side_effects=[SideEffectModel(**effect.to_dict()) for effect in result.side_effects],
    )
    return json_response(response.model_dump(exclude_none=True))


@relay_router.api_route(
    "/requests",
    methods=ALL_METHODS,
    response_model=FormRequestResponse,
    responses={**ERROR_RESPONSES, 502: {"model": ErrorResponse}, 503: {"model": ErrorResponse},
               504: {"model": ErrorResponse}},
    summary="Subscription and membership requests",
)
async def submit_form_request(
    request: Request,
    relay: FormRequestRelay = Depends(get_form_relay),
) -> Response:
    """Relay a newsletter, membership or paid-download request to the chat webhook."""
    try:
        result = await relay.submit(await _read_fields(request))
    except IngestError as e:
        logger.warning("form_request_rejected", status_code=e.status_code, error=e.message)
        metrics.record_form_request("requests", str(e.status_code))
        return ingest_error_response(e)
    except Exception as e:
        logger.error("form_request_error", error=str(e), error_type=type(e).__name__)
        metrics.record_form_request("requests", "500")
        return internal_error_response(e)

    metrics.record_form_request("requests", "200")
    response = FormRequestResponse(
        message=result.message,
        data=FormRequestData(
            type=result.request_type,
            email=result.email,
            timestamp=result.submitted_at.isoformat(),
        ),
    )
    return json_response(response.model_dump())


@relay_router.api_route(
    "/unsubscribe",
    methods=ALL_METHODS,
    response_model=UnsubscribeResponse,
    responses={**ERROR_RESPONSES, 502: {"model": ErrorResponse}, 503: {"model": ErrorResponse},
               504: {"model": ErrorResponse}},
    summary="Newsletter unsubscribe",
)
async def unsubscribe(
    request: Request,
    relay: UnsubscribeRelay = Depends(get_unsubscribe_relay),
) -> Response:
    """Relay an unsubscribe request and archive it for the mailing list."""
    try:
        result = await relay.submit(await _read_fields(request))
    except IngestError as e:
        logger.warning("unsubscribe_rejected", status_code=e.status_code, error=e.message)
        metrics.record_form_request("unsubscribe", str(e.status_code))
        return ingest_error_response(e)
    except Exception as e:
        logger.error("unsubscribe_error", error=str(e), error_type=type(e).__name__)
        metrics.record_form_request("unsubscribe", "500")
        return internal_error_response(e)

    metrics.record_form_request("unsubscribe", "200")
    response = UnsubscribeResponse(
        data=UnsubscribeData(email=result.email, timestamp=result.requested_at.isoformat()),
        side_effects=[SideEffectModel(**effect.to_dict()) for effect in result.side_effects],
    )
    return json_response(response.model_dump(exclude_none=True))


@monitoring_router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health check",
    description="Report which integrations are configured",
)
async def health(health_check: HealthCheck = Depends(get_health_check)) -> Dict[str, Any]:
    """Health check endpoint for monitoring."""
    return await health_check.check_all()


@monitoring_router.get("/health/live", summary="Liveness probe")
async def liveness(health_check: HealthCheck = Depends(get_health_check)) -> Dict[str, Any]:
    return await health_check.liveness()


@monitoring_router.get("/metrics", summary="Prometheus metrics")
async def prometheus_metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
