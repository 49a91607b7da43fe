"""
Form relays: visitor submissions forwarded to the chat webhook.

Unlike the IPN pipeline, the notification is the whole point of these
endpoints, so a webhook failure is surfaced to the caller.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional

import structlog

from ipn_gateway.config import Settings

from .archive import build_unsubscribe_entry, serialize_entry, unsubscribe_archive_key
from .errors import NotificationsDisabledError, UpstreamStorageError, ValidationError
from .ingestor import ARCHIVE_STEP, utc_now
from .messages import acknowledgement, form_request_message, unsubscribe_message
from .outcome import SideEffectResult
from .record import find_missing_fields

logger = structlog.get_logger(__name__)

URL_NOT_PROVIDED = "Not provided"


@dataclass(frozen=True)
class FormRequestResult:
    request_type: int
    email: str
    message: str
    submitted_at: datetime


@dataclass(frozen=True)
class UnsubscribeResult:
    email: str
    requested_at: datetime
    side_effects: List[SideEffectResult] = field(default_factory=list)


def _parse_request_type(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("type must be an integer")
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise ValidationError("type must be an integer") from e


class _Relay:
    def __init__(
        self,
        settings: Settings,
        notifier: Optional[Any] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings
        self.notifier = notifier
        self.clock = clock

    async def _send(self, content: str) -> None:
        if self.notifier is None:
            raise NotificationsDisabledError("Notifications are disabled")
        await self.notifier.send_markdown(content)


class FormRequestRelay(_Relay):
    """Newsletter, membership and paid-download requests."""

    async def submit(self, payload: Mapping[str, Any]) -> FormRequestResult:
        """
        Validate and forward one request.

        Raises:
            ValidationError: If ``type`` or ``email`` is missing or malformed
            NotificationsDisabledError: If no webhook is configured
            UpstreamNotificationError: If the webhook call fails
        """
        missing = find_missing_fields(payload, ("type", "email"))
        if missing:
            raise ValidationError(
                "Missing required fields: type and email are required", missing_fields=missing
            )

        request_type = _parse_request_type(payload["type"])
        email = str(payload["email"]).strip()
        url = payload.get("url") or URL_NOT_PROVIDED
        submitted_at = self.clock()

        await self._send(form_request_message(request_type, email, url, submitted_at))
        logger.info("form_request_relayed", request_type=request_type, email=email, url=url)

        return FormRequestResult(
            request_type=request_type,
            email=email,
            message=acknowledgement(request_type),
            submitted_at=submitted_at,
        )


class UnsubscribeRelay(_Relay):
    """Newsletter unsubscribe requests, archived for the mailing list job."""

    def __init__(
        self,
        settings: Settings,
        notifier: Optional[Any] = None,
        store: Optional[Any] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(settings, notifier, clock)
        self.store = store

    async def submit(self, payload: Mapping[str, Any]) -> UnsubscribeResult:
        """
        Notify the webhook, then archive the unsubscribe record.

        Raises:
            ValidationError: If ``email`` is missing
            NotificationsDisabledError: If no webhook is configured
            UpstreamNotificationError: If the webhook call fails
        """
        if find_missing_fields(payload, ("email",)):
            raise ValidationError("Missing required fields: email", missing_fields=["email"])

        email = str(payload["email"]).strip()
        requested_at = self.clock()

        await self._send(unsubscribe_message(email))
        archive = await self._archive(email, requested_at)
        logger.info("unsubscribe_relayed", email=email, archive_status=archive.status.value)

        return UnsubscribeResult(email=email, requested_at=requested_at, side_effects=[archive])

    async def _archive(self, email: str, requested_at: datetime) -> SideEffectResult:
        if self.store is None:
            logger.warning("unsubscribe_archive_skipped", email=email)
            return SideEffectResult.skipped(ARCHIVE_STEP, "storage not configured")

        key = unsubscribe_archive_key(self.settings.unsubscribe_archive_prefix, requested_at)
        body = serialize_entry(build_unsubscribe_entry(email, requested_at))
        try:
            await self.store.put_object(key, body, "text/plain")
        except UpstreamStorageError as e:
            logger.error("unsubscribe_archive_failed", email=email, key=key, error=str(e))
            return SideEffectResult.failed(ARCHIVE_STEP, str(e))
        except Exception as e:
            logger.error(
                "unsubscribe_archive_unexpected_error",
                email=email,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SideEffectResult.failed(ARCHIVE_STEP, str(e))
        return SideEffectResult.ok(ARCHIVE_STEP, key)
