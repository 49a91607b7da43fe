"""
Payment notification ingestion.

Implements the IPN pipeline:
- HMAC-SHA512 signature verification (when a secret is configured)
- Body normalization across JSON object / JSON string / URL-encoded forms
- Required-field validation
- Best-effort chat notification
- Best-effort archival to object storage
- Completion hooks for successful payments

Verification, normalization and validation raise and abort the request.
Notification, archival and hooks never raise; their outcomes are returned
as ``SideEffectResult`` entries.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional

import structlog

from ipn_gateway.config import Settings
from ipn_gateway.monitoring.metrics import metrics

from .archive import build_archive_entry, payment_archive_key, serialize_entry
from .body import InboundBody, normalize_body
from .errors import UpstreamNotificationError, UpstreamStorageError
from .messages import payment_message
from .outcome import SideEffectResult
from .record import PaymentRecord
from .signature import verify_signature

logger = structlog.get_logger(__name__)

PaymentHook = Callable[[PaymentRecord, Optional[str]], Awaitable[Any]]

NOTIFICATION_STEP = "notification"
ARCHIVE_STEP = "archive"
HOOK_STEP = "success_hook"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IngestResult:
    """Outcome of a processed notification."""

    record: PaymentRecord
    verified: bool
    processed_at: datetime
    side_effects: List[SideEffectResult] = field(default_factory=list)


async def log_payment_completed(record: PaymentRecord, email: Optional[str]) -> None:
    """Default completion hook: entitlement and e-mail delivery are handled downstream."""
    logger.info("payment_completed", payment_id=record.payment_id, status=record.status)
    if email:
        logger.info("confirmation_email_pending", payment_id=record.payment_id, email=email)


class PaymentNotificationIngestor:
    """
    Processes one IPN request at a time; holds no per-request state.

    Example:
        ingestor = PaymentNotificationIngestor(settings, notifier, store)
        ingestor.register_hook(grant_access)
        result = await ingestor.ingest(InboundBody.structured(data), signature)
    """

    def __init__(
        self,
        settings: Settings,
        notifier: Optional[Any] = None,
        store: Optional[Any] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the ingestor.

        Args:
            settings: Application settings
            notifier: Chat notifier exposing ``send_markdown``; ``None`` disables it
            store: Object store exposing ``put_object``; ``None`` disables archival
            clock: Source of the receipt timestamp
        """
        self.settings = settings
        self.notifier = notifier
        self.store = store
        self.clock = clock
        self.required_fields = settings.get_required_fields_list()
        self.success_statuses = settings.get_success_statuses_list()
        self.hooks: List[PaymentHook] = []

    def register_hook(self, hook: PaymentHook) -> None:
        """
        Register a hook fired for payments in a success status.

        Hooks receive the record and the resolved customer e-mail (or None).
        """
        self.hooks.append(hook)
        logger.info("payment_hook_registered", hook=getattr(hook, "__name__", repr(hook)))

    async def ingest(self, body: InboundBody, signature: Optional[str]) -> IngestResult:
        """
        Run the full pipeline for one notification.

        Args:
            body: Inbound body as received
            signature: Signature header value, if any

        Returns:
            IngestResult: Normalized record and side-effect outcomes

        Raises:
            AuthError: If the signature check fails
            PayloadFormatError: If the body cannot be decoded
            ValidationError: If required fields are missing
        """
        verified = verify_signature(body, signature, self.settings.ipn_secret)

        data = normalize_body(body)
        record = PaymentRecord.from_fields(data, self.required_fields)
        log = logger.bind(payment_id=record.payment_id, payment_status=record.status)
        log.info("ipn_record_accepted", verified=verified, field_count=len(data))

        received_at = self.clock()
        side_effects = [
            await self._notify(record),
            await self._archive(record, received_at, verified),
        ]
        side_effects.extend(await self._run_hooks(record))

        for effect in side_effects:
            metrics.record_side_effect(effect.step, effect.status.value)

        return IngestResult(
            record=record,
            verified=verified,
            processed_at=self.clock(),
            side_effects=side_effects,
        )

    async def _notify(self, record: PaymentRecord) -> SideEffectResult:
        if self.notifier is None:
            return SideEffectResult.skipped(NOTIFICATION_STEP, "notifications disabled")

        content = payment_message(record, self.settings.provider_dashboard_url)
        try:
            await self.notifier.send_markdown(content)
        except UpstreamNotificationError as e:
            logger.error("ipn_notification_failed", payment_id=record.payment_id, error=str(e))
            return SideEffectResult.failed(NOTIFICATION_STEP, str(e))
        except Exception as e:
            logger.error(
                "ipn_notification_unexpected_error",
                payment_id=record.payment_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SideEffectResult.failed(NOTIFICATION_STEP, str(e))

        return SideEffectResult.ok(NOTIFICATION_STEP)

    async def _archive(
        self, record: PaymentRecord, received_at: datetime, verified: bool
    ) -> SideEffectResult:
        if self.store is None:
            logger.warning("ipn_archive_skipped", payment_id=record.payment_id)
            return SideEffectResult.skipped(ARCHIVE_STEP, "storage not configured")

        key = payment_archive_key(
            self.settings.ipn_archive_prefix, record.payment_id, received_at
        )
        entry = build_archive_entry(record, received_at, verified, self.settings.ipn_source)
        try:
            await self.store.put_object(key, serialize_entry(entry), "application/json")
        except UpstreamStorageError as e:
            logger.error("ipn_archive_failed", payment_id=record.payment_id, key=key, error=str(e))
            return SideEffectResult.failed(ARCHIVE_STEP, str(e))
        except Exception as e:
            logger.error(
                "ipn_archive_unexpected_error",
                payment_id=record.payment_id,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SideEffectResult.failed(ARCHIVE_STEP, str(e))

        return SideEffectResult.ok(ARCHIVE_STEP, key)

    async def _run_hooks(self, record: PaymentRecord) -> List[SideEffectResult]:
        if not record.is_successful(self.success_statuses):
            return []

        email = record.contact_email
        results = []
        for hook in self.hooks:
            name = getattr(hook, "__name__", repr(hook))
            try:
                await hook(record, email)
            except Exception as e:
                logger.error(
                    "payment_hook_failed",
                    payment_id=record.payment_id,
                    hook=name,
                    error=str(e),
                )
                results.append(SideEffectResult.failed(HOOK_STEP, f"{name}: {e}"))
            else:
                results.append(SideEffectResult.ok(HOOK_STEP, name))
        return results
