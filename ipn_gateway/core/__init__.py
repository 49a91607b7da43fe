"""Core request processing: IPN ingestion and form relays."""
from .body import BodyKind, InboundBody, normalize_body
from .errors import (
    AuthError,
    IngestError,
    NotificationsDisabledError,
    PayloadFormatError,
    UpstreamNotificationError,
    UpstreamStorageError,
    ValidationError,
)
from .ingestor import IngestResult, PaymentNotificationIngestor, log_payment_completed
from .outcome import SideEffectResult, SideEffectStatus
from .record import PaymentRecord
from .relays import FormRequestRelay, UnsubscribeRelay

__all__ = [
    "AuthError",
    "BodyKind",
    "FormRequestRelay",
    "InboundBody",
    "IngestError",
    "IngestResult",
    "NotificationsDisabledError",
    "PayloadFormatError",
    "PaymentNotificationIngestor",
    "PaymentRecord",
    "SideEffectResult",
    "SideEffectStatus",
    "UnsubscribeRelay",
    "UpstreamNotificationError",
    "UpstreamStorageError",
    "ValidationError",
    "log_payment_completed",
    "normalize_body",
]
