"""
Error taxonomy for the gateway.

Every error carries the HTTP status it maps to. Hard failures (validation,
format, signature) abort a request; upstream failures are caught by the
caller and turned into side-effect results unless the endpoint has no other
purpose than the upstream call.
"""
from typing import List, Optional, Sequence


class IngestError(Exception):
    """Base exception for gateway errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(IngestError):
    """Raised when required fields are missing or malformed."""

    status_code = 400

    def __init__(self, message: str, missing_fields: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.missing_fields: List[str] = list(missing_fields or [])

    @classmethod
    def for_missing(cls, missing_fields: Sequence[str]) -> "ValidationError":
        """Build an error naming every missing field."""
        if len(missing_fields) == 1:
            message = f"{missing_fields[0]} is required"
        else:
            message = f"Missing required fields: {', '.join(missing_fields)}"
        return cls(message, missing_fields=missing_fields)


class PayloadFormatError(IngestError):
    """Raised when the request body cannot be decoded into a record."""

    status_code = 400


class AuthError(IngestError):
    """Raised when the IPN signature does not match."""

    status_code = 401


class UpstreamNotificationError(IngestError):
    """Raised when the chat webhook is unreachable or rejects a message."""

    status_code = 502

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out
        if timed_out:
            self.status_code = 504


class NotificationsDisabledError(IngestError):
    """Raised when a relay needs the chat webhook but none is configured."""

    status_code = 503


class UpstreamStorageError(IngestError):
    """Raised when an archive write fails or storage is not configured."""

    status_code = 502
