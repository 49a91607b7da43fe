"""HMAC-SHA512 verification of IPN bodies."""
import hashlib
import hmac
from typing import Optional

import structlog

from .body import InboundBody
from .errors import AuthError

logger = structlog.get_logger(__name__)


def compute_signature(body: InboundBody, secret: str) -> str:
    """Hex HMAC-SHA512 of the body's canonical serialization."""
    return hmac.new(
        secret.encode("utf-8"), body.canonical_bytes(), hashlib.sha512
    ).hexdigest()


def verify_signature(body: InboundBody, signature: Optional[str], secret: Optional[str]) -> bool:
    """
    Verify the signature header against the configured secret.

    Args:
        body: Inbound body as received
        signature: Value of the signature header, if any
        secret: Shared secret; ``None`` disables verification

    Returns:
        bool: True if the body was verified, False if verification is disabled

    Raises:
        AuthError: If a secret is configured and the signature is absent or wrong
    """
    if not secret:
        logger.warning("ipn_signature_verification_disabled")
        return False

    if not signature:
        logger.error("ipn_signature_missing")
        raise AuthError("Invalid signature")

    expected = compute_signature(body, secret)
    if not hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8")):
        logger.error("ipn_signature_invalid")
        raise AuthError("Invalid signature")

    logger.info("ipn_signature_verified")
    return True
