"""
Chat webhook client.

Posts markdown messages in the group-bot format
``{"msgtype": "markdown", "markdown": {"content": ...}}``. Bot APIs of this
kind answer HTTP 200 even for rejected messages and report the failure in an
``errcode`` field, so both the status code and the body are checked.
"""
import time
from typing import Any, Dict, Optional

import httpx
import structlog

from ipn_gateway.config import Settings
from ipn_gateway.core.errors import UpstreamNotificationError

logger = structlog.get_logger(__name__)


def markdown_payload(content: str) -> Dict[str, Any]:
    return {"msgtype": "markdown", "markdown": {"content": content}}


class ChatWebhookNotifier:
    """Sends operational alerts to a chat webhook."""

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the notifier.

        Args:
            webhook_url: Full webhook URL including any key parameter
            timeout: Per-call timeout in seconds
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["ChatWebhookNotifier"]:
        """Build a notifier, or ``None`` when no webhook URL is configured."""
        if not settings.notify_webhook_url:
            logger.warning("notifications_disabled", reason="NOTIFY_WEBHOOK_URL not set")
            return None
        return cls(settings.notify_webhook_url, timeout=settings.notify_timeout_seconds)

    async def send_markdown(self, content: str) -> None:
        """
        Post one markdown message.

        Raises:
            UpstreamNotificationError: On timeout, connection failure, HTTP
                error status or an error code in the response body
        """
        start_time = time.time()
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.webhook_url, json=markdown_payload(content))
                response.raise_for_status()

        except httpx.TimeoutException as e:
            logger.error("notification_timeout", timeout=self.timeout, error=str(e))
            raise UpstreamNotificationError(
                "Webhook request timeout", timed_out=True
            ) from e

        except httpx.HTTPStatusError as e:
            logger.error(
                "notification_rejected",
                status_code=e.response.status_code,
                body=e.response.text[:500],
            )
            raise UpstreamNotificationError(
                f"Webhook service error: HTTP {e.response.status_code}"
            ) from e

        except httpx.RequestError as e:
            logger.error("notification_unreachable", error=str(e))
            raise UpstreamNotificationError(
                "Webhook request timeout", timed_out=True
            ) from e

        self._check_errcode(response)
        logger.info("notification_sent", duration_seconds=time.time() - start_time)

    @staticmethod
    def _check_errcode(response: httpx.Response) -> None:
        try:
            body = response.json()
        except ValueError:
            return
        if not isinstance(body, dict):
            return
        errcode = body.get("errcode", 0)
        if errcode not in (0, "0", None):
            logger.error("notification_rejected", errcode=errcode, errmsg=body.get("errmsg"))
            raise UpstreamNotificationError(
                f"Webhook service error: {errcode} {body.get('errmsg', '')}".strip()
            )
