"""
Health check for liveness probes and configuration review.

Reports which optional integrations are active. Upstreams are not called:
a health probe must not post to the chat webhook or write to the bucket.
"""
from typing import Any, Dict, Optional

import structlog

from ipn_gateway.config import Settings, get_settings

logger = structlog.get_logger(__name__)


class HealthCheck:
    """Health check service for the gateway."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def check_configuration(self) -> Dict[str, Any]:
        """
        Summarize optional integrations.

        Returns:
            Dict[str, Any]: Per-integration status
        """
        settings = self.settings
        checks = {
            "notifications": {
                "status": "enabled" if settings.notifications_enabled else "disabled",
            },
            "archive": {
                "status": "enabled" if settings.storage_configured else "disabled",
                "bucket": settings.storage_bucket,
                "region": settings.storage_region,
            },
            "signature_verification": {
                "status": "enabled" if settings.signature_required else "disabled",
                "header": settings.ipn_signature_header,
            },
        }
        disabled = [name for name, check in checks.items() if check["status"] == "disabled"]
        if disabled:
            logger.warning("health_integrations_disabled", integrations=disabled)
        return checks

    async def check_all(self) -> Dict[str, Any]:
        """
        Run all health checks.

        Returns:
            Dict[str, Any]: Overall health status
        """
        checks = self.check_configuration()
        degraded = any(check["status"] == "disabled" for check in checks.values())
        return {
            "status": "degraded" if degraded else "healthy",
            "service": self.settings.app_name,
            "checks": checks,
        }

    async def liveness(self) -> Dict[str, Any]:
        """Simple check that the application is running."""
        return {
            "status": "alive",
            "message": "Application is running",
        }
