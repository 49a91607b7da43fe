"""
Test doubles and settings factories shared by the test suite.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ipn_gateway.config import Settings

FIXED_NOW = datetime(2025, 1, 6, 10, 0, 0, tzinfo=timezone.utc)
TEST_SECRET = "ipn_test_secret"


def fixed_clock() -> datetime:
    return FIXED_NOW


class FakeNotifier:
    """Records messages instead of calling a chat webhook."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.messages: List[str] = []
        self.attempts = 0

    async def send_markdown(self, content: str) -> None:
        self.attempts += 1
        if self.error is not None:
            raise self.error
        self.messages.append(content)


class FakeObjectStore:
    """Keeps archived objects in memory."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.attempts: List[str] = []

    async def put_object(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        self.attempts.append(key)
        if self.error is not None:
            raise self.error
        self.objects[key] = (body, content_type)


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "app_name": "ipn-gateway-test",
        "app_env": "test",
        "log_level": "DEBUG",
        "notify_webhook_url": "https://chat.example.com/webhook/send?key=test",
        "storage_access_key": "AKIATEST",
        "storage_secret_key": "secret",
        "storage_bucket": "archive-bucket",
        "ipn_secret": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


