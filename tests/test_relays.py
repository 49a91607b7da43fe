"""
Tests for the form request and unsubscribe relays.
"""
import json
from typing import Any

import pytest
from httpx import AsyncClient

from ipn_gateway.api.dependencies import get_form_relay, get_unsubscribe_relay
from ipn_gateway.api.main import app
from ipn_gateway.core import (
    FormRequestRelay,
    NotificationsDisabledError,
    SideEffectStatus,
    UnsubscribeRelay,
    UpstreamNotificationError,
    UpstreamStorageError,
    ValidationError,
)
from tests.helpers import FIXED_NOW, FakeNotifier, FakeObjectStore, fixed_clock, make_settings


class TestFormRequestRelay:
    """Test suite for FormRequestRelay."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_annual_membership(self, form_relay: FormRequestRelay, notifier: FakeNotifier) -> None:
        result = await form_relay.submit(
            {"type": 3, "email": "reader@example.com", "url": "https://blog.example.com/join"}
        )

        assert result.request_type == 3
        assert result.email == "reader@example.com"
        assert result.submitted_at == FIXED_NOW
        assert result.message.startswith("Annual membership request received")
        [message] = notifier.messages
        assert "Annual membership request" in message
        assert "https://blog.example.com/join" in message

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_type_sent_as_string(self, form_relay: FormRequestRelay) -> None:
        result = await form_relay.submit({"type": " 1 ", "email": "reader@example.com"})

        assert result.request_type == 1
        assert result.message == "Subscription request received. Thank you for subscribing!"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_url_is_reported(
        self, form_relay: FormRequestRelay, notifier: FakeNotifier
    ) -> None:
        await form_relay.submit({"type": 4, "email": "reader@example.com"})

        assert "**Download page:** Not provided" in notifier.messages[0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_type_is_relayed(
        self, form_relay: FormRequestRelay, notifier: FakeNotifier
    ) -> None:
        result = await form_relay.submit({"type": 9, "email": "reader@example.com"})

        assert result.message == "Request received. We'll process your request shortly."
        assert "9 (unrecognized)" in notifier.messages[0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{}, {"type": 1}, {"email": "reader@example.com"}, {"type": 1, "email": "  "}],
    )
    async def test_missing_fields(
        self, form_relay: FormRequestRelay, notifier: FakeNotifier, payload: dict
    ) -> None:
        with pytest.raises(ValidationError, match="type and email are required"):
            await form_relay.submit(payload)

        assert notifier.attempts == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_type", ["gold", True, 1.5])
    async def test_non_integer_type(self, form_relay: FormRequestRelay, bad_type: Any) -> None:
        with pytest.raises(ValidationError, match="type must be an integer"):
            await form_relay.submit({"type": bad_type, "email": "reader@example.com"})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_disabled_notifications(self) -> None:
        relay = FormRequestRelay(make_settings(notify_webhook_url=None), notifier=None)

        with pytest.raises(NotificationsDisabledError) as exc_info:
            await relay.submit({"type": 1, "email": "reader@example.com"})

        assert exc_info.value.status_code == 503

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_webhook_failure_propagates(self) -> None:
        notifier = FakeNotifier(error=UpstreamNotificationError("Webhook request timed out", timed_out=True))
        relay = FormRequestRelay(make_settings(), notifier=notifier, clock=fixed_clock)

        with pytest.raises(UpstreamNotificationError) as exc_info:
            await relay.submit({"type": 2, "email": "reader@example.com"})

        assert exc_info.value.status_code == 504


class TestUnsubscribeRelay:
    """Test suite for UnsubscribeRelay."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_notifies_and_archives(
        self, unsubscribe_relay: UnsubscribeRelay, notifier: FakeNotifier, store: FakeObjectStore
    ) -> None:
        result = await unsubscribe_relay.submit({"email": "reader@example.com"})

        assert notifier.messages == ["reader@example.com unsubscribed from the newsletter"]
        [(key, (body, content_type))] = store.objects.items()
        assert key.startswith("newsletter/unsubscribes/2025-01-06_")
        assert key.endswith(".txt")
        assert content_type == "text/plain"
        assert json.loads(body) == {
            "cancel_subscribe": 1,
            "user_email": "reader@example.com",
            "requested_at": FIXED_NOW.isoformat(),
        }
        [archive] = result.side_effects
        assert archive.status is SideEffectStatus.OK
        assert archive.detail == key

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_email(self, unsubscribe_relay: UnsubscribeRelay, notifier: FakeNotifier) -> None:
        with pytest.raises(ValidationError, match="Missing required fields: email"):
            await unsubscribe_relay.submit({"email": ""})

        assert notifier.attempts == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_archive_failure_is_soft(self, notifier: FakeNotifier) -> None:
        store = FakeObjectStore(error=UpstreamStorageError("Archive write failed: NoSuchBucket"))
        relay = UnsubscribeRelay(make_settings(), notifier=notifier, store=store, clock=fixed_clock)

        result = await relay.submit({"email": "reader@example.com"})

        assert result.side_effects[0].status is SideEffectStatus.FAILED
        assert len(notifier.messages) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_archive_error_is_soft(self, notifier: FakeNotifier) -> None:
        store = FakeObjectStore(error=OSError("disk full"))
        relay = UnsubscribeRelay(make_settings(), notifier=notifier, store=store, clock=fixed_clock)

        result = await relay.submit({"email": "reader@example.com"})

        [archive] = result.side_effects
        assert archive.status is SideEffectStatus.FAILED
        assert archive.detail == "disk full"
        assert len(notifier.messages) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_store_skips_archive(self, notifier: FakeNotifier) -> None:
        relay = UnsubscribeRelay(make_settings(), notifier=notifier, store=None, clock=fixed_clock)

        result = await relay.submit({"email": "reader@example.com"})

        assert result.side_effects[0].status is SideEffectStatus.SKIPPED

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_webhook_failure_skips_archive(self, store: FakeObjectStore) -> None:
        notifier = FakeNotifier(error=UpstreamNotificationError("Webhook service error: HTTP 500"))
        relay = UnsubscribeRelay(make_settings(), notifier=notifier, store=store, clock=fixed_clock)

        with pytest.raises(UpstreamNotificationError):
            await relay.submit({"email": "reader@example.com"})

        assert store.attempts == []


class TestRelayEndpoints:
    """Integration tests for /api/requests and /api/unsubscribe."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_form_request(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/requests", json={"type": 2, "email": "reader@example.com", "url": "https://x.io"}
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        data = response.json()
        assert data["success"] is True
        assert data["message"].startswith("Monthly membership request received")
        assert data["data"] == {
            "type": 2,
            "email": "reader@example.com",
            "timestamp": FIXED_NOW.isoformat(),
        }

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_form_request_accepts_form_encoding(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/requests",
            content="type=1&email=reader%40example.com",
            headers={"content-type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "reader@example.com"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_form_request_missing_fields(self, client: AsyncClient) -> None:
        response = await client.post("/api/requests", json={"type": 1})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing required fields: type and email are required"

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/requests", "/api/unsubscribe"])
    async def test_malformed_body_message_is_not_ipn_specific(
        self, client: AsyncClient, notifier: FakeNotifier, path: str
    ) -> None:
        response = await client.post(path, json=["reader@example.com"])

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request data format"
        assert notifier.attempts == 0

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_form_request_webhook_rejected(self, client: AsyncClient) -> None:
        notifier = FakeNotifier(error=UpstreamNotificationError("Webhook service error: HTTP 500"))
        app.dependency_overrides[get_form_relay] = lambda: FormRequestRelay(
            make_settings(), notifier=notifier, clock=fixed_clock
        )

        response = await client.post("/api/requests", json={"type": 1, "email": "a@b.co"})

        assert response.status_code == 502
        data = response.json()
        assert data["message"] == "Webhook service error: HTTP 500"
        assert "timestamp" in data

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_form_request_notifications_disabled(self, client: AsyncClient) -> None:
        app.dependency_overrides[get_form_relay] = lambda: FormRequestRelay(
            make_settings(notify_webhook_url=None)
        )

        response = await client.post("/api/requests", json={"type": 1, "email": "a@b.co"})

        assert response.status_code == 503

    @pytest.mark.integration
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/requests", "/api/unsubscribe"])
    async def test_method_gating(self, client: AsyncClient, path: str) -> None:
        preflight = await client.options(path)
        rejected = await client.get(path)

        assert preflight.status_code == 200
        assert preflight.content == b""
        assert rejected.status_code == 405

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unsubscribe(self, client: AsyncClient, store: FakeObjectStore) -> None:
        response = await client.post("/api/unsubscribe", json={"email": "reader@example.com"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Unsubscribe request received"
        assert data["data"]["email"] == "reader@example.com"
        assert data["side_effects"][0]["status"] == "ok"
        assert len(store.objects) == 1

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_unsubscribe_timeout(self, client: AsyncClient, store: FakeObjectStore) -> None:
        notifier = FakeNotifier(error=UpstreamNotificationError("Webhook request timed out", timed_out=True))
        app.dependency_overrides[get_unsubscribe_relay] = lambda: UnsubscribeRelay(
            make_settings(), notifier=notifier, store=store, clock=fixed_clock
        )

        response = await client.post("/api/unsubscribe", json={"email": "reader@example.com"})

        assert response.status_code == 504
        assert store.objects == {}
