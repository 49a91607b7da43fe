"""
Pytest configuration and fixtures.
"""
from typing import Any, AsyncGenerator, Callable, Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from ipn_gateway.api.dependencies import (
    get_form_relay,
    get_health_check,
    get_ingestor,
    get_unsubscribe_relay,
)
from ipn_gateway.api.main import app
from ipn_gateway.config import Settings
from ipn_gateway.core import (
    FormRequestRelay,
    PaymentNotificationIngestor,
    UnsubscribeRelay,
    log_payment_completed,
)
from ipn_gateway.monitoring import HealthCheck
from tests.helpers import FakeNotifier, FakeObjectStore, fixed_clock, make_settings


@pytest.fixture
def test_settings() -> Settings:
    """Settings with notifications and archive enabled, no IPN secret."""
    return make_settings()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def make_ingestor() -> Callable[..., PaymentNotificationIngestor]:
    """Factory for ingestors wired to fakes."""

    def _make(
        settings: Optional[Settings] = None,
        notifier: Optional[Any] = None,
        store: Optional[Any] = None,
    ) -> PaymentNotificationIngestor:
        ingestor = PaymentNotificationIngestor(
            settings or make_settings(),
            notifier=notifier,
            store=store,
            clock=fixed_clock,
        )
        ingestor.register_hook(log_payment_completed)
        return ingestor

    return _make


@pytest.fixture
def ingestor(
    make_ingestor: Callable[..., PaymentNotificationIngestor],
    test_settings: Settings,
    notifier: FakeNotifier,
    store: FakeObjectStore,
) -> PaymentNotificationIngestor:
    return make_ingestor(test_settings, notifier, store)


@pytest.fixture
def form_relay(test_settings: Settings, notifier: FakeNotifier) -> FormRequestRelay:
    return FormRequestRelay(test_settings, notifier=notifier, clock=fixed_clock)


@pytest.fixture
def unsubscribe_relay(
    test_settings: Settings, notifier: FakeNotifier, store: FakeObjectStore
) -> UnsubscribeRelay:
    return UnsubscribeRelay(test_settings, notifier=notifier, store=store, clock=fixed_clock)


@pytest_asyncio.fixture
async def client(
    ingestor: PaymentNotificationIngestor,
    form_relay: FormRequestRelay,
    unsubscribe_relay: UnsubscribeRelay,
    test_settings: Settings,
) -> AsyncGenerator[AsyncClient, Any]:
    """Create test HTTP client with services replaced by fakes."""
    app.dependency_overrides[get_ingestor] = lambda: ingestor
    app.dependency_overrides[get_form_relay] = lambda: form_relay
    app.dependency_overrides[get_unsubscribe_relay] = lambda: unsubscribe_relay
    app.dependency_overrides[get_health_check] = lambda: HealthCheck(test_settings)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def sample_ipn() -> Dict[str, Any]:
    """Sample NOWPayments-style IPN body."""
    return {
        "payment_id": "5077125051",
        "invoice_id": "4522625843",
        "payment_status": "finished",
        "pay_address": "0xd1cDE08A07cD25adEbEd35c3867a59228C09B606",
        "pay_amount": 0.0024,
        "actually_paid": 0.0024,
        "pay_currency": "eth",
        "order_id": "annual-membership",
        "customer_email": "buyer@example.com",
        "created_at": "2025-01-06T09:55:00.000Z",
        "updated_at": "2025-01-06T09:59:30.000Z",
    }
