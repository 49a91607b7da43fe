"""
Service wiring for the routes.

Built once per process (a warm serverless container reuses them) and
overridable through ``app.dependency_overrides`` in tests.
"""
from functools import lru_cache
from typing import Optional

from ipn_gateway.config import get_settings
from ipn_gateway.core import (
    FormRequestRelay,
    PaymentNotificationIngestor,
    UnsubscribeRelay,
    log_payment_completed,
)
from ipn_gateway.integrations import ChatWebhookNotifier, ObjectStore
from ipn_gateway.monitoring import HealthCheck


@lru_cache()
def get_notifier() -> Optional[ChatWebhookNotifier]:
    return ChatWebhookNotifier.from_settings(get_settings())


@lru_cache()
def get_object_store() -> Optional[ObjectStore]:
    return ObjectStore.from_settings(get_settings())


@lru_cache()
def get_ingestor() -> PaymentNotificationIngestor:
    ingestor = PaymentNotificationIngestor(
        get_settings(), notifier=get_notifier(), store=get_object_store()
    )
    ingestor.register_hook(log_payment_completed)
    return ingestor


@lru_cache()
def get_form_relay() -> FormRequestRelay:
    return FormRequestRelay(get_settings(), notifier=get_notifier())


@lru_cache()
def get_unsubscribe_relay() -> UnsubscribeRelay:
    return UnsubscribeRelay(get_settings(), notifier=get_notifier(), store=get_object_store())


@lru_cache()
def get_health_check() -> HealthCheck:
    return HealthCheck(get_settings())
