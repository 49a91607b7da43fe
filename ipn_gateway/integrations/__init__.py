"""External integrations: chat webhook and object storage."""
from .notifier import ChatWebhookNotifier
from .object_store import ObjectStore

__all__ = ["ChatWebhookNotifier", "ObjectStore"]
