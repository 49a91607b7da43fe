"""Archive entries and object keys for audit records."""
import json
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from .record import PaymentRecord

SUFFIX_LENGTH = 10


def random_suffix() -> str:
    """Disambiguator so repeated notifications never overwrite each other."""
    return uuid.uuid4().hex[:SUFFIX_LENGTH]


def _date_partition(moment: datetime) -> str:
    return moment.date().isoformat()


def payment_archive_key(
    prefix: str, payment_id: str, received_at: datetime, suffix: Optional[str] = None
) -> str:
    """``<prefix>/<YYYY-MM-DD>_<payment_id>_<suffix>.json``"""
    suffix = suffix or random_suffix()
    safe_id = str(payment_id).replace("/", "_")
    return f"{prefix.strip('/')}/{_date_partition(received_at)}_{safe_id}_{suffix}.json"


def unsubscribe_archive_key(
    prefix: str, requested_at: datetime, suffix: Optional[str] = None
) -> str:
    """``<prefix>/<YYYY-MM-DD>_<suffix>.txt``"""
    suffix = suffix or random_suffix()
    return f"{prefix.strip('/')}/{_date_partition(requested_at)}_{suffix}.txt"


def build_archive_entry(
    record: PaymentRecord, received_at: datetime, verified: bool, source: str
) -> Dict[str, Any]:
    """Original IPN fields plus ingestion metadata."""
    entry = record.to_dict()
    entry.update(
        {
            "ipn_received_at": received_at.isoformat(),
            "ipn_verified": verified,
            "source": source,
        }
    )
    return entry


def build_unsubscribe_entry(email: str, requested_at: datetime) -> Dict[str, Any]:
    return {
        "cancel_subscribe": 1,
        "user_email": email,
        "requested_at": requested_at.isoformat(),
    }


def serialize_entry(entry: Dict[str, Any]) -> bytes:
    return json.dumps(entry, indent=2, ensure_ascii=False, default=str).encode("utf-8")
