"""Normalized payment record built from a decoded IPN body."""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import ValidationError

PLACEHOLDER = "N/A"
UNKNOWN_STATUS = "unknown"


def is_missing(value: Any) -> bool:
    """A field is missing when absent, null, a blank string or an empty container."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def find_missing_fields(data: Mapping[str, Any], required_fields: Sequence[str]) -> List[str]:
    """Return every required field that is missing, in declaration order."""
    return [name for name in required_fields if is_missing(data.get(name))]


@dataclass(frozen=True)
class PaymentRecord:
    """
    Read-only view over the fields of one payment notification.

    Only ``payment_id`` is guaranteed; every other accessor falls back to a
    placeholder rather than failing.
    """

    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def from_fields(
        cls, data: Mapping[str, Any], required_fields: Sequence[str] = ("payment_id",)
    ) -> "PaymentRecord":
        """
        Validate decoded fields and build a record.

        Raises:
            ValidationError: Listing every missing required field, or when
                ``payment_id`` is not a string or number
        """
        required = list(required_fields)
        if "payment_id" not in required:
            required.insert(0, "payment_id")
        missing = find_missing_fields(data, required)
        if missing:
            raise ValidationError.for_missing(missing)

        # Used verbatim in archive keys and messages
        payment_id = data["payment_id"]
        if isinstance(payment_id, bool) or not isinstance(payment_id, (str, int, float)):
            raise ValidationError("payment_id must be a string or number")
        return cls(data)

    def get(self, name: str, default: Any = PLACEHOLDER) -> Any:
        value = self.fields.get(name)
        return default if is_missing(value) else value

    @property
    def payment_id(self) -> str:
        return str(self.fields["payment_id"])

    @property
    def status(self) -> str:
        return str(self.get("payment_status", UNKNOWN_STATUS))

    @property
    def contact_email(self) -> Optional[str]:
        """Customer e-mail, preferring ``email`` over ``customer_email``."""
        for name in ("email", "customer_email"):
            value = self.fields.get(name)
            if not is_missing(value):
                return str(value)
        return None

    @property
    def order_reference(self) -> Any:
        return self.get("order_id", self.get("invoice_id"))

    @property
    def amount_paid(self) -> Any:
        return self.get("actually_paid", self.get("pay_amount"))

    def is_successful(self, success_statuses: Sequence[str]) -> bool:
        return self.status.lower() in {s.lower() for s in success_statuses}

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.fields)
