"""
Inbound body model and normalization.

Processors deliver IPN payloads in different encodings depending on the
deployment: a JSON object, a JSON document wrapped in a string, or an
URL-encoded form. The body is captured once as an ``InboundBody`` tagged
with its kind, and ``normalize_body`` applies the fallback chain:

1. structured object -> used as-is
2. text -> JSON object
3. text that is not JSON -> URL-encoded key/value pairs (never fails; a
   stray string ends up without the required fields)
4. non-object JSON values -> ``PayloadFormatError``
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import parse_qsl

from .errors import PayloadFormatError


class BodyKind(str, Enum):
    """Shape of an inbound body."""

    STRUCTURED = "structured"
    TEXT = "text"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class InboundBody:
    """Raw request body tagged with its kind."""

    kind: BodyKind
    value: Union[Mapping[str, Any], str, Any]

    @classmethod
    def structured(cls, value: Mapping[str, Any]) -> "InboundBody":
        return cls(BodyKind.STRUCTURED, dict(value))

    @classmethod
    def text(cls, value: str) -> "InboundBody":
        return cls(BodyKind.TEXT, value)

    @classmethod
    def from_request(cls, raw: bytes, content_type: Optional[str] = None) -> "InboundBody":
        """
        Classify a raw HTTP body.

        A body sent as ``application/json`` is decoded the way web frameworks
        do it: an object becomes STRUCTURED, a JSON string becomes TEXT holding
        the inner string, any other JSON value is UNSUPPORTED. Everything else
        (form posts, plain text, JSON that failed to decode) is kept as TEXT
        for the normalizer's fallback chain.

        Raises:
            PayloadFormatError: If the body is not valid UTF-8
        """
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PayloadFormatError("Invalid IPN data format") from e

        media_type = (content_type or "").split(";", 1)[0].strip().lower()
        if media_type == "application/json" or media_type.endswith("+json"):
            try:
                decoded = json.loads(text)
            except ValueError:
                return cls.text(text)
            if isinstance(decoded, dict):
                return cls.structured(decoded)
            if isinstance(decoded, str):
                return cls.text(decoded)
            return cls(BodyKind.UNSUPPORTED, decoded)

        return cls.text(text)

    def canonical_bytes(self) -> bytes:
        """
        Serialization the IPN signature is computed over.

        Structured bodies are signed as compact JSON with sorted keys; text
        bodies are signed exactly as received.
        """
        if self.kind is BodyKind.STRUCTURED:
            serialized = json.dumps(
                self.value, sort_keys=True, separators=(",", ":"), ensure_ascii=False
            )
            return serialized.encode("utf-8")
        if self.kind is BodyKind.TEXT:
            return self.value.encode("utf-8")
        return json.dumps(self.value, separators=(",", ":")).encode("utf-8")


def _parse_urlencoded(text: str) -> Dict[str, str]:
    """
    Lenient form decoding: empty segments are dropped and a key without
    ``=`` maps to an empty string. Repeated keys: last value wins.
    """
    return dict(parse_qsl(text, keep_blank_values=True))


def normalize_body(body: InboundBody) -> Dict[str, Any]:
    """
    Decode an inbound body into a flat field mapping.

    Args:
        body: Tagged inbound body

    Returns:
        Dict[str, Any]: Decoded fields

    Raises:
        PayloadFormatError: If no decoding in the chain applies
    """
    if body.kind is BodyKind.STRUCTURED:
        return dict(body.value)

    if body.kind is BodyKind.TEXT:
        text = body.value.strip()
        if not text:
            return {}
        try:
            decoded = json.loads(text)
        except ValueError:
            return _parse_urlencoded(text)
        if isinstance(decoded, dict):
            return decoded
        if isinstance(decoded, str):
            # JSON document double-encoded as a JSON string
            return normalize_body(InboundBody.text(decoded))
        raise PayloadFormatError("Invalid IPN data format")

    raise PayloadFormatError("Unsupported IPN data format")
