"""Upload payload normalization.

A message payload is classified once, when the upload node receives it,
into one of three kinds. Each kind has exactly one byte encoding.
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel


class PayloadKind(str, Enum):
    """Payload kind."""

    BYTES = "bytes"
    TEXT = "text"
    STRUCTURED = "structured"


class Payload(BaseModel):
    """Classified upload payload."""

    kind: PayloadKind
    value: Any

    @classmethod
    def from_value(cls, value: Any) -> "Payload":
        """Classify a raw message payload.

        Byte-like values are BYTES, str is TEXT, anything else
        (dicts, lists, numbers, booleans) is STRUCTURED.
        """
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(kind=PayloadKind.BYTES, value=bytes(value))
        if isinstance(value, str):
            return cls(kind=PayloadKind.TEXT, value=value)
        return cls(kind=PayloadKind.STRUCTURED, value=value)

    def to_bytes(self) -> bytes:
        """Encode the payload for upload.

        Raises:
            TypeError: Structured value is not JSON serializable
            ValueError: Structured value holds NaN or infinity
        """
        if self.kind is PayloadKind.BYTES:
            return self.value
        if self.kind is PayloadKind.TEXT:
            return self.value.encode("utf-8")
        return json.dumps(
            self.value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
