"""
Content hashes for configuration checksums and engine fingerprints.

Equal content hashes equally: mapping keys are sorted, ``Decimal`` values
are normalized (``25`` and ``25.00`` agree) and sets are sorted.
"""

import hashlib
import json
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def _encode_extra(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value.normalize())
    if isinstance(value, date):  # datetime included
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(map(str, value))
    raise TypeError(f"Cannot hash value of type {type(value).__name__}")


def canonicalize_json(data: Any) -> str:
    """Compact JSON with sorted keys; the input to ``hash_payload``."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=_encode_extra)


def hash_payload(data: Any) -> str:
    """Hex SHA-256 of ``canonicalize_json(data)``."""
    return hashlib.sha256(canonicalize_json(data).encode("utf-8")).hexdigest()
