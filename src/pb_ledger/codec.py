"""JSON codec for ledger records.

Records are stored with camelCase field names and ISO-8601 timestamps so
both backends hold byte-compatible values.
"""

import json
from datetime import datetime
from typing import Any

from src.pb_common.datetime_utils import parse_timestamp
from src.pb_common.errors import StoreUnavailableError


def dumps(record: dict[str, Any]) -> str:
    return json.dumps(record, separators=(",", ":"))


def loads(key: str, raw: str) -> dict[str, Any]:
    """Decode a stored record; a corrupt value is a store failure, not a domain error."""
    try:
        record = json.loads(raw)
    except ValueError as e:
        raise StoreUnavailableError(f"corrupt record at {key}: {e}") from e
    if not isinstance(record, dict):
        raise StoreUnavailableError(f"corrupt record at {key}: not an object")
    return record


def ts_out(dt: datetime) -> str:
    return dt.isoformat()


def ts_in(value: str) -> datetime:
    return parse_timestamp(value)
