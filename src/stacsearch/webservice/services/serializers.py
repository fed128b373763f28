"""Serialization helpers for API responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from bson import ObjectId


def _to_jsonable(value: Any) -> Any:
    """Recursively normalize backend values (BSON ids, datetimes) for JSON responses."""
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items() if k != "_id"}
    return str(value)


def normalize_doc(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize one document for a JSON API response."""
    return _to_jsonable(doc)

