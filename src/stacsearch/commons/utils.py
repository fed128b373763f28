"""Utilities."""

import re
from datetime import datetime, timezone
from typing import Any, Optional

_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 / ISO 8601 value into an aware UTC datetime, or ``None``."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if not _DATE_PREFIX.match(text):
            return None
        text = text.replace("z", "Z").replace("Z", "+00:00")
        if len(text) > 10 and text[10] in ("t", " "):
            text = text[:10] + "T" + text[11:]
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_rfc3339(value: Any) -> Optional[str]:
    """Return the canonical UTC form ``YYYY-MM-DDTHH:MM:SS.ffffffZ``.

    All temporal comparisons run on this form, so lexical and chronological
    order agree.
    """
    dt = parse_datetime(value)
    if dt is None:
        return None
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
