"""Canonical request/result models shared by the search pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

ASCENDING = 1
DESCENDING = -1

MANDATORY_FIELDS = ("id", "type", "collection", "geometry", "bbox", "links", "assets")


@dataclass(frozen=True)
class SortField:
    """A requested sort key, as the client named it."""

    field: str
    direction: Literal["asc", "desc"] = "asc"

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "direction": self.direction}


@dataclass(frozen=True)
class FieldsSpec:
    """Include/exclude dotted paths for field projection."""

    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, List[str]]:
        return {"include": list(self.include), "exclude": list(self.exclude)}


@dataclass(frozen=True)
class DatetimeFilter:
    """Instant (``instant``) or interval (``start``/``end``, either open)."""

    instant: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    raw: str = ""

    @property
    def is_instant(self) -> bool:
        return self.instant is not None


@dataclass
class SearchRequest:
    """Canonical search request produced by the request normalizer."""

    collections: Optional[List[str]] = None
    ids: Optional[List[str]] = None
    bbox: Optional[List[float]] = None
    intersects: Optional[Dict[str, Any]] = None
    datetime: Optional[DatetimeFilter] = None
    query: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    sort: Optional[List[SortField]] = None
    fields: Optional[FieldsSpec] = None
    limit: int = 10
    page: int = 1
    method: Literal["GET", "POST"] = "GET"
    collection_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class ResultPage:
    """Raw records for one window plus the backend's match count."""

    items: List[Dict[str, Any]]
    matched: int
    offset: int = 0

    @property
    def returned(self) -> int:
        return len(self.items)

    @property
    def has_next(self) -> bool:
        return self.offset + self.returned < self.matched
