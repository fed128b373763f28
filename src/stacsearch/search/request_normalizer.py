"""Request normalizer.

Turns the loosely typed parameters of a GET query string or a POST JSON body
into one canonical :class:`~stacsearch.search.models.SearchRequest`. This is
the only module that knows about the two transport encodings; every later
stage sees the canonical shape.

Accepted shapes per field:

- ``collections`` / ``ids``: list of strings, or a comma separated string.
- ``bbox``: list of 4 or 6 numbers, or a comma separated string.
- ``intersects`` / ``query``: object, or a JSON string (optionally URL-encoded).
- ``sort``: list of ``{"field", "direction"}``, a JSON string of that list, or
  the GET shorthand ``"-eo:cloud_cover,+id"``.
- ``fields``: ``{"include": [...], "exclude": [...]}``, a JSON string of it, or
  the GET shorthand ``"id,properties.datetime,-geometry"``.
- ``datetime``: RFC 3339 instant or ``start/end`` with ``..`` (or empty) for an
  open side.
- ``limit`` / ``page``: integers or integer strings.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import orjson
from shapely.geometry import shape

from stacsearch.commons.errors import ValidationError
from stacsearch.commons.stac_logger import StacLogger
from stacsearch.commons.utils import to_rfc3339
from stacsearch.configs import SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT
from stacsearch.search.models import DatetimeFilter, FieldsSpec, SearchRequest, SortField

KNOWN_PARAMETERS = {
    "collections",
    "ids",
    "bbox",
    "intersects",
    "datetime",
    "query",
    "sort",
    "sortby",
    "fields",
    "limit",
    "page",
}
GEOJSON_GEOMETRY_TYPES = {
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "GeometryCollection",
}
OPEN_INTERVAL_MARKERS = ("", "..")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _decode_json(field: str, value: Any) -> Any:
    """Decode a JSON string (optionally URL-encoded); native values pass through."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if text.startswith("%"):
        text = unquote(text)
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError as exc:
        raise ValidationError(field, f"could not decode JSON value: {exc}") from exc


def _looks_like_json(value: str) -> bool:
    text = value.strip()
    return text.startswith(("[", "{", "%5B", "%5b", "%7B", "%7b"))


def _string_list(field: str, value: Any) -> List[str]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = list(value)
    else:
        raise ValidationError(field, "expected a list of strings or a comma separated string.")
    result = []
    for item in items:
        if not isinstance(item, str):
            raise ValidationError(field, "all values must be strings.")
        item = item.strip()
        if item and item not in result:
            result.append(item)
    return result


def _parse_bbox(value: Any) -> List[float]:
    if isinstance(value, str):
        value = _decode_json("bbox", value) if _looks_like_json(value) else value.split(",")
    if not isinstance(value, (list, tuple)):
        raise ValidationError("bbox", "expected 4 or 6 numbers.")
    if len(value) not in (4, 6):
        raise ValidationError("bbox", f"expected 4 or 6 numbers, got {len(value)}.")
    try:
        bbox = [float(v) for v in value]
    except (TypeError, ValueError) as exc:
        raise ValidationError("bbox", "all values must be numbers.") from exc
    south, north = (bbox[1], bbox[3]) if len(bbox) == 4 else (bbox[1], bbox[4])
    if south > north:
        raise ValidationError("bbox", "south latitude must not exceed north latitude.")
    if any(abs(lat) > 90 for lat in (south, north)):
        raise ValidationError("bbox", "latitudes must be within [-90, 90].")
    return bbox


def _parse_intersects(value: Any) -> Dict[str, Any]:
    geometry = _decode_json("intersects", value)
    if not isinstance(geometry, dict) or geometry.get("type") not in GEOJSON_GEOMETRY_TYPES:
        raise ValidationError("intersects", "expected a GeoJSON geometry object.")
    try:
        shape(geometry)
    except Exception as exc:
        raise ValidationError("intersects", f"invalid GeoJSON geometry: {exc}") from exc
    return geometry


def _parse_instant(field: str, text: str) -> str:
    normalized = to_rfc3339(text)
    if normalized is None:
        raise ValidationError(field, f"'{text}' is not an RFC 3339 datetime.")
    return normalized


def _parse_datetime(value: Any) -> DatetimeFilter:
    if not isinstance(value, str):
        raise ValidationError("datetime", "expected an RFC 3339 datetime or interval string.")
    raw = value.strip()
    if "/" not in raw:
        return DatetimeFilter(instant=_parse_instant("datetime", raw), raw=raw)
    parts = raw.split("/")
    if len(parts) != 2:
        raise ValidationError("datetime", "an interval must have exactly one '/'.")
    start_text, end_text = (p.strip() for p in parts)
    if start_text in OPEN_INTERVAL_MARKERS and end_text in OPEN_INTERVAL_MARKERS:
        raise ValidationError("datetime", "an interval must be closed on at least one side.")
    start = None if start_text in OPEN_INTERVAL_MARKERS else _parse_instant("datetime", start_text)
    end = None if end_text in OPEN_INTERVAL_MARKERS else _parse_instant("datetime", end_text)
    if start is not None and end is not None and start > end:
        raise ValidationError("datetime", "interval start must not be after its end.")
    return DatetimeFilter(start=start, end=end, raw=raw)


def _parse_query(value: Any) -> Dict[str, Dict[str, Any]]:
    query = _decode_json("query", value)
    if not isinstance(query, dict):
        raise ValidationError("query", "expected an object mapping property names to operators.")
    for prop, ops in query.items():
        if not isinstance(ops, dict) or not ops:
            raise ValidationError(f"query.{prop}", "expected a non-empty object of operator to value.")
    return query


def _parse_sort(value: Any) -> List[SortField]:
    if isinstance(value, str) and not _looks_like_json(value):
        entries = []
        for token in value.split(","):
            token = token.strip()
            if not token:
                continue
            if token[0] in "+-":
                entries.append({"field": token[1:], "direction": "desc" if token[0] == "-" else "asc"})
            else:
                entries.append({"field": token, "direction": "asc"})
    else:
        entries = _decode_json("sort", value)
    if not isinstance(entries, list):
        raise ValidationError("sort", "expected a list of {field, direction} objects.")
    result = []
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("field"), str) or not entry["field"].strip():
            raise ValidationError("sort", "each entry needs a non-empty 'field'.")
        direction = str(entry.get("direction", "asc")).lower()
        if direction not in ("asc", "desc"):
            raise ValidationError("sort", f"unsupported direction '{entry.get('direction')}'.")
        result.append(SortField(field=entry["field"].strip(), direction=direction))
    return result


def _parse_fields(value: Any) -> FieldsSpec:
    if isinstance(value, str) and not _looks_like_json(value):
        include, exclude = [], []
        for token in value.split(","):
            token = token.strip()
            if not token:
                continue
            if token.startswith("-"):
                exclude.append(token[1:])
            else:
                include.append(token[1:] if token.startswith("+") else token)
        spec = {"include": include, "exclude": exclude}
    else:
        spec = _decode_json("fields", value)
    if not isinstance(spec, dict):
        raise ValidationError("fields", "expected an object with 'include' and/or 'exclude'.")
    include = _string_list("fields.include", spec.get("include") or [])
    exclude = _string_list("fields.exclude", spec.get("exclude") or [])
    return FieldsSpec(include=tuple(include), exclude=tuple(exclude))


def _parse_positive_int(field: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(field, "expected a positive integer.")
    try:
        number = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(field, "expected a positive integer.") from exc
    if isinstance(value, float) and value != number:
        raise ValidationError(field, "expected a positive integer.")
    if number <= 0:
        raise ValidationError(field, "must be greater than zero.")
    return number


def _merge_scope(collections: Optional[List[str]], collection_id: Optional[str]) -> Optional[List[str]]:
    """Merge the path-scoped collection into ``collections``.

    A body that names other collections than the scope yields an empty list,
    which matches nothing.
    """
    if collection_id is None:
        return collections
    if collections is None:
        return [collection_id]
    return [c for c in collections if c == collection_id]


def normalize_request(
    params: Optional[Dict[str, Any]],
    method: str = "GET",
    collection_id: Optional[str] = None,
    default_limit: int = SEARCH_DEFAULT_LIMIT,
    max_limit: int = SEARCH_MAX_LIMIT,
) -> SearchRequest:
    """Build a canonical search request from raw transport parameters.

    Parameters
    ----------
    params : dict
        Query-string parameters (GET) or JSON body (POST).
    method : str
        ``GET`` or ``POST``; recorded so links can re-encode the same way.
    collection_id : str, optional
        Collection scope from ``/collections/{id}/items``.
    default_limit, max_limit : int
        Page size default and clamp.

    Raises
    ------
    ValidationError
        Naming the first offending field.
    """
    params = dict(params or {})
    method = method.upper()
    if method not in ("GET", "POST"):
        raise ValidationError("method", f"unsupported method '{method}'.")

    unknown = set(params) - KNOWN_PARAMETERS
    if unknown:
        StacLogger().debug(f"Ignoring unknown search parameters: {sorted(unknown)}")

    request = SearchRequest(method=method, collection_id=collection_id, raw=params, limit=default_limit)

    collections = None
    if not _is_blank(params.get("collections")):
        collections = _string_list("collections", params["collections"])
    request.collections = _merge_scope(collections, collection_id)

    if not _is_blank(params.get("ids")):
        request.ids = _string_list("ids", params["ids"])
    if not _is_blank(params.get("bbox")):
        request.bbox = _parse_bbox(params["bbox"])
    if not _is_blank(params.get("intersects")):
        request.intersects = _parse_intersects(params["intersects"])
    if not _is_blank(params.get("datetime")):
        request.datetime = _parse_datetime(params["datetime"])
    if not _is_blank(params.get("query")):
        request.query = _parse_query(params["query"])

    sort_value = params.get("sort", params.get("sortby"))
    if not _is_blank(sort_value):
        request.sort = _parse_sort(sort_value) or None
    if params.get("fields") is not None and not (isinstance(params["fields"], str) and not params["fields"].strip()):
        request.fields = _parse_fields(params["fields"])

    if not _is_blank(params.get("limit")):
        request.limit = min(_parse_positive_int("limit", params["limit"]), max_limit)
    if not _is_blank(params.get("page")):
        request.page = _parse_positive_int("page", params["page"])

    return request
