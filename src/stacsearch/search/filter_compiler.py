"""Filter compiler: canonical search request -> backend filter document.

The compiled query is a MongoDB-style filter. Each present dimension adds one
clause and all clauses are AND-ed; absent dimensions add nothing.
"""

from __future__ import annotations

import re
from enum import Enum
from numbers import Real
from typing import Any, Dict, List, Optional, Tuple

from stacsearch.commons.errors import ValidationError
from stacsearch.commons.stac_logger import StacLogger
from stacsearch.search.fields import to_backend_field
from stacsearch.search.models import DatetimeFilter, SearchRequest

GEOMETRY_FIELD = "geometry"
MAX_BOX_SPAN = 90.0
BIG_POLYGON_CRS = {"type": "name", "properties": {"name": "urn:x-mongodb:crs:strictwinding:EPSG:4326"}}
DATETIME_FIELD = "properties.datetime"
START_DATETIME_FIELD = "properties.start_datetime"
END_DATETIME_FIELD = "properties.end_datetime"


class QueryOperator(str, Enum):
    """Closed set of property predicates accepted in ``query``."""

    EQ = "eq"
    NEQ = "neq"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    IN = "in"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    CONTAINS = "contains"


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, bool, Real))


def _is_orderable(value: Any) -> bool:
    return isinstance(value, (str, Real)) and not isinstance(value, bool)


def _compile_operator(field: str, op: QueryOperator, value: Any, error_field: str) -> Dict[str, Any]:
    if op in (QueryOperator.EQ, QueryOperator.NEQ):
        if not _is_scalar(value):
            raise ValidationError(error_field, "expected a string, number, boolean or null.")
        return {field: {"$eq" if op is QueryOperator.EQ else "$ne": value}}
    if op in (QueryOperator.LT, QueryOperator.LTE, QueryOperator.GT, QueryOperator.GTE):
        if not _is_orderable(value):
            raise ValidationError(error_field, "expected a string or a number.")
        return {field: {f"${op.value}": value}}
    if op is QueryOperator.IN:
        if not isinstance(value, list) or not value or not all(_is_scalar(v) for v in value):
            raise ValidationError(error_field, "expected a non-empty list of scalar values.")
        return {field: {"$in": list(value)}}
    if not isinstance(value, str):
        raise ValidationError(error_field, "expected a string.")
    escaped = re.escape(value)
    if op is QueryOperator.STARTS_WITH:
        return {field: {"$regex": f"^{escaped}"}}
    if op is QueryOperator.ENDS_WITH:
        return {field: {"$regex": f"{escaped}$"}}
    return {field: {"$regex": escaped}}


def compile_query_predicates(query: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Compile ``query`` into one clause per (property, operator) pair."""
    clauses = []
    for prop in sorted(query):
        field = to_backend_field(prop, error_field=f"query.{prop}")
        ops = query[prop]
        if not isinstance(ops, dict) or not ops:
            raise ValidationError(f"query.{prop}", "expected a non-empty object of operator to value.")
        for op_name in sorted(ops):
            error_field = f"query.{prop}.{op_name}"
            try:
                op = QueryOperator(op_name)
            except ValueError as exc:
                raise ValidationError(error_field, f"unsupported operator '{op_name}'.") from exc
            clauses.append(_compile_operator(field, op, ops[op_name], error_field))
    return clauses


def _box_polygon(west: float, south: float, east: float, north: float) -> Dict[str, Any]:
    # Counter-clockwise ring, as the strict-winding CRS requires.
    return {
        "type": "Polygon",
        "coordinates": [[[west, south], [east, south], [east, north], [west, north], [west, south]]],
        "crs": dict(BIG_POLYGON_CRS),
    }


def _geo_intersects(geometry: Dict[str, Any]) -> Dict[str, Any]:
    return {GEOMETRY_FIELD: {"$geoIntersects": {"$geometry": geometry}}}


def _longitude_spans(west: float, east: float) -> List[Tuple[float, float]]:
    """Split ``west..east`` at the antimeridian, then into pieces at most ``MAX_BOX_SPAN`` wide."""
    spans = [(west, 180.0), (-180.0, east)] if west > east else [(west, east)]
    pieces: List[Tuple[float, float]] = []
    for lo, hi in spans:
        while hi - lo > MAX_BOX_SPAN:
            pieces.append((lo, lo + MAX_BOX_SPAN))
            lo += MAX_BOX_SPAN
        pieces.append((lo, hi))
    return pieces


def compile_bbox(bbox: List[float]) -> Dict[str, Any]:
    """Envelope-intersects clause.

    MongoDB draws polygon edges as great-circle arcs, so boxes crossing the
    antimeridian or wider than ``MAX_BOX_SPAN`` degrees become OR-ed boxes.
    """
    if len(bbox) == 6:
        west, south, east, north = bbox[0], bbox[1], bbox[3], bbox[4]
    else:
        west, south, east, north = bbox
    clauses = [_geo_intersects(_box_polygon(lo, south, hi, north)) for lo, hi in _longitude_spans(west, east)]
    if len(clauses) == 1:
        return clauses[0]
    return {"$or": clauses}


def compile_datetime(dt: DatetimeFilter) -> Dict[str, Any]:
    """Temporal clause matching point items and items with a start/end extent."""
    if dt.is_instant:
        return {
            "$or": [
                {DATETIME_FIELD: dt.instant},
                {START_DATETIME_FIELD: {"$lte": dt.instant}, END_DATETIME_FIELD: {"$gte": dt.instant}},
            ]
        }
    point_range: Dict[str, Any] = {}
    extent: Dict[str, Any] = {}
    if dt.start is not None:
        point_range["$gte"] = dt.start
        extent[END_DATETIME_FIELD] = {"$gte": dt.start}
    if dt.end is not None:
        point_range["$lte"] = dt.end
        extent[START_DATETIME_FIELD] = {"$lte": dt.end}
    return {"$or": [{DATETIME_FIELD: point_range}, extent]}


def _spatial_clause(request: SearchRequest) -> Optional[Dict[str, Any]]:
    if request.intersects is not None:
        if request.bbox is not None:
            StacLogger().debug("Both 'intersects' and 'bbox' given; 'bbox' is ignored.")
        return _geo_intersects(request.intersects)
    if request.bbox is not None:
        return compile_bbox(request.bbox)
    return None


def compile_filter(request: SearchRequest) -> Dict[str, Any]:
    """Compile every filter dimension of ``request`` into one filter document.

    Raises
    ------
    ValidationError
        For unknown operators, mistyped operator values or unsupported paths.
    """
    clauses: List[Dict[str, Any]] = []
    if request.ids is not None:
        clauses.append({"id": {"$in": list(request.ids)}})
    if request.collections is not None:
        clauses.append({"collection": {"$in": list(request.collections)}})
    spatial = _spatial_clause(request)
    if spatial is not None:
        clauses.append(spatial)
    if request.datetime is not None:
        clauses.append(compile_datetime(request.datetime))
    if request.query:
        clauses.extend(compile_query_predicates(request.query))

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}
