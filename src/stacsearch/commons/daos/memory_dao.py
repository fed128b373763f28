"""In-memory DAO module.

Evaluates the same MongoDB-style filter documents as :class:`MongoDBDAO`
against a list of items held in memory. Spatial predicates are delegated to
``shapely``. Useful for development and tests; not meant for large catalogs.
"""

import re
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import orjson
from shapely.errors import GEOSException
from shapely.geometry import shape

from stacsearch.commons.daos.docdb_dao_base import DocumentDBDAO, flatten_collection_properties
from stacsearch.commons.stac_logger import StacLogger
from stacsearch.commons.utils import to_rfc3339
from stacsearch.configs import MEMORY_FIXTURES_PATH

_MISSING = object()


def _get_path(doc: Dict[str, Any], field: str) -> Any:
    current: Any = doc
    for part in field.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        normalized = to_rfc3339(value)
        if normalized is not None:
            return normalized
    return value


def _compare(op: str, actual: Any, expected: Any) -> bool:
    if actual is _MISSING or actual is None:
        return False
    actual, expected = _comparable(actual), _comparable(expected)
    if isinstance(actual, bool) or isinstance(expected, bool):
        return False
    numeric = (int, float)
    if not (isinstance(actual, numeric) and isinstance(expected, numeric)) and type(actual) is not type(expected):
        return False
    if op == "$lt":
        return actual < expected
    if op == "$lte":
        return actual <= expected
    if op == "$gt":
        return actual > expected
    return actual >= expected


def _equals(actual: Any, expected: Any) -> bool:
    if actual is _MISSING:
        return expected is None
    if isinstance(actual, list) and not isinstance(expected, list):
        return any(_equals(a, expected) for a in actual)
    return _comparable(actual) == _comparable(expected)


def _geo_intersects(actual: Any, spec: Dict[str, Any]) -> bool:
    if not isinstance(actual, dict):
        return False
    try:
        return shape(actual).intersects(shape(spec["$geometry"]))
    except (GEOSException, AttributeError, KeyError, TypeError, ValueError) as e:
        StacLogger().debug(f"Skipping item with unreadable geometry: {e}")
        return False


def _match_operator(op: str, actual: Any, expected: Any) -> bool:
    if op == "$eq":
        return _equals(actual, expected)
    if op == "$ne":
        return not _equals(actual, expected)
    if op in ("$lt", "$lte", "$gt", "$gte"):
        if isinstance(actual, list):
            return any(_compare(op, a, expected) for a in actual)
        return _compare(op, actual, expected)
    if op == "$in":
        return any(_equals(actual, candidate) for candidate in expected)
    if op == "$regex":
        values = actual if isinstance(actual, list) else [actual]
        return any(isinstance(v, str) and re.search(expected, v) is not None for v in values)
    if op == "$geoIntersects":
        return _geo_intersects(actual, expected)
    raise NotImplementedError(f"Unsupported filter operator: {op}")


def _match_field(doc: Dict[str, Any], field: str, condition: Any) -> bool:
    actual = _get_path(doc, field)
    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        return all(_match_operator(op, actual, expected) for op, expected in condition.items())
    return _equals(actual, condition)


def matches(doc: Dict[str, Any], filter: Dict[str, Any]) -> bool:
    """Return whether ``doc`` satisfies the filter document."""
    for key, condition in filter.items():
        if key == "$and":
            if not all(matches(doc, clause) for clause in condition):
                return False
        elif key == "$or":
            if not any(matches(doc, clause) for clause in condition):
                return False
        elif key.startswith("$"):
            raise NotImplementedError(f"Unsupported filter operator: {key}")
        elif not _match_field(doc, key, condition):
            return False
    return True


def _sort_key(value: Any) -> Tuple[int, Any]:
    # Missing/null values sort first ascending, as in MongoDB.
    if value is _MISSING or value is None:
        return 0, 0
    if isinstance(value, bool):
        return 4, value
    if isinstance(value, (int, float)):
        return 1, value
    if isinstance(value, str):
        return 2, _comparable(value)
    return 3, orjson.dumps(value, option=orjson.OPT_SORT_KEYS)


class InMemoryDAO(DocumentDBDAO):
    """In-memory implementation of the search backend."""

    def __init__(
        self,
        items: Optional[Iterable[Dict[str, Any]]] = None,
        collections: Optional[Iterable[Dict[str, Any]]] = None,
        fixtures_path: Optional[str] = MEMORY_FIXTURES_PATH,
    ):
        self.logger = StacLogger()
        self._rw_lock = threading.Lock()
        self._sources: List[Dict[str, Any]] = []
        self._items: List[Dict[str, Any]] = []
        self._collections: Dict[str, Dict[str, Any]] = {}
        if items is None and collections is None and fixtures_path:
            items, collections = self._read_fixtures(Path(fixtures_path))
        self.load(items=items or [], collections=collections or [])

    def _read_fixtures(self, path: Path):
        self.logger.debug(f"Loading in-memory catalog from {path}")
        data = orjson.loads(path.read_bytes())
        return data.get("items", []), data.get("collections", [])

    def load(self, items: Iterable[Dict[str, Any]] = (), collections: Iterable[Dict[str, Any]] = ()):
        """Add catalog records; items with an existing ``(collection, id)`` replace the old ones.

        Collection properties are flattened into the served items again on
        every load, so a collection loaded after its items still applies.
        """
        with self._rw_lock:
            for collection in collections:
                self._collections[collection["id"]] = collection
            by_key = {(i.get("collection"), i.get("id")): n for n, i in enumerate(self._sources)}
            for item in items:
                key = (item.get("collection"), item.get("id"))
                if key in by_key:
                    self._sources[by_key[key]] = item
                else:
                    by_key[key] = len(self._sources)
                    self._sources.append(item)
            self._items = [
                flatten_collection_properties(item, self._collections.get(item.get("collection")))
                for item in self._sources
            ]

    def search(self, filter, sort, offset, limit) -> Tuple[List[Dict[str, Any]], int]:
        with self._rw_lock:
            snapshot = list(self._items)
        rs = [doc for doc in snapshot if matches(doc, filter or {})]
        for field, direction in reversed(sort or []):
            rs = sorted(rs, key=lambda doc: _sort_key(_get_path(doc, field)), reverse=(direction == -1))
        return rs[offset : offset + limit], len(rs)

    def get_item(self, collection_id: str, item_id: str) -> Optional[Dict[str, Any]]:
        with self._rw_lock:
            for item in self._items:
                if item.get("collection") == collection_id and item.get("id") == item_id:
                    return item
        return None

    def get_collection(self, collection_id: str) -> Optional[Dict[str, Any]]:
        with self._rw_lock:
            return self._collections.get(collection_id)

    def list_collections(self) -> List[Dict[str, Any]]:
        with self._rw_lock:
            return [self._collections[k] for k in sorted(self._collections)]
