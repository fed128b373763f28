"""Pagination controller.

Runs the compiled query for one page window against the backend and derives
the navigation links. Links are built from the canonical request before any
field projection, re-encoded in the transport the client used. Each returned
item also gets its own self, parent, collection and root links.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import orjson

from stacsearch.commons.daos.docdb_dao_base import DocumentDBDAO
from stacsearch.commons.errors import BackendError
from stacsearch.commons.stac_logger import StacLogger
from stacsearch.search.models import ResultPage, SearchRequest

GEOJSON_MEDIA_TYPE = "application/geo+json"
JSON_MEDIA_TYPE = "application/json"


def fetch_page(
    dao: DocumentDBDAO,
    filter: Dict[str, Any],
    sort: List[Tuple[str, int]],
    request: SearchRequest,
) -> ResultPage:
    """Fetch the window ``[(page - 1) * limit, page * limit)``.

    Raises
    ------
    BackendError
        For any backend failure or malformed backend answer. The underlying
        error is logged, never propagated to the caller.
    """
    logger = StacLogger()
    offset = request.offset
    try:
        result = dao.search(filter=filter, sort=sort, offset=offset, limit=request.limit)
    except BackendError:
        raise
    except Exception as e:
        logger.exception(e)
        raise BackendError() from e

    try:
        items, matched = result
        items = list(items)
        matched = int(matched)
    except (TypeError, ValueError) as e:
        logger.error(f"Malformed backend response of type {type(result).__name__}.")
        raise BackendError() from e
    if any(not isinstance(item, dict) for item in items):
        logger.error("Malformed backend response: items must be documents.")
        raise BackendError()

    if len(items) > request.limit:
        items = items[: request.limit]
    if items:
        matched = max(matched, offset + len(items))
    logger.debug(f"Backend returned {len(items)} of {matched} matched items at offset {offset}.")
    return ResultPage(items=items, matched=matched, offset=offset)


def canonical_params(request: SearchRequest, page: int) -> Dict[str, Any]:
    """Rebuild the full search state of ``request`` with native values, at ``page``."""
    params: Dict[str, Any] = {}
    if request.collections is not None and request.collection_id is None:
        params["collections"] = list(request.collections)
    if request.ids is not None:
        params["ids"] = list(request.ids)
    if request.bbox is not None:
        params["bbox"] = list(request.bbox)
    if request.intersects is not None:
        params["intersects"] = request.intersects
    if request.datetime is not None:
        params["datetime"] = request.datetime.raw
    if request.query:
        params["query"] = request.query
    if request.sort:
        params["sort"] = [s.to_dict() for s in request.sort]
    if request.fields is not None:
        params["fields"] = request.fields.to_dict()
    params["limit"] = request.limit
    params["page"] = page
    return params


def _json_text(value: Any) -> str:
    return orjson.dumps(value).decode("utf-8")


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(value)


def encode_query_string(params: Dict[str, Any]) -> str:
    """Encode canonical params for a GET link; structured values become JSON strings."""
    encoded: Dict[str, str] = {}
    for key, value in params.items():
        if key in ("collections", "ids"):
            encoded[key] = ",".join(value)
        elif key == "bbox":
            encoded[key] = ",".join(_format_number(v) for v in value)
        elif isinstance(value, (dict, list)):
            encoded[key] = _json_text(value)
        else:
            encoded[key] = str(value)
    return urlencode(encoded)


def _raw_query_string(raw: Dict[str, Any]) -> str:
    return urlencode({k: v if isinstance(v, str) else _json_text(v) for k, v in raw.items()})


def _page_link(rel: str, href: str, request: SearchRequest, page: int) -> Dict[str, Any]:
    params = canonical_params(request, page)
    if request.method == "POST":
        return {"rel": rel, "href": href, "type": GEOJSON_MEDIA_TYPE, "method": "POST", "body": params, "merge": False}
    return {"rel": rel, "href": f"{href}?{encode_query_string(params)}", "type": GEOJSON_MEDIA_TYPE}


def search_path(collection_id: Optional[str]) -> str:
    return f"/collections/{collection_id}/items" if collection_id else "/search"


def build_links(request: SearchRequest, page: ResultPage, endpoint: str) -> List[Dict[str, Any]]:
    """Derive ``self``, ``root``, ``collection``, ``prev`` and ``next`` links."""
    endpoint = endpoint.rstrip("/")
    href = f"{endpoint}{search_path(request.collection_id)}"

    if request.method == "POST":
        self_link = {"rel": "self", "href": href, "type": GEOJSON_MEDIA_TYPE, "method": "POST", "body": request.raw}
    else:
        query_string = _raw_query_string(request.raw)
        self_link = {"rel": "self", "href": f"{href}?{query_string}" if query_string else href, "type": GEOJSON_MEDIA_TYPE}

    links = [self_link, {"rel": "root", "href": f"{endpoint}/", "type": JSON_MEDIA_TYPE}]
    if request.collection_id is not None:
        links.append(
            {"rel": "collection", "href": f"{endpoint}/collections/{request.collection_id}", "type": JSON_MEDIA_TYPE}
        )
    if request.page > 1:
        links.append(_page_link("prev", href, request, request.page - 1))
    if page.has_next:
        links.append(_page_link("next", href, request, request.page + 1))
    return links


def without_rels(links: Any, rels) -> List[Dict[str, Any]]:
    """Keep the dict links whose ``rel`` is not in ``rels``."""
    if not isinstance(links, list):
        return []
    return [link for link in links if isinstance(link, dict) and link.get("rel") not in rels]


def decorate_item(item: Dict[str, Any], endpoint: str) -> Dict[str, Any]:
    """Return a copy of ``item`` with API navigation links."""
    base = endpoint.rstrip("/")
    collection_href = f"{base}/collections/{item.get('collection')}"
    doc = deepcopy(item)
    doc["links"] = without_rels(doc.get("links"), {"self", "root", "parent", "collection"}) + [
        {"rel": "self", "href": f"{collection_href}/items/{item.get('id')}", "type": GEOJSON_MEDIA_TYPE},
        {"rel": "parent", "href": collection_href, "type": JSON_MEDIA_TYPE},
        {"rel": "collection", "href": collection_href, "type": JSON_MEDIA_TYPE},
        {"rel": "root", "href": f"{base}/", "type": JSON_MEDIA_TYPE},
    ]
    return doc
