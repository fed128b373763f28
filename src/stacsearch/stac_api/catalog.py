"""Landing page, conformance and link decoration for catalog documents."""

from copy import deepcopy
from typing import Any, Dict, List

from stacsearch.configs import STAC_API_DESCRIPTION, STAC_API_ID, STAC_API_TITLE, STAC_VERSION
from stacsearch.search.pagination import GEOJSON_MEDIA_TYPE, JSON_MEDIA_TYPE, without_rels

CONFORMANCE_CLASSES = [
    "https://api.stacspec.org/v1.0.0/core",
    "https://api.stacspec.org/v1.0.0/collections",
    "https://api.stacspec.org/v1.0.0/ogcapi-features",
    "https://api.stacspec.org/v1.0.0/item-search",
    "https://api.stacspec.org/v1.0.0/item-search#fields",
    "https://api.stacspec.org/v1.0.0/item-search#sort",
    "https://api.stacspec.org/v1.0.0/item-search#query",
    "https://api.stacspec.org/v1.0.0/item-search#context",
    "https://api.stacspec.org/v1.0.0/ogcapi-features#fields",
    "https://api.stacspec.org/v1.0.0/ogcapi-features#sort",
    "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/core",
    "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/oas30",
    "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/geojson",
]

OPENAPI_MEDIA_TYPE = "application/vnd.oai.openapi+json;version=3.0"


def _base(endpoint: str) -> str:
    return endpoint.rstrip("/")


def landing_page(endpoint: str) -> Dict[str, Any]:
    """Root catalog with conformance classes and navigation links."""
    base = _base(endpoint)
    return {
        "type": "Catalog",
        "stac_version": STAC_VERSION,
        "id": STAC_API_ID,
        "title": STAC_API_TITLE,
        "description": STAC_API_DESCRIPTION,
        "conformsTo": list(CONFORMANCE_CLASSES),
        "links": [
            {"rel": "self", "href": f"{base}/", "type": JSON_MEDIA_TYPE},
            {"rel": "root", "href": f"{base}/", "type": JSON_MEDIA_TYPE},
            {"rel": "conformance", "href": f"{base}/conformance", "type": JSON_MEDIA_TYPE},
            {"rel": "data", "href": f"{base}/collections", "type": JSON_MEDIA_TYPE},
            {"rel": "service-desc", "href": f"{base}/api", "type": OPENAPI_MEDIA_TYPE},
            {"rel": "service-doc", "href": f"{base}/docs", "type": "text/html"},
            {"rel": "search", "href": f"{base}/search", "type": GEOJSON_MEDIA_TYPE, "method": "GET"},
            {"rel": "search", "href": f"{base}/search", "type": GEOJSON_MEDIA_TYPE, "method": "POST"},
        ],
    }


def conformance() -> Dict[str, List[str]]:
    return {"conformsTo": list(CONFORMANCE_CLASSES)}


def decorate_collection(collection: Dict[str, Any], endpoint: str) -> Dict[str, Any]:
    """Return a copy of ``collection`` with API navigation links."""
    base = _base(endpoint)
    collection_id = collection["id"]
    doc = deepcopy(collection)
    doc["links"] = without_rels(doc.get("links"), {"self", "root", "parent", "items"}) + [
        {"rel": "self", "href": f"{base}/collections/{collection_id}", "type": JSON_MEDIA_TYPE},
        {"rel": "root", "href": f"{base}/", "type": JSON_MEDIA_TYPE},
        {"rel": "parent", "href": f"{base}/", "type": JSON_MEDIA_TYPE},
        {"rel": "items", "href": f"{base}/collections/{collection_id}/items", "type": GEOJSON_MEDIA_TYPE},
    ]
    return doc
