"""Collection and item endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from stacsearch.stac_api.db_api import StacDBAPI
from stacsearch.webservice.deps import get_db_api
from stacsearch.webservice.routers.search import SEARCH_ERRORS, body_params, query_params
from stacsearch.webservice.schemas.common import CollectionsResponse, ErrorResponse, SearchBody, SearchResponse
from stacsearch.webservice.services.endpoint import determine_endpoint
from stacsearch.webservice.services.serializers import normalize_doc

router = APIRouter(prefix="/collections", tags=["collections"])

NOT_FOUND = {404: {"model": ErrorResponse}}


@router.get("", response_model=CollectionsResponse)
def list_collections(request: Request, db: StacDBAPI = Depends(get_db_api)) -> Dict[str, Any]:
    """List collections."""
    return normalize_doc(db.list_collections(endpoint=determine_endpoint(request)))


@router.get("/{collection_id}", response_model=Dict[str, Any], responses=NOT_FOUND)
def get_collection(collection_id: str, request: Request, db: StacDBAPI = Depends(get_db_api)) -> Dict[str, Any]:
    """Get a collection by id."""
    return normalize_doc(db.get_collection(collection_id, endpoint=determine_endpoint(request)))


@router.get("/{collection_id}/items", response_model=SearchResponse, responses={**SEARCH_ERRORS, **NOT_FOUND})
def get_collection_items(
    collection_id: str, request: Request, db: StacDBAPI = Depends(get_db_api)
) -> Dict[str, Any]:
    """Search the items of one collection with query-string parameters."""
    result = db.search_items(
        query_params(request), method="GET", collection_id=collection_id, endpoint=determine_endpoint(request)
    )
    return normalize_doc(result)


@router.post("/{collection_id}/items", response_model=SearchResponse, responses={**SEARCH_ERRORS, **NOT_FOUND})
def post_collection_items(
    collection_id: str,
    request: Request,
    payload: Optional[SearchBody] = None,
    db: StacDBAPI = Depends(get_db_api),
) -> Dict[str, Any]:
    """Search the items of one collection with a JSON body."""
    result = db.search_items(
        body_params(payload), method="POST", collection_id=collection_id, endpoint=determine_endpoint(request)
    )
    return normalize_doc(result)


@router.get("/{collection_id}/items/{item_id}", response_model=Dict[str, Any], responses=NOT_FOUND)
def get_item(collection_id: str, item_id: str, request: Request, db: StacDBAPI = Depends(get_db_api)):
    """Get an item by collection and id."""
    return normalize_doc(db.get_item(collection_id, item_id, endpoint=determine_endpoint(request)))
