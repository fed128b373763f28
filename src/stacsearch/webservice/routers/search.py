"""Item search endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from stacsearch.stac_api.db_api import StacDBAPI
from stacsearch.webservice.deps import get_db_api
from stacsearch.webservice.schemas.common import ErrorResponse, SearchBody, SearchResponse
from stacsearch.webservice.services.endpoint import determine_endpoint
from stacsearch.webservice.services.serializers import normalize_doc

router = APIRouter(tags=["search"])

SEARCH_ERRORS = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}

REPEATABLE_PARAMS = ("collections", "ids")


def query_params(request: Request) -> Dict[str, Any]:
    """Flatten the query string.

    Repeated ``collections`` and ``ids`` values are joined with commas; any
    other repeated key keeps its last value.
    """
    params: Dict[str, Any] = dict(request.query_params)
    for key in REPEATABLE_PARAMS:
        values = request.query_params.getlist(key)
        if len(values) > 1:
            params[key] = ",".join(values)
    return params


def body_params(payload: Optional[SearchBody]) -> Dict[str, Any]:
    return {} if payload is None else payload.model_dump(exclude_unset=True)


@router.get("/search", response_model=SearchResponse, responses=SEARCH_ERRORS)
def get_search(request: Request, db: StacDBAPI = Depends(get_db_api)) -> Dict[str, Any]:
    """Search items with query-string parameters."""
    result = db.search_items(query_params(request), method="GET", endpoint=determine_endpoint(request))
    return normalize_doc(result)


@router.post("/search", response_model=SearchResponse, responses=SEARCH_ERRORS)
def post_search(
    request: Request,
    payload: Optional[SearchBody] = None,
    db: StacDBAPI = Depends(get_db_api),
) -> Dict[str, Any]:
    """Search items with a JSON body."""
    result = db.search_items(body_params(payload), method="POST", endpoint=determine_endpoint(request))
    return normalize_doc(result)
