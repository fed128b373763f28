"""Landing page, OpenAPI and conformance endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Request

from stacsearch.stac_api.catalog import conformance, landing_page
from stacsearch.webservice.services.endpoint import determine_endpoint

router = APIRouter(tags=["core"])


@router.get("/", response_model=Dict[str, Any])
def root(request: Request) -> Dict[str, Any]:
    """Root catalog."""
    return landing_page(determine_endpoint(request))


@router.get("/api", response_model=Dict[str, Any])
def api(request: Request) -> Dict[str, Any]:
    """OpenAPI description of this service."""
    return request.app.openapi()


@router.get("/conformance", response_model=Dict[str, Any])
def get_conformance() -> Dict[str, Any]:
    """Conformance classes implemented by this service."""
    return conformance()
