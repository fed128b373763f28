"""Health endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from stacsearch.commons.errors import BackendError
from stacsearch.stac_api.db_api import StacDBAPI
from stacsearch.webservice.deps import get_db_api

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
def live() -> dict:
    """Liveness check."""
    return {"status": "ok"}


@router.get("/ready")
def ready(db: StacDBAPI = Depends(get_db_api)):
    """Readiness check: the search backend answers a collection listing."""
    try:
        db.dao.list_collections()
    except BackendError:
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}
