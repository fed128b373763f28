"""FastAPI entrypoint for the stacsearch webservice."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stacsearch import __version__
from stacsearch.commons.daos.docdb_dao_base import DocumentDBDAO
from stacsearch.commons.errors import (
    BackendError,
    BackendTimeoutError,
    HookError,
    NotFoundError,
    ValidationError,
)
from stacsearch.commons.stac_logger import StacLogger
from stacsearch.configs import STAC_API_DESCRIPTION, STAC_API_TITLE, WEBSERVER_HOST, WEBSERVER_PORT
from stacsearch.webservice.routers.collections import router as collections_router
from stacsearch.webservice.routers.health import router as health_router
from stacsearch.webservice.routers.root import router as root_router
from stacsearch.webservice.routers.search import router as search_router


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Build the shared backend handle once per process, close it on shutdown."""
    logger = StacLogger()
    dao = DocumentDBDAO.get_instance()
    logger.debug(f"Search backend ready: {type(dao).__name__}")
    yield
    dao.close()


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title=STAC_API_TITLE,
        version=__version__,
        description=STAC_API_DESCRIPTION,
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_: Request, exc: ValidationError) -> JSONResponse:
        StacLogger().debug(f"Rejected search request: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc), "field": exc.field})

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Not Found"})

    @app.exception_handler(BackendError)
    async def backend_error_handler(_: Request, exc: BackendError) -> JSONResponse:
        status_code = 504 if isinstance(exc, BackendTimeoutError) else 502
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.exception_handler(HookError)
    async def hook_error_handler(_: Request, exc: HookError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    app.include_router(root_router)
    app.include_router(search_router)
    app.include_router(collections_router)
    app.include_router(health_router, prefix="/api/v1")

    return app


app = create_app()


def main():
    """Serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("stacsearch.webservice.main:app", host=WEBSERVER_HOST, port=WEBSERVER_PORT)


if __name__ == "__main__":
    main()
