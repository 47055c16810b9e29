"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from listing_engine.config import get_settings
from listing_engine.db.session import dispose_engine
from listing_engine.errors import (
    Forbidden,
    InvalidSearchRequest,
    NotFound,
    RepositoryError,
)
from listing_engine.services.listing_service import create_listing_engine
from listing_engine.taskiq_app.broker import broker
from listing_engine.web.router import router as listings_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared listing engine and run the Taskiq broker for the API."""

    if not broker.is_worker_process:
        await broker.startup()
    app.state.listing_engine = create_listing_engine(get_settings())
    yield
    await app.state.listing_engine.close()
    await dispose_engine()
    if not broker.is_worker_process:
        await broker.shutdown()


app = FastAPI(title="listing-engine", lifespan=lifespan)
app.include_router(listings_router)


@app.exception_handler(NotFound)
async def not_found_handler(_: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(Forbidden)
async def forbidden_handler(_: Request, exc: Forbidden) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(InvalidSearchRequest)
async def invalid_search_handler(_: Request, exc: InvalidSearchRequest) -> JSONResponse:
    return JSONResponse(
        status_code=422, content={"detail": str(exc), "fields": list(exc.fields)}
    )


@app.exception_handler(RepositoryError)
async def repository_error_handler(_: Request, exc: RepositoryError) -> JSONResponse:
    logger.error("Repository failure surfaced to client: %s", exc)
    return JSONResponse(status_code=500, content={"detail": "Listing storage error"})


@app.get("/health")
async def health() -> dict[str, str]:
    """Basic health endpoint."""

    return {"status": "ok"}
