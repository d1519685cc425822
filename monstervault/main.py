import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from monstervault.api import (
    codes_router,
    crystals_router,
    gifts_router,
    health_router,
    inventory_router,
    players_router,
)
from monstervault.config import settings
from monstervault.db.database import init_db
from monstervault.models.failure import KnownError, ThrottledError, create_unknown_failure

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("monstervault"),
    lifespan=lifespan,
)

app.include_router(players_router)
app.include_router(inventory_router)
app.include_router(gifts_router)
app.include_router(codes_router)
app.include_router(crystals_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render business and transient failures as the failure envelope."""
    if exc.status_code >= 500:
        logger.error("REQUEST_FAILED: kind=%s detail=%s", exc.kind.value, exc.detail)
    headers = None
    if isinstance(exc, ThrottledError):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
        headers=headers,
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Anything that is not a KnownError gets the fixed unknown-failure body."""
    logger.exception("REQUEST_CRASHED: error=%s", type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content=create_unknown_failure(exc).model_dump(mode="json"),
    )
