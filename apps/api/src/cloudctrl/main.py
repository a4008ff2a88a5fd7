"""
CloudCtrl Dashboard API.

Routes:
- /api/credentials -> per-user encrypted provider credentials
- /api/cache       -> response cache stats, invalidation, refresh status
- /api/overview    -> cached provider identity summaries
"""
import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.endpoints import cache, credentials, overview
from .core.config import settings
from .core.database import init_models
from .core.exceptions import (
    CredentialsNotConfigured,
    InvalidCredentialPayload,
    StoreUnavailable,
)
from .core.logging import get_logger, setup_logging
from .core.providers import PROVIDERS
from .dependencies import get_container
from .middleware.auth import BearerKeyAuth
from .middleware.request_context import RequestContextMiddleware
from .repositories.cache import ResponseCache
from .resolvers import client_cache

logger = get_logger(__name__)


async def sweep_cache_periodically(cache: ResponseCache, interval_seconds: float) -> None:
    """Remove expired cache entries every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await cache.sweep_expired()
        except StoreUnavailable as exc:
            logger.error("Cache sweep failed: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("%s starting", settings.PROJECT_NAME)

    await init_models()

    sweeper = None
    if settings.CACHE_SWEEP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(
            sweep_cache_periodically(get_container().cache, settings.CACHE_SWEEP_INTERVAL_SECONDS)
        )
        logger.info("Cache sweeper every %ss", settings.CACHE_SWEEP_INTERVAL_SECONDS)

    yield

    logger.info("Shutting down...")
    if sweeper is not None:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
    client_cache.clear()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Multi-cloud dashboard backend: credentials, resolvers and response cache",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # Starlette runs the last-added middleware first
    app.add_middleware(BearerKeyAuth, api_key=settings.CLOUDCTRL_API_KEY)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(credentials.router, prefix=f"{settings.API_PREFIX}/credentials")
    app.include_router(cache.router, prefix=f"{settings.API_PREFIX}/cache")
    app.include_router(overview.router, prefix=f"{settings.API_PREFIX}/overview")

    @app.exception_handler(CredentialsNotConfigured)
    async def credentials_not_configured(request: Request, exc: CredentialsNotConfigured):
        return JSONResponse(
            status_code=424,
            content={"detail": str(exc), "provider": exc.provider, "code": "credentials_not_configured"},
        )

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable(request: Request, exc: StoreUnavailable):
        logger.error("Store unavailable: %s", exc)
        return JSONResponse(
            status_code=503,
            content={"detail": "Storage temporarily unavailable", "code": "store_unavailable"},
        )

    @app.exception_handler(InvalidCredentialPayload)
    async def invalid_credentials(request: Request, exc: InvalidCredentialPayload):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "provider": exc.provider, "missing": exc.missing},
        )

    @app.exception_handler(ValueError)
    async def bad_request(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.get("/")
    async def root():
        return {
            "service": "cloudctrl-api",
            "providers": list(PROVIDERS),
        }

    return app


app = create_app()
