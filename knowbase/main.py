import logging
import logging.config
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from knowbase.config import Settings
from knowbase.dependencies import limiter
from knowbase.errors import InternalRenderDefect, StoreUnavailable
from knowbase.routers.search import router as search_router
from knowbase.routers.session import router as session_router
from knowbase.routers.upload import router as upload_router
from knowbase.routers.wiki import router as wiki_router
from knowbase.services.store import PageStore, SyncRedis, load_session_key

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
        }
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.store.close()


def create_app(settings: Optional[Settings] = None, store: Optional[PageStore] = None) -> FastAPI:
    """Build the application.

    *settings* default to the ``KNOWBASE_*`` environment and *store* to a
    Redis store at ``settings.redis_url``.  Run with
    ``uvicorn --factory knowbase.main:create_app``.
    """
    if settings is None:
        settings = Settings()
    configure_logging(settings.log_level)

    secret_key = settings.secret_key
    if not secret_key:
        logger.info("KNOWBASE_SECRET_KEY is not set; using the session key kept in Redis")
        client = SyncRedis.from_url(settings.redis_url, decode_responses=True)
        try:
            secret_key = load_session_key(client)
        finally:
            client.close()

    app = FastAPI(
        title=settings.name,
        description="Personal knowledge base: upload markdown archives, browse and search the pages.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store or PageStore.from_url(settings.redis_url)

    # Rate-limiting state
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(SessionMiddleware, secret_key=secret_key, session_cookie="knowbase_session")

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
        logger.error("Page store unavailable for %s: %s", request.url, exc)
        return JSONResponse(status_code=503, content={"detail": "The page store is unavailable."})

    @app.exception_handler(InternalRenderDefect)
    async def render_defect_handler(request: Request, exc: InternalRenderDefect) -> JSONResponse:
        logger.exception("Render defect for %s", request.url)
        return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception for %s", request.url)
        return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})

    app.include_router(session_router)
    app.include_router(upload_router)
    app.include_router(wiki_router)
    app.include_router(search_router)

    return app
