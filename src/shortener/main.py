from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.encoders import jsonable_encoder

from src.shortener.api.v1.endpoints import health, links
from src.shortener.core.config import Settings, configure_logging, get_settings, logger
from src.shortener.db.session import create_db_engine, create_session_factory, init_db
from src.shortener.middleware.logging import RequestLoggingMiddleware
from src.shortener.services.url_service import URLService
from src.shortener.stores.base import MappingStore
from src.shortener.stores.memory import InMemoryMappingStore
from src.shortener.stores.redis_store import RedisMappingStore
from src.shortener.stores.sql import SQLAlchemyMappingStore

STATIC_DIR = Path(__file__).resolve().parent / "static"


def build_store(settings: Settings) -> MappingStore:
    """Construct the mapping store selected by STORE_BACKEND."""
    if settings.STORE_BACKEND == "memory":
        return InMemoryMappingStore()
    if settings.STORE_BACKEND == "redis":
        return RedisMappingStore.from_url(settings.REDIS_URL)

    engine = create_db_engine(settings)
    init_db(engine)
    return SQLAlchemyMappingStore(create_session_factory(engine))


def create_app(settings: Optional[Settings] = None, store: Optional[MappingStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings, read from the environment when omitted
        store: Mapping store to use instead of the one STORE_BACKEND selects

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.service.store.close()
        logger.info("Store connections released")

    app = FastAPI(
        title="URL Shortener API",
        description="""
    A FastAPI-based URL shortening service.

    ## Features
    * Shorten a URL to a random 7-character code
    * Redirect from a code to its URL
    * Delete a short URL by id
    """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    if store is None:
        store = build_store(settings)
    logger.info(f"Using {type(store).__name__} backend")

    app.state.settings = settings
    app.state.service = URLService(
        store,
        code_length=settings.SHORT_CODE_LENGTH,
        max_attempts=settings.CODE_ALLOCATION_ATTEMPTS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": {
                    "error": "Invalid request body",
                    "error_code": "input:invalid_request",
                    "errors": jsonable_encoder(exc.errors()),
                }
            },
        )

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/", tags=["root"], include_in_schema=False)
    async def root():
        return FileResponse(STATIC_DIR / "index.html")

    # Registered before links: the redirect route matches any single path segment.
    app.include_router(health.router, tags=["health"])
    app.include_router(links.router, tags=["links"])

    return app


def run():
    """Serve the application with uvicorn on APP_PORT."""
    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.APP_PORT)
