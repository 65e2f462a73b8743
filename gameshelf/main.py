import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    CORS_ORIGINS,
    SESSION_SWEEP_INTERVAL_SECONDS,
)
from .core.errors import ServiceError
from .db import Database
from .routes import auth, games, library, search, store, users
from .schemas import failure
from .services.auth_service import AuthService
from .services.catalog import CatalogStore
from .services.igdb_client import IgdbClient
from .services.library import LibraryStore

logger = logging.getLogger(__name__)


def _format_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"


def _start_session_sweeper(auth_service: AuthService, interval_seconds: int, stop: threading.Event) -> None:
    def run() -> None:
        while not stop.wait(interval_seconds):
            try:
                auth_service.sweep_expired_sessions()
            except ServiceError:
                logger.warning("Periodic session sweep failed")

    threading.Thread(target=run, name="session-sweeper", daemon=True).start()


def create_app(
    database: Optional[Database] = None,
    provider: Optional[IgdbClient] = None,
    sweep_interval_seconds: int = SESSION_SWEEP_INTERVAL_SECONDS,
) -> FastAPI:
    database = database or Database()

    app = FastAPI(title="GameShelf API", version="0.1.0")
    app.state.auth_service = AuthService(database)
    app.state.catalog = CatalogStore(database)
    app.state.library = LibraryStore(database)
    app.state.provider = provider or IgdbClient()
    sweeper_stop = threading.Event()

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content=failure(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=failure(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=failure(_format_validation_error(exc)))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials="*" not in CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.on_event("startup")
    def on_startup() -> None:
        database.create_all()
        service: AuthService = app.state.auth_service
        if ADMIN_USERNAME and ADMIN_PASSWORD:
            service.bootstrap_admin(ADMIN_USERNAME, ADMIN_PASSWORD, ADMIN_EMAIL)
        service.sweep_expired_sessions()
        if sweep_interval_seconds > 0:
            _start_session_sweeper(service, sweep_interval_seconds, sweeper_stop)
        logger.info("GameShelf API ready")

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        sweeper_stop.set()
        database.dispose()

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/admin", tags=["admin"])
    app.include_router(games.router, prefix="/api/games", tags=["games"])
    app.include_router(search.router, prefix="/api/search", tags=["search"])
    app.include_router(store.router, prefix="/api/store", tags=["store"])
    app.include_router(library.router, prefix="/api/library", tags=["library"])
    return app
