"""Main FastAPI application."""
import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from tourney.api.admin import router as admin_router
from tourney.api.notifications import router as notifications_router
from tourney.api.realtime import router as realtime_router
from tourney.domain.common.errors import (
    AuthorizationError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from tourney.domain.notifications.services import (
    NotificationService,
    NotificationStore,
    ReadStateReconciler,
)
from tourney.infra.db.base import Base
from tourney.infra.db.models import NotificationModel, NotificationReadModel  # noqa: F401
from tourney.infra.jobs.retention import RetentionSweeper
from tourney.infra.realtime.ws_manager import ConnectionRegistry
from tourney.infra.store import build_store
from tourney.services.notification_service import NotificationDeliveryService
from tourney.services.push_dispatcher import PushDispatcher
from tourney.settings import Settings, load_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        logger.info("📥 [SERVER REQUEST] %s %s", request.method, request.url.path)
        if logger.isEnabledFor(logging.DEBUG):
            headers = dict(request.headers)
            auth_header = headers.get("authorization", "")
            if auth_header.startswith("Bearer "):
                token = auth_header[7:]
                headers["authorization"] = f"Bearer {token[:20]}..." if len(token) > 20 else "Bearer ***"
            logger.debug("   Query params: %s", dict(request.query_params))
            logger.debug("   Headers: %s", headers)

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "📤 [SERVER RESPONSE] %s %s - %s (%.3fs)",
            request.method,
            request.url.path,
            response.status_code,
            process_time,
        )
        return response


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(AuthorizationError)
    async def authorization_handler(request: Request, exc: AuthorizationError):
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.message})

    @app.exception_handler(ValidationError)
    async def domain_validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.message})

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error("❌ Store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning("⚠️ Validation error on %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors()},
        )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[NotificationStore] = None,
) -> FastAPI:
    """Build an application instance with its own store, registry and sweeper."""
    settings = settings or load_settings()
    engine = None
    if store is None:
        store, engine = build_store(settings)

    registry = ConnectionRegistry()
    reconciler = ReadStateReconciler(store)
    notification_service = NotificationService(store, reconciler)
    dispatcher = PushDispatcher(
        registry, reconciler, count_timeout_seconds=settings.push_count_timeout_seconds
    )
    sweeper = RetentionSweeper(
        store,
        retention=timedelta(hours=settings.notification_retention_hours),
        interval_seconds=settings.notification_sweep_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        if engine is not None and settings.create_tables_on_startup:
            try:
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except Exception as e:
                # Database might not be ready yet; requests will fail with 500 until it is
                logger.warning("Could not create tables during startup: %s", e)
        sweeper.start()
        yield
        await sweeper.stop()
        if engine is not None:
            await engine.dispose()

    if settings.debug:
        logging.getLogger("tourney").setLevel(logging.DEBUG)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry
    app.state.notification_service = notification_service
    app.state.dispatcher = dispatcher
    app.state.delivery = NotificationDeliveryService(notification_service, dispatcher)
    app.state.sweeper = sweeper

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(notifications_router, prefix=settings.api_v1_prefix)
    app.include_router(admin_router, prefix=settings.api_v1_prefix)
    app.include_router(realtime_router, prefix=settings.api_v1_prefix)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "store": "database" if engine is not None else type(store).__name__,
            "connections": len(registry),
            "bound_users": len(registry.bound_user_ids()),
            "retention_sweeper": sweeper.running,
        }

    return app


app = create_app()
