import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine

from todo_api.cache.layer import CacheLayer, make_redis
from todo_api.core.config import Settings, get_settings
from todo_api.core.errors import TodoApiError
from todo_api.core.logging_setup import setup_logging
from todo_api.core.security import TokenService
from todo_api.database import create_db_and_tables, make_engine, make_session_factory
from todo_api.routers import auth, todos

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    redis: Redis | None = None,
) -> FastAPI:
    """
    Build the application.

    Settings are resolved here, so a missing DATABASE_URL, REDIS_DSN or
    JWT_SECRET fails before the server accepts a connection. ``engine`` and
    ``redis`` may be injected; otherwise they are created from settings when
    the app starts and released when it stops.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_engine = engine is None
        db_engine = engine or make_engine(settings.database_url)
        await create_db_and_tables(db_engine)
        logger.info("Database initialized")

        cache = CacheLayer(
            redis or make_redis(settings),
            namespace=settings.cache_namespace,
            default_ttl=settings.cache_ttl_seconds,
        )
        await cache.init_cache()

        app.state.session_factory = make_session_factory(db_engine)
        app.state.cache = cache
        yield

        await cache.close()
        if owns_engine:
            await db_engine.dispose()

    app = FastAPI(
        title="Todo API",
        description="Multi-user todo API with JWT auth, PostgreSQL and a Redis read-through cache",
        swagger_ui_parameters={"displayRequestDuration": True},
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tokens = TokenService(
        settings.jwt_secret, ttl=timedelta(minutes=settings.token_ttl_minutes)
    )

    @app.exception_handler(TodoApiError)
    async def todo_api_error_handler(request: Request, exc: TodoApiError):
        headers = None
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code, content={"detail": exc.detail}, headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.debug(f"Rejected request body: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request body"},
        )

    # Include routers
    app.include_router(auth.router)
    app.include_router(todos.router)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to Todo API",
            "docs": "/docs",
            "version": "1.0.0",
        }

    @app.get("/health")
    async def health_check(request: Request):
        cache: CacheLayer = request.app.state.cache
        return {
            "status": "healthy",
            "cache": {"reachable": await cache.ping(), **cache.get_stats()},
        }

    return app


def run() -> None:
    import uvicorn

    uvicorn.run("todo_api.main:create_app", factory=True, host="0.0.0.0", port=8080)
