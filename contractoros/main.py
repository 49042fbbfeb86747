"""ContractorOS API: FastAPI application factory."""


import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from contractoros.core.config import settings
from contractoros.core.exceptions import register_exception_handlers
from contractoros.db.base import create_all, engine
from contractoros.middleware.audit import AuditMiddleware
from contractoros.middleware.rate_limit import RateLimitMiddleware
from contractoros.routers.assistant import router as assistant_router
from contractoros.routers.auth import router as auth_router
from contractoros.routers.daily_logs import router as daily_logs_router
from contractoros.routers.equipment import router as equipment_router
from contractoros.routers.invoices import router as invoices_router
from contractoros.routers.projects import router as projects_router
from contractoros.routers.query import router as query_router
from contractoros.routers.voice_logs import router as voice_logs_router
from contractoros.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

API_ROUTERS = (
    auth_router,
    projects_router,
    daily_logs_router,
    equipment_router,
    voice_logs_router,
    invoices_router,
    query_router,
    assistant_router,
)


def _configure_logging() -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if settings.app_env == "development" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.app_env == "development" and settings.database_url.startswith("sqlite"):
        await create_all()
        logger.info("Development database ready at %s", settings.database_url)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs" if settings.app_env == "development" else None,
        redoc_url="/redoc" if settings.app_env == "development" else None,
        lifespan=lifespan,
    )

    # Starlette runs the last-added middleware first
    app.add_middleware(AuditMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )

    register_exception_handlers(app)

    for router in API_ROUTERS:
        app.include_router(router, prefix="/api")

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(app=settings.app_name, env=settings.app_env)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("contractoros.main:app", host="0.0.0.0", port=settings.app_port, reload=settings.app_env == "development")
