"""FastAPI application factory"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from form_builder import __version__
from form_builder.api.routes import builder as builder_routes
from form_builder.api.routes.templates import router as templates_router
from form_builder.api.schemas import HealthResponse
from form_builder.api.session_store import BuilderSessionStore
from form_builder.utils.config import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup: start session eviction background task
    task = asyncio.create_task(_evict_loop())
    yield
    # Shutdown: cancel eviction task
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


async def _evict_loop():
    """Periodically evict expired builder sessions"""
    while True:
        await asyncio.sleep(300)  # every 5 minutes
        await builder_routes.store.evict_expired()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    settings = get_settings()
    builder_routes.init_store(BuilderSessionStore(
        ttl_minutes=settings.session_ttl_minutes,
        max_sessions=settings.max_sessions,
    ))

    app = FastAPI(
        title="Booking Form Builder API",
        description="Author form templates and preview them with conditional visibility",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(templates_router)
    app.include_router(builder_routes.router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            status="ok",
            store_mode=get_settings().store_mode,
            version=__version__,
            active_sessions=builder_routes.store.active_count,
        )

    return app
