from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studio_booking.api.v1.router import router as api_v1_router
from studio_booking.config.database import init_db
from studio_booking.config.settings import settings
from studio_booking.core.logging import setup_logging
from studio_booking.core.middleware import register_middlewares


def create_app() -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures logging, title, version and debug mode from Settings.
    - Registers CORS and the core middlewares.
    - Includes the versioned API router under /api/v1.
    """
    setup_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        version=settings.PROJECT_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ORIGINS != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middlewares(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # Development convenience; production schemas are managed by migrations
    @app.on_event("startup")
    def on_startup() -> None:
        if not settings.is_production:
            init_db()

    return app


app = create_app()
