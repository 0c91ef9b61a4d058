import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from intake.api.routes import contact, health, resume
from intake.core.config import SchemaVariant, Settings
from intake.core.config import settings as default_settings
from intake.core.errors import register_exception_handlers
from intake.core.logging import setup_logging
from intake.core.middleware import RequestIdMiddleware
from intake.db.session import Database

logger = logging.getLogger(__name__)


# =============================================================================
# OpenAPI Tags Metadata
# =============================================================================
tags_metadata = [
    {
        "name": "contact",
        "description": "**Submissions** - Contact forms and internship applications with PDF resumes.",
    },
    {
        "name": "resume",
        "description": "**Resumes** - Inline download of stored resumes by id.",
    },
    {
        "name": "health",
        "description": "**Health** - Liveness and database connectivity.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Schema variant: {settings.SCHEMA_VARIANT.value}")

    database: Database = app.state.database
    try:
        database.ping()
    except SQLAlchemyError as exc:
        # Requests answer 500/503 until the database is reachable again.
        logger.warning(f"Database unavailable at startup: {exc}")
        database.handle_failure(exc)

    yield

    logger.info("Shutting down...")
    app.state.database.dispose()


def _add_cors(app: FastAPI, settings: Settings) -> None:
    if settings.cors_allows_any_origin:
        # Reflect whatever Origin was sent, credentials included.
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=".*",
            allow_credentials=True,
            allow_methods=settings.ALLOWED_METHODS,
            allow_headers=settings.ALLOWED_HEADERS,
            expose_headers=["X-Request-ID", "Content-Disposition"],
        )
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=settings.ALLOWED_METHODS,
        allow_headers=settings.ALLOWED_HEADERS,
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """Build the API for ``settings`` around one shared database handle."""
    settings = settings or default_settings
    database = database or Database.from_settings(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Contact form and internship application intake with PDF resume storage.",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.database = database

    _add_cors(app, settings)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)

    if settings.SCHEMA_VARIANT is SchemaVariant.COMBINED:
        app.include_router(contact.combined_router, prefix="/api", tags=["contact"])
    else:
        app.include_router(contact.split_router, prefix="/api", tags=["contact"])

    app.include_router(
        resume.router, prefix=settings.RESUME_ROUTE_PREFIX, tags=["resume"]
    )

    return app


setup_logging()
app = create_app()
