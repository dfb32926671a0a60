"""
Gusto Registration API - Main Application Entry Point

Server side of the GUSTO'26 symposium registration:
- Pass and time-slot admission rules shared by the wizard and the server
- All-or-nothing persistence of participant, event registrations and payment
- Payment screenshots in object storage
- Confirmation emails sent after the response, never blocking it
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from gusto.core.config import get_settings
from gusto.core.errors import DependencyError, RegistrationError
from gusto.core.logging import setup_logging, get_logger
from gusto.core.metrics import metrics_endpoint
from gusto.api.router import api_router
from gusto.api.middleware import RequestLoggingMiddleware
from gusto.db.session import dispose_engine, get_engine
from gusto.infrastructure.redis_client import close_redis
from gusto.infrastructure.s3_client import S3Client
from gusto.services.catalog import get_catalog
from gusto.services.strategy_factory import (
    get_blob_store,
    get_dispatcher,
    get_submission_gate,
    shutdown_dispatcher,
)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    # Fail at startup, not on the first request, if the catalog is malformed
    get_catalog()
    get_blob_store()
    get_dispatcher()

    gate = await get_submission_gate()
    logger.info("submission_gate_ready", gate=type(gate).__name__)

    yield

    # Let queued confirmation emails finish before exiting
    shutdown_dispatcher()
    await close_redis()
    S3Client.close()
    await dispose_engine()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Event registration API with atomic persistence and deferred confirmation email",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Custom middleware
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(DependencyError)
async def dependency_error_handler(request: Request, exc: DependencyError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "detail": exc.kind.user_message, "reason": exc.reason},
    )


@app.exception_handler(RegistrationError)
async def registration_error_handler(request: Request, exc: RegistrationError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# Routes
app.include_router(api_router)

if settings.BLOB_BACKEND == "local":
    Path(settings.LOCAL_BLOB_DIR).mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.LOCAL_BLOB_DIR), name="uploads")


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    database = "connected"
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        database = f"error: {type(e).__name__}"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": database,
    }


@app.get("/metrics", tags=["Health"])
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
