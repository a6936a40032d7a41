"""FastAPI application entry point for mentionlink.

Mention resolution REST API for contact enrichment.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mentionlink import __version__
from mentionlink.api import register_exception_handlers
from mentionlink.api.middleware import NoStoreMiddleware, RequestLoggingMiddleware
from mentionlink.api.mentions import router as mentions_router
from mentionlink.config import get_settings
from mentionlink import db
from mentionlink.logging import get_logger, setup_logging

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    settings = get_settings()
    logger.info(
        "Starting mentionlink API",
        extra={
            "environment": settings.environment,
            "debug": settings.api_debug,
        },
    )

    yield

    logger.info("Shutting down mentionlink API")
    await db.dispose_engine()


settings = get_settings()

app = FastAPI(
    title="mentionlink API",
    description="Resolves people mentioned in enrichment transcripts to contacts",
    version=__version__,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(NoStoreMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# =========================
# Health Check Endpoints
# =========================


@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "mentionlink-api"}


@app.get("/health/ready", tags=["Health"])
async def readiness_check():
    """Readiness check that verifies database connectivity."""
    checks = {"postgres": "unknown"}

    try:
        await db.ping()
        checks["postgres"] = "healthy"
    except Exception as e:
        checks["postgres"] = f"unhealthy: {str(e)}"

    all_healthy = all(v == "healthy" for v in checks.values())

    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={
            "status": "ready" if all_healthy else "not_ready",
            "checks": checks,
        },
    )


@app.get("/health/live", tags=["Health"])
async def liveness_check():
    """Liveness check - just confirms the service is running."""
    return {"status": "alive"}


# =========================
# API Routers
# =========================

app.include_router(mentions_router, prefix="/api/v1", tags=["Mentions"])


@app.get("/", tags=["Root"])
async def root():
    """API root endpoint."""
    return {
        "name": "mentionlink API",
        "version": __version__,
        "docs": "/docs" if settings.is_development else None,
    }
