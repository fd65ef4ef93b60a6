"""
Inventory Scanner — Main Application

FastAPI application entry point.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import asyncio
import logging
import structlog
from datetime import datetime, timezone

from config import settings, check_connection

logging.basicConfig(format="%(message)s", level=settings.log_level)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup: Check blob store connection
    Shutdown: Persist pending scan logs
    """
    from services.session_service import shutdown_session_service

    # Startup
    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.debug
    )

    storage_status = await asyncio.to_thread(check_connection)
    if storage_status["status"] == "healthy":
        logger.info(
            "storage_connected",
            bucket=storage_status["bucket"],
            files=storage_status["default_namespace_files"]
        )
    else:
        logger.error(
            "storage_connection_failed",
            error=storage_status.get("error")
        )

    yield

    # Shutdown
    logger.info("application_shutting_down")
    await shutdown_session_service()


# Create FastAPI app
app = FastAPI(
    title="Inventory Scanner",
    description="Barcode count sessions against inventory CSVs kept in blob storage",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
def health_check():
    """
    Health check endpoint.

    Returns:
        Basic health status and blob store connection state
    """
    storage_status = check_connection()

    return {
        "status": "healthy" if storage_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "storage": storage_status
    }


@app.get("/")
async def root():
    """
    Root endpoint.

    Returns:
        API information and available endpoints
    """
    return {
        "name": "Inventory Scanner API",
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
        "health": "/health",
        "endpoints": {
            "blobs": "/api/blobs",
            "session": "/api/session",
            "diagnostics": "/api/diagnostics"
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler.

    Catches unhandled exceptions and returns standard error format.
    """
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


# ===================
# INCLUDE ROUTERS
# ===================
from routes.blobs import router as blobs_router
from routes.session import router as session_router
from routes.diagnostics import router as diagnostics_router

app.include_router(blobs_router, prefix="/api/blobs", tags=["Blobs"])
app.include_router(session_router, prefix="/api/session", tags=["Session"])
app.include_router(diagnostics_router, prefix="/api/diagnostics", tags=["Diagnostics"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
