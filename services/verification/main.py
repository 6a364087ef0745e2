"""
Verification Service - Main Application
========================================

FastAPI application exposing verification history, profiles and
attestation status for MonadVerify, plus the mock verification API used
in development.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from monadverify import __version__
from monadverify.attestation import get_attestation_service
from monadverify.config import settings
from monadverify.errors import LedgerError, MonadVerifyError, StorageError
from monadverify.ledger import get_ledger_client
from monadverify.logging import get_logger, setup_logging
from monadverify.models.common import ErrorResponse, HealthResponse
from monadverify.storage import get_store
from services.verification.routes import attestations, history, mock_api, profile

# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="verification",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "verification_service_starting",
        environment=settings.environment.value,
        port=settings.ports.verification,
    )

    # Startup
    try:
        ledger = get_ledger_client()
        await ledger.connect()
        logger.info("ledger_connected", mode=ledger.mode.value)

        primus_ready = await get_attestation_service().initialize()
        logger.info("attestation_service_ready", primus_available=primus_ready)

        store = get_store()
        logger.info("block_cache_store_ready", backend=store.name)

    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("verification_service_shutting_down")
    await get_attestation_service().shutdown()
    await get_ledger_client().disconnect()
    await get_store().close()


# Create FastAPI application
app = FastAPI(
    title="MonadVerify Verification Service",
    description="Verification history, profiles and attestation status for MonadVerify",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its dependencies.
    """
    components: dict[str, dict[str, Any]] = {}

    # Check ledger
    components["ledger"] = await get_ledger_client().health_check()

    # Check attestation provider; mock fallback keeps the service usable
    environment = get_attestation_service().environment_status()
    components["attestation"] = {
        "status": "healthy",
        "primus_available": environment.primus_available,
    }

    # Determine overall status
    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="verification",
        version=__version__,
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "MonadVerify Verification Service",
        "version": __version__,
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    history.router,
    prefix="/api/v1/history",
    tags=["History"],
)

app.include_router(
    profile.router,
    prefix="/api/v1/profile",
    tags=["Profile"],
)

app.include_router(
    attestations.router,
    prefix="/api/v1/attestations",
    tags=["Attestations"],
)

app.include_router(
    mock_api.router,
    prefix="/api/v1",
    tags=["Mock Verification"],
)


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Any, exc: HTTPException) -> Any:
    """Handle HTTP exceptions."""
    from fastapi.responses import JSONResponse

    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code,
        },
    )


@app.exception_handler(MonadVerifyError)
async def monadverify_exception_handler(request: Any, exc: MonadVerifyError) -> Any:
    """Map domain errors to an HTTP status and an ErrorResponse body."""
    from fastapi.responses import JSONResponse

    if isinstance(exc, LedgerError):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(exc, StorageError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_400_BAD_REQUEST
    logger.warning(
        "domain_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=code,
        content=ErrorResponse(
            error=str(exc),
            error_code=type(exc).__name__,
        ).model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Any, exc: Exception) -> Any:
    """Handle unexpected exceptions."""
    from fastapi.responses import JSONResponse

    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "status_code": 500,
        },
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.verification.main:app",
        host="0.0.0.0",
        port=settings.ports.verification,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
