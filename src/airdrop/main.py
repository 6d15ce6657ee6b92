"""
Airdrop Proof Service - Main Entry Point

Provides APIs for committing airdrop eligibility lists to Merkle roots
and generating claim proofs for an on-chain verifier.
"""

import signal
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app
from starlette.responses import Response

from airdrop.api.v1 import router as api_v1_router
from airdrop.core.config import settings
from airdrop.core.logging import setup_logging
from airdrop.metrics import get_proof_metrics
from airdrop.services.eligibility_service import EligibilityService

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "Starting Airdrop Proof Service",
        version=settings.VERSION,
        environment=settings.ENV,
        default_tree_id=settings.DEFAULT_TREE_ID,
        default_amount=settings.DEFAULT_CLAIM_AMOUNT,
    )

    proof_metrics = get_proof_metrics()
    proof_metrics.set_service_info(
        version=settings.VERSION,
        environment=settings.ENV,
    )

    yield

    # Campaigns are held in memory only and are dropped here
    service: EligibilityService = app.state.eligibility_service
    logger.info(
        "Airdrop Proof Service shutdown complete",
        campaigns_dropped=len(service.registry),
    )


def create_application(eligibility_service: EligibilityService | None = None) -> FastAPI:
    """Create FastAPI application."""
    app = FastAPI(
        title="Airdrop Proof API",
        description="Merkle eligibility commitments and claim proofs for token airdrops",
        version=settings.VERSION,
        docs_url="/docs" if settings.ENV != "production" else None,
        redoc_url="/redoc" if settings.ENV != "production" else None,
        lifespan=lifespan,
    )

    # Store service in app state for access in routes
    app.state.eligibility_service = eligibility_service or EligibilityService()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(api_v1_router, prefix="/api/v1")

    # Metrics endpoint
    if settings.METRICS_ENABLED:
        app.mount("/metrics", make_asgi_app())

    # Health endpoints
    @app.get("/health")
    async def health() -> dict:
        """Overall service health check."""
        return {
            "status": "healthy",
            "service": "airdrop-proof",
            "version": settings.VERSION,
        }

    @app.get("/ready")
    async def ready() -> Response:
        """Readiness probe; the service has no external dependencies."""
        return Response(status_code=200, content="ready")

    @app.get("/live")
    async def live() -> Response:
        """Liveness probe for Kubernetes."""
        return Response(status_code=200, content="alive")

    @app.get("/status")
    async def status() -> dict:
        """Detailed service status."""
        service: EligibilityService = app.state.eligibility_service
        return {
            "service": "airdrop-proof",
            "version": settings.VERSION,
            "environment": settings.ENV,
            "campaigns": len(service.registry),
            "default_tree_id": service.default_tree_id,
            "default_amount": service.default_amount,
        }

    return app


app = create_application()


def handle_signal(signum: int, frame: object) -> None:
    """Handle shutdown signals."""
    logger.info(f"Received signal {signum}, initiating shutdown")
    sys.exit(0)


def main() -> None:
    """Run the service."""
    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    logger.info(
        "Starting Airdrop Proof service",
        host=settings.HOST,
        port=settings.PORT,
    )

    uvicorn.run(
        "airdrop.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
