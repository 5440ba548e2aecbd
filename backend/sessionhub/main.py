"""
SessionHub Backend - Main Application

This is the entry point for the FastAPI application.
It handles:
- REST API endpoints (sessions, profiles, chat token)
- Process-wide clients: Stream gateway, Redis drift ledger
- Background reconciliation of partially provisioned / torn down sessions
"""
from contextlib import asynccontextmanager
import asyncio
import logging
from datetime import datetime, UTC

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sessionhub.api import router as api_router
from sessionhub.config.redis import close_redis
from sessionhub.config.settings import settings
from sessionhub.models.database import AsyncSessionLocal, init_db
from sessionhub.services.metrics import start_metrics_server
from sessionhub.services.realtime import StreamGateway
from sessionhub.services.session import DriftLedger, SessionReconciler

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # === STARTUP ===
    logger.info("🚀 Starting SessionHub Backend...")

    # Create database tables
    await init_db()
    logger.info("✅ Database tables created")

    # One gateway (one pooled HTTP client) for the whole process
    app.state.gateway = StreamGateway.from_settings()
    app.state.drift_ledger = DriftLedger()
    logger.info("✅ Stream gateway ready")

    reconciler_task = None
    if settings.RECONCILER_ENABLED:
        reconciler = SessionReconciler(app.state.drift_ledger, app.state.gateway, AsyncSessionLocal)
        reconciler_task = asyncio.create_task(reconciler.run_forever(settings.RECONCILE_INTERVAL_SECONDS))
        logger.info("✅ Session reconciler started")

    if settings.METRICS_ENABLED:
        start_metrics_server(settings.METRICS_PORT)

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("🛑 Shutting down...")
    if reconciler_task is not None:
        reconciler_task.cancel()
        try:
            await reconciler_task
        except asyncio.CancelledError:
            pass
    await app.state.gateway.aclose()
    await close_redis()


app = FastAPI(
    title="SessionHub Backend",
    description="Mock interview sessions with Stream video calls and chat",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"http://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include REST API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "SessionHub",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
    }
