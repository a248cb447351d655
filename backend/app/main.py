"""
Stack Navigator Sessions - Main FastAPI Application
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from .config import settings
from .api import session_router, collect_email_router
from .core import SessionStore
from .core.logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


async def sweep_expired_sessions(app: FastAPI, interval_seconds: float) -> None:
    """Periodically purge expired sessions from the store on ``app.state``."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_in_threadpool(app.state.session_store.cleanup_expired_sessions)
        except Exception:
            logger.exception("Session sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    app.state.session_store = SessionStore.from_settings(settings)
    logger.info(
        f"Session store initialized: ttl={settings.session_ttl_seconds}s, "
        f"capacity={settings.session_max_total}, "
        f"rate_limit={settings.session_rate_limit_max}/{settings.session_rate_limit_window_seconds}s"
    )

    sweeper = None
    if settings.session_cleanup_interval_seconds > 0:
        sweeper = asyncio.create_task(
            sweep_expired_sessions(app, settings.session_cleanup_interval_seconds)
        )

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Debug mode: {settings.debug}")
    yield
    # Shutdown
    if sweeper is not None:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Conversation session service for Stack Navigator",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware, trust_proxy_headers=settings.trust_proxy_headers)

# Include routers
app.include_router(session_router)
app.include_router(collect_email_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    store = getattr(app.state, "session_store", None)
    return {
        "status": "healthy" if store is not None else "starting",
        "sessions": store.session_count() if store is not None else 0,
        "version": settings.app_version,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
