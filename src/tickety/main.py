# src/tickety/main.py
"""Main entry point for the Tickety backend."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from tickety.api.error_handlers import validation_exception_handler
from tickety.api.v1 import admins_router, auth_router, system_router
from tickety.core.settings import settings
from tickety.services.nonce_store import MemoryNonceStore, get_nonce_store
from tickety.services.sweeper import NonceSweeper

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Tickety API",
    description="Wallet-authenticated ticketing backend",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(admins_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    store = get_nonce_store()
    if isinstance(store, MemoryNonceStore):
        sweeper = NonceSweeper(store, settings.nonce_sweep_interval_seconds)
        await sweeper.start()
        app.state.nonce_sweeper = sweeper
    else:
        app.state.nonce_sweeper = None
    logger.info("Tickety API started (nonce backend: %s)", settings.nonce_backend)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    sweeper: NonceSweeper | None = getattr(app.state, "nonce_sweeper", None)
    if sweeper:
        await sweeper.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Tickety API",
        "version": settings.app_version,
        "description": "Wallet-authenticated ticketing backend",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tickety.main:app", host="0.0.0.0", port=3001, reload=settings.debug)
