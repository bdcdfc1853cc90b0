# src/fortress_gate/main.py
"""Main entry point for the Fortress Gate application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from fortress_gate.api.endpoints import auth_router, proxy_router, system_router
from fortress_gate.core.errors import GatewayError
from fortress_gate.core.logger import setup_logging
from fortress_gate.core.settings import settings
from fortress_gate.services.login_attempts import get_login_attempt_tracker
from fortress_gate.services.upstream import get_upstream_client

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Fortress Gate",
    description="Authentication gateway and reverse proxy for the Fortress API",
    version=settings.app_version,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router)
app.include_router(proxy_router)
app.include_router(system_router)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Render gateway errors as ``{"error": ...}`` payloads."""
    return JSONResponse(
        exc.payload(),
        status_code=exc.status_code,
        headers=exc.headers(),
    )


@app.on_event("startup")
async def on_startup() -> None:
    await get_login_attempt_tracker().start()
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_login_attempt_tracker().stop()
    await get_upstream_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fortress_gate.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
