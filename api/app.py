"""
Module 08 - FastAPI Application

Main application setup and configuration.

Usage:
    MERKLEDROP_DISTRIBUTION=distribution.json uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

import json
import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import claims, health, verify
from api.errors import APIError, api_error_handler, drop_error_handler, generic_error_handler
from core.schemas.errors import DropException


# Configure logging from MERKLEDROP_LOG_LEVEL or merkledrop.json log_level
def _resolve_log_level() -> int:
    """Resolve log level from env var or merkledrop.json, defaulting to INFO."""
    raw = os.getenv("MERKLEDROP_LOG_LEVEL")
    if raw is None:
        cfg_path = Path.cwd() / "merkledrop.json"
        if cfg_path.exists():
            try:
                with open(cfg_path) as f:
                    raw = json.load(f).get("log_level")
            except (OSError, json.JSONDecodeError, AttributeError):
                raw = None
    return getattr(logging, (raw or "INFO").upper(), logging.INFO)


logging.basicConfig(
    level=_resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="merkledrop API",
        description="""
Read-only HTTP API over a generated Merkle airdrop distribution.

## Endpoints

- **GET /distribution** - Merkle root, token total and claim count
- **GET /claims/{address}** - Claim amount, index, proof and signature
- **POST /verify/proof** - Check an explicit proof against the root
- **POST /verify/claim** - Check a stored claim, optionally its signature
- **GET /health** - Health check

The distribution is read once from `MERKLEDROP_DISTRIBUTION`
(default `distribution.json`).
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(DropException, drop_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(claims.router)
    app.include_router(verify.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
