"""FastAPI application for the package pricing and quote-versioning API.

Runs locally with uvicorn and on AWS Lambda behind API Gateway through
Mangum. Authentication happens in the gateway authorizer, which passes the
acting user in X-User-Id / X-User-Role headers.
"""

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from quote_api.exceptions import register_exception_handlers
from quote_api.middleware.correlation import CorrelationIdMiddleware
from quote_api.routes.packages import router as packages_router
from quote_api.routes.pricing import router as pricing_router
from quote_api.routes.quotes import router as quotes_router
from quote_engine import __version__
from quote_engine.utils.logging import configure_logging, get_logger

configure_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = get_logger(__name__)

app = FastAPI(
    title="Quote Engine API",
    description="REST API for package pricing, quote linking and version history",
    version=__version__,
)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

app.include_router(pricing_router, prefix="/api")
app.include_router(packages_router, prefix="/api")
app.include_router(quotes_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "quote-engine-api",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str | None = None, port: int | None = None, reload: bool = True) -> None:
    """Serve the app with uvicorn, defaulting to API_HOST / API_PORT."""
    import uvicorn

    host = host or os.getenv("API_HOST", "0.0.0.0")
    port = port or int(os.getenv("API_PORT", "8080"))
    logger.info(f"Starting quote engine API on {host}:{port}")
    if reload:
        # reload needs an import string rather than the app object
        uvicorn.run("quote_api.main:app", host=host, port=port, reload=True, reload_dirs=["src"])
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
