"""
POAP Gasless Gateway
====================

Multi-tenant FastAPI backend for POAP campaigns on Solana. Organizers manage
campaigns through a JWT-authenticated API; attendees claim POAPs through
public endpoints while the relayer keypair pays every fee.

Endpoints:
- /api/auth/*, /api/campaigns/*, /api/analytics/*: organizer API
- /api/integrations/*: ApiKey-authenticated reads
- /api/poap/*, /api/nft/*, /claim/{id}: public claiming
- /health, /api/system/*, /api/docs, /metrics: monitoring
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from poap_gateway import __version__
from poap_gateway.api import analytics, auth, campaigns, images, integrations, poap, relayer, system
from poap_gateway.config import print_config_summary, settings
from poap_gateway.db.database import close_db, init_db
from poap_gateway.middleware.rate_limit import RateLimitMiddleware
from poap_gateway.relayer.minter import NFTMinter
from poap_gateway.relayer.solana import SolanaService
from poap_gateway.utils.rate_limiter import rate_limiter_cleanup_task

logger = logging.getLogger(__name__)

AVAILABLE_ENDPOINTS = ["GET /health", "GET /api/docs", "POST /api/poap/claim"]


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_minter():
    """Build the relayer minter, or None if no usable relayer key is configured."""
    if not settings.RELAYER_SECRET_KEY:
        logger.warning("⚠️  No relayer configured - claim endpoints will answer 503")
        return None
    try:
        return NFTMinter(SolanaService.from_settings())
    except ValueError as e:
        logger.error(f"❌ Relayer key rejected: {e}")
        return None


# ============================================================
# Lifespan Context Manager (for background tasks)
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()

    print("\n" + "=" * 60)
    print("🚀 POAP GASLESS GATEWAY STARTING")
    print("=" * 60)

    init_db()
    print("✅ Database ready")

    app.state.minter = load_minter()
    if app.state.minter is not None:
        print(f"✅ Relayer loaded: {app.state.minter.relayer_pubkey}")

    rate_limiter_task = asyncio.create_task(rate_limiter_cleanup_task())
    print("✅ Rate limiter cleanup task started")
    print(f"📚 API Docs: {settings.PUBLIC_BASE_URL}/api/docs")
    print(f"🏥 Health Check: {settings.PUBLIC_BASE_URL}/health")
    print("=" * 60 + "\n")

    yield

    print("\n" + "=" * 60)
    print("🛑 SHUTTING DOWN GATEWAY")
    print("=" * 60)

    rate_limiter_task.cancel()
    results = await asyncio.gather(rate_limiter_task, return_exceptions=True)
    for result in results:
        if isinstance(result, Exception) and not isinstance(result, asyncio.CancelledError):
            logger.warning(f"⚠️  Task error during shutdown: {result}")

    if app.state.minter is not None:
        await app.state.minter.solana.close()
    close_db()

    print("✅ GATEWAY SHUTDOWN COMPLETE")
    print("=" * 60 + "\n")


# ============================================================
# Create FastAPI App
# ============================================================

app = FastAPI(
    title="POAP Gasless Gateway",
    description="Multi-tenant SaaS backend for gasless POAP minting on Solana",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/swagger",
    redoc_url=None,
)

# ============================================================
# Middleware
# ============================================================

app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials="*" not in settings.CORS_ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================
# Error Handlers
# ============================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Endpoint not found",
                "availableEndpoints": AVAILABLE_ENDPOINTS,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", message)
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# ============================================================
# Include API Routers
# ============================================================

app.include_router(system.router)
app.include_router(auth.router)
app.include_router(poap.router)  # /api/campaigns/{id}/public before campaign routes
app.include_router(images.router)
app.include_router(campaigns.router)
app.include_router(analytics.router)
app.include_router(integrations.router)
app.include_router(relayer.router)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


# ============================================================
# Run Server
# ============================================================

def main():
    import uvicorn

    configure_logging()
    print_config_summary(settings)
    uvicorn.run(
        "poap_gateway.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
