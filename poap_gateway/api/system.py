"""
System Monitoring Endpoints

- GET /                              Build info
- GET /health                        Liveness plus database and relayer status
- GET /api/system/stats              Row counts, uptime, relayer summary
- GET /api/system/migration-status   Expected vs present tables
- GET /api/system/test-db            SELECT 1 round trip
- GET /api/docs                      Endpoint catalogue
- GET /metrics                       Prometheus exposition
"""

import logging
import platform
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from poap_gateway import __version__
from poap_gateway.api.common import ok
from poap_gateway.config import settings
from poap_gateway.db.database import get_db, get_table_status, test_db_connection
from poap_gateway.models import CLAIM_CONFIRMED, ApiKey, Campaign, Claim, Organizer
from poap_gateway.models.responses import BuildInfoResponse, HealthResponse
from poap_gateway.relayer.minter import NFTMinter, get_minter
from poap_gateway.utils.metrics import render_latest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])

STARTED_AT = time.time()

API_CATALOGUE = {
    "auth": {
        "POST /auth/register": "Register organizer",
        "POST /auth/login": "Login",
        "GET /auth/profile": "Organizer profile",
        "POST /auth/api-keys": "Create API key",
        "GET /auth/api-keys": "List API keys",
        "DELETE /auth/api-keys/:keyId": "Deactivate API key",
    },
    "campaigns": {
        "POST /campaigns": "Create campaign",
        "GET /campaigns": "List campaigns",
        "GET /campaigns/:campaignId": "Get campaign",
        "PUT /campaigns/:campaignId": "Update campaign",
        "DELETE /campaigns/:campaignId": "Delete campaign",
        "GET /campaigns/:campaignId/analytics": "Campaign analytics",
        "GET /campaigns/:campaignId/claims": "Campaign claims",
        "POST /campaigns/:campaignId/image": "Upload campaign image",
    },
    "analytics": {
        "GET /analytics/dashboard": "Dashboard analytics overview",
        "GET /analytics/claims/daily": "Daily claims",
        "GET /analytics/trend/monthly": "Monthly trend",
    },
    "integrations": {
        "GET /integrations/campaigns": "Active campaigns (ApiKey auth)",
        "GET /integrations/campaigns/:campaignId/claims": "Confirmed claims (ApiKey auth)",
    },
    "poap": {
        "POST /poap/claim": "Public claim endpoint",
        "GET /campaigns/:campaignId/public": "Public campaign info",
        "GET /poap/user/:userPublicKey": "User POAPs",
    },
    "relayer": {
        "GET /relayer/stats": "Relayer wallet and mint totals",
        "POST /nft/claim-magical": "Legacy demo mint",
        "POST /nft/claim-with-signature": "Claim with wallet signature",
        "GET /nft/user/:userPublicKey": "On-chain NFTs of a wallet",
    },
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _relayer_summary(minter: Optional[NFTMinter]) -> dict:
    if minter is None:
        return {"configured": False}
    return {
        "configured": True,
        "publicKey": str(minter.relayer_pubkey),
        "network": settings.SOLANA_NETWORK,
    }


@router.get("/", response_model=BuildInfoResponse)
async def root():
    return BuildInfoResponse(
        service="poap-gateway",
        status="ok",
        version=__version__,
        build_id=settings.BUILD_ID,
        timestamp=_now_iso(),
    )


@router.get("/health", response_model=HealthResponse)
def health(response: Response, minter: Optional[NFTMinter] = Depends(get_minter)):
    """
    Health check for container orchestration.

    Returns 503 when the database is unreachable. A missing relayer only
    degrades the status: CRUD endpoints still work without it.
    """
    database = test_db_connection()
    relayer = _relayer_summary(minter)

    status = "healthy" if database["ok"] and relayer["configured"] else "degraded"
    if not database["ok"]:
        response.status_code = 503

    return HealthResponse(
        status=status,
        timestamp=_now_iso(),
        version=__version__,
        database=database,
        relayer=relayer,
    )


@router.get("/api/system/stats")
def system_stats(db: Session = Depends(get_db), minter: Optional[NFTMinter] = Depends(get_minter)):
    return ok({
        "counts": {
            "organizers": db.query(func.count(Organizer.id)).scalar(),
            "campaigns": db.query(func.count(Campaign.id)).scalar(),
            "activeCampaigns": db.query(func.count(Campaign.id)).filter(Campaign.is_active.is_(True)).scalar(),
            "claims": db.query(func.count(Claim.id)).filter(Claim.status == CLAIM_CONFIRMED).scalar(),
            "pendingClaims": db.query(func.count(Claim.id)).filter(Claim.status != CLAIM_CONFIRMED).scalar(),
            "apiKeys": db.query(func.count(ApiKey.id)).filter(ApiKey.is_active.is_(True)).scalar(),
        },
        "uptimeSeconds": round(time.time() - STARTED_AT, 1),
        "environment": settings.APP_ENV,
        "pythonVersion": platform.python_version(),
        "version": __version__,
        "relayer": _relayer_summary(minter),
        "timestamp": _now_iso(),
    })


@router.get("/api/system/migration-status")
def migration_status():
    status = get_table_status()
    return ok({
        "expectedTables": status["expected"],
        "presentTables": status["present"],
        "missingTables": status["missing"],
        "upToDate": status["up_to_date"],
    })


@router.get("/api/system/test-db")
def test_db():
    result = test_db_connection()
    if not result["ok"]:
        return JSONResponse(status_code=503, content={"success": False, "error": "Database connection failed"})
    return ok({"connected": True, "latencyMs": result["latency_ms"]})


@router.get("/api/docs")
def api_docs(request: Request):
    return {
        "title": "Multi-Tenant Gasless POAP API",
        "version": __version__,
        "description": "SaaS platform for gasless NFT minting on Solana with secret code validation",
        "baseUrl": f"{str(request.base_url).rstrip('/')}/api",
        "endpoints": API_CATALOGUE,
    }


@router.get("/metrics")
def metrics():
    body, content_type = render_latest()
    return Response(content=body, media_type=content_type)
