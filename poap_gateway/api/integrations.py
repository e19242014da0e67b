"""
Integration API Endpoints

Read-only access for server-to-server integrations. Authenticated with
`Authorization: ApiKey <key>`; organizer JWTs are not accepted here.

- GET /api/integrations/campaigns                 Active campaigns of the key's organizer
- GET /api/integrations/campaigns/{id}/claims     Confirmed claims of one campaign
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from poap_gateway.api.common import get_owned_campaign, ok
from poap_gateway.db.database import get_db
from poap_gateway.middleware.auth import AuthContext, authenticate_api_key, require_role
from poap_gateway.models import CLAIM_CONFIRMED, Campaign, Claim
from poap_gateway.services import analytics

router = APIRouter(prefix="/api/integrations", tags=["Integrations"])

api_key_auth = require_role(["api"], authenticate_api_key)


@router.get("/campaigns")
def list_active_campaigns(auth: AuthContext = Depends(api_key_auth), db: Session = Depends(get_db)):
    campaigns = (
        db.query(Campaign)
        .filter(Campaign.organizer_id == auth.organizer_id, Campaign.is_active.is_(True))
        .order_by(Campaign.created_at.desc())
        .all()
    )
    counts = analytics.claim_counts(db, [c.id for c in campaigns])
    return ok({
        "campaigns": [c.to_dict(claim_count=counts.get(c.id, 0), include_secret=False) for c in campaigns],
        "total": len(campaigns),
    })


@router.get("/campaigns/{campaign_id}/claims")
def list_confirmed_claims(
    campaign_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    auth: AuthContext = Depends(api_key_auth),
    db: Session = Depends(get_db),
):
    campaign = get_owned_campaign(db, campaign_id, auth.organizer_id)
    query = db.query(Claim).filter(Claim.campaign_id == campaign.id, Claim.status == CLAIM_CONFIRMED)

    total = query.count()
    claims = (
        query.order_by(Claim.claimed_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ok({
        "claims": [c.to_dict() for c in claims],
        "page": page,
        "limit": limit,
        "total": total,
    })
