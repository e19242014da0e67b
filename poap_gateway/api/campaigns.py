"""
Campaign API Endpoints

All endpoints require an organizer JWT and only ever see the caller's own
campaigns:
- POST   /api/campaigns                      Create campaign
- GET    /api/campaigns                      List campaigns (page, limit, search, isActive)
- GET    /api/campaigns/{id}                 Get campaign
- PUT    /api/campaigns/{id}                 Partial update
- DELETE /api/campaigns/{id}                 Delete campaign and its claims
- GET    /api/campaigns/{id}/analytics       Claim and gas statistics
- GET    /api/campaigns/{id}/claims          Paginated claims, newest first
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import or_
from sqlalchemy.orm import Session

from poap_gateway.api.common import get_owned_campaign, ok
from poap_gateway.db.database import get_db
from poap_gateway.middleware.auth import AuthContext, authenticate
from poap_gateway.models import Campaign, Claim
from poap_gateway.services import analytics
from poap_gateway.services.claims import count_claims

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/campaigns", tags=["Campaigns"])


def _http_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value.startswith(("http://", "https://")):
        raise ValueError("must be an http(s) URL")
    return value


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class CampaignFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    description: Optional[str] = Field(default=None, max_length=5000)
    event_date: Optional[datetime] = Field(default=None, alias="eventDate")
    location: Optional[str] = Field(default=None, max_length=255)
    image_url: Optional[str] = Field(default=None, alias="imageUrl", max_length=1000)
    external_url: Optional[str] = Field(default=None, alias="externalUrl", max_length=1000)
    secret_code: Optional[str] = Field(default=None, alias="secretCode", min_length=1, max_length=100)
    max_claims: Optional[int] = Field(default=None, alias="maxClaims", ge=1)
    symbol: Optional[str] = Field(default=None, min_length=1, max_length=10)
    metadata_uri: Optional[str] = Field(default=None, alias="metadataUri", max_length=200)
    campaign_metadata: Optional[Dict[str, Any]] = Field(default=None, alias="metadata")
    is_active: Optional[bool] = Field(default=None, alias="isActive")

    @field_validator("external_url", "metadata_uri")
    @classmethod
    def check_http_url(cls, v):
        return _http_url(v)

    @field_validator("event_date")
    @classmethod
    def to_naive_utc(cls, v):
        return _naive_utc(v)


class CampaignCreate(CampaignFields):
    name: str = Field(..., min_length=1, max_length=200)


class CampaignUpdate(CampaignFields):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)


@router.post("", status_code=201)
def create_campaign(
    payload: CampaignCreate,
    auth: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    fields = payload.model_dump(exclude_none=True)
    fields["name"] = fields["name"].strip()
    campaign = Campaign(organizer_id=auth.organizer_id, **fields)
    if campaign.campaign_metadata is None:
        campaign.campaign_metadata = {}
    db.add(campaign)
    db.commit()

    logger.info(f"📅 Campaign created: {campaign.id} by {auth.organizer_id}")
    return ok(campaign.to_dict())


@router.get("")
def list_campaigns(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=200),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    auth: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    query = db.query(Campaign).filter(Campaign.organizer_id == auth.organizer_id)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Campaign.name.ilike(pattern),
            Campaign.description.ilike(pattern),
            Campaign.location.ilike(pattern),
        ))
    if is_active is not None:
        query = query.filter(Campaign.is_active.is_(is_active))

    total = query.count()
    campaigns = (
        query.order_by(Campaign.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    counts = analytics.claim_counts(db, [c.id for c in campaigns])

    return ok({
        "campaigns": [c.to_dict(claim_count=counts.get(c.id, 0)) for c in campaigns],
        "page": page,
        "limit": limit,
        "total": total,
    })


@router.get("/{campaign_id}")
def get_campaign(campaign_id: str, auth: AuthContext = Depends(authenticate), db: Session = Depends(get_db)):
    campaign = get_owned_campaign(db, campaign_id, auth.organizer_id)
    return ok(campaign.to_dict(claim_count=count_claims(db, campaign.id)))


@router.put("/{campaign_id}")
def update_campaign(
    campaign_id: str,
    payload: CampaignUpdate,
    auth: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    campaign = get_owned_campaign(db, campaign_id, auth.organizer_id)

    updates = payload.model_dump(exclude_unset=True)
    # Explicit null clears optional fields; required ones keep their value
    for required in ("name", "symbol", "is_active"):
        if required in updates and updates[required] is None:
            del updates[required]
    if updates.get("name"):
        updates["name"] = updates["name"].strip()

    for field, value in updates.items():
        setattr(campaign, field, value)
    db.commit()

    logger.info(f"✏️  Campaign updated: {campaign.id} ({', '.join(sorted(updates)) or 'no changes'})")
    return ok(campaign.to_dict(claim_count=count_claims(db, campaign.id)))


@router.delete("/{campaign_id}")
def delete_campaign(campaign_id: str, auth: AuthContext = Depends(authenticate), db: Session = Depends(get_db)):
    campaign = get_owned_campaign(db, campaign_id, auth.organizer_id)
    db.delete(campaign)
    db.commit()

    logger.info(f"🗑️  Campaign deleted: {campaign_id}")
    return ok({"id": campaign_id}, message="Campaign deleted")


@router.get("/{campaign_id}/analytics")
def get_campaign_analytics(
    campaign_id: str,
    auth: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    campaign = get_owned_campaign(db, campaign_id, auth.organizer_id)
    return ok(analytics.campaign_analytics(db, campaign))


@router.get("/{campaign_id}/claims")
def get_campaign_claims(
    campaign_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    auth: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db),
):
    campaign = get_owned_campaign(db, campaign_id, auth.organizer_id)
    query = db.query(Claim).filter(Claim.campaign_id == campaign.id)

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
