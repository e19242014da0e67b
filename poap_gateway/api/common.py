"""
Shared helpers for API routers.
"""

from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Session

from poap_gateway.models import Campaign
from poap_gateway.services.claims import ClaimError


def ok(data: Any = None, **extra) -> dict:
    """Success envelope."""
    body = {"success": True, "data": data}
    body.update(extra)
    return body


def get_owned_campaign(db: Session, campaign_id: str, organizer_id: str) -> Campaign:
    """Campaign owned by `organizer_id`; another organizer's campaign is a 404 like a missing one."""
    campaign = (
        db.query(Campaign)
        .filter(Campaign.id == campaign_id, Campaign.organizer_id == organizer_id)
        .first()
    )
    if campaign is None:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


def claim_http_error(error: ClaimError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)
