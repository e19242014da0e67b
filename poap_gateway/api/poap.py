"""
Public POAP Claiming Endpoints

No authentication; the relayer pays for every mint.
- POST /api/poap/claim                    Claim a campaign POAP
- GET  /api/campaigns/{id}/public         Public campaign view
- GET  /api/poap/user/{userPublicKey}     Confirmed POAPs of a wallet
- GET  /claim/{campaignId}                Minimal claim page
"""

import html
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from poap_gateway.api.common import claim_http_error, ok
from poap_gateway.db.database import get_db
from poap_gateway.models import CLAIM_CONFIRMED, Campaign, Claim
from poap_gateway.models.common import iso
from poap_gateway.relayer.minter import NFTMinter, get_minter
from poap_gateway.services.claims import ClaimError, claim_poap, count_claims, explorer_tx_url
from poap_gateway.utils.signature import is_valid_public_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["POAP"])


class ClaimRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    campaign_id: str = Field(..., alias="campaignId", min_length=1, max_length=64)
    user_public_key: str = Field(..., alias="userPublicKey", min_length=1, max_length=64)
    secret_code: Optional[str] = Field(default=None, alias="secretCode", max_length=100)


@router.post("/api/poap/claim", status_code=201)
async def claim(
    payload: ClaimRequest,
    db: Session = Depends(get_db),
    minter: Optional[NFTMinter] = Depends(get_minter),
):
    """
    Claim a POAP for a wallet.

    Raises:
        400: Invalid wallet address or inactive campaign
        403: Wrong secret code
        404: Unknown campaign
        409: Already claimed or claim limit reached
        502: Mint transaction failed
        503: Relayer not configured or balance too low
    """
    try:
        result = await claim_poap(
            db,
            minter,
            campaign_id=payload.campaign_id,
            user_public_key=payload.user_public_key.strip(),
            secret_code=payload.secret_code,
        )
    except ClaimError as e:
        raise claim_http_error(e)

    return ok(result, message="POAP claimed successfully")


@router.get("/api/campaigns/{campaign_id}/public")
def get_public_campaign(campaign_id: str, db: Session = Depends(get_db)):
    campaign = db.get(Campaign, campaign_id)
    if campaign is None:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return ok(campaign.to_public_dict(claim_count=count_claims(db, campaign.id)))


@router.get("/api/poap/user/{user_public_key}")
def get_user_poaps(user_public_key: str, db: Session = Depends(get_db)):
    if not is_valid_public_key(user_public_key):
        raise HTTPException(status_code=400, detail="Invalid userPublicKey")

    rows = (
        db.query(Claim, Campaign)
        .join(Campaign, Claim.campaign_id == Campaign.id)
        .filter(Claim.user_public_key == user_public_key, Claim.status == CLAIM_CONFIRMED)
        .order_by(Claim.claimed_at.desc())
        .all()
    )

    poaps = [
        {
            "claimId": claim.id,
            "mintAddress": claim.mint_address,
            "tokenAccount": claim.token_account,
            "transactionSignature": claim.transaction_hash,
            "explorerUrl": explorer_tx_url(claim.transaction_hash) if claim.transaction_hash else None,
            "claimedAt": iso(claim.claimed_at),
            "campaign": {
                "id": campaign.id,
                "name": campaign.name,
                "eventDate": iso(campaign.event_date),
                "location": campaign.location,
                "imageUrl": campaign.image_url,
                "symbol": campaign.symbol,
            },
        }
        for claim, campaign in rows
    ]
    return ok({"userPublicKey": user_public_key, "total": len(poaps), "poaps": poaps})


@router.get("/claim/{campaign_id}", response_class=HTMLResponse)
def claim_page(campaign_id: str):
    safe_id = html.escape(campaign_id)
    return HTMLResponse(f"""
    <html>
      <head><title>Claim</title></head>
      <body style="font-family: sans-serif; max-width: 680px; margin: 40px auto;">
        <h1>Campaign Claim</h1>
        <p>Campaign ID: <b>{safe_id}</b></p>
        <p>Your frontend should call <code>POST /api/poap/claim</code> with
        <code>campaignId</code>, <code>userPublicKey</code> and an optional <code>secretCode</code>.</p>
      </body>
    </html>
    """)
