"""
Relayer and Legacy NFT Endpoints

- GET  /api/relayer/stats                  Relayer wallet and mint totals
- POST /api/nft/claim-magical              Demo mint, one per (serviceId, wallet)
- POST /api/nft/claim-with-signature       Campaign claim authorized by a wallet signature
- GET  /api/nft/user/{userPublicKey}       NFTs held on chain by a wallet

Signed claims:
    message   = "poap-claim|<campaignId>|<userPublicKey>|<nonce>|<timestamp>"
    signature = base58 Ed25519 signature of message by userPublicKey
    nonce     = UUID v4, single use within NONCE_EXPIRY_SECONDS
    timestamp = unix seconds (milliseconds accepted), within SIGNATURE_TOLERANCE_SECONDS
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from poap_gateway.api.common import claim_http_error, ok
from poap_gateway.config import settings
from poap_gateway.db.database import get_db
from poap_gateway.models import CLAIM_CONFIRMED, Claim, LegacyMint
from poap_gateway.relayer.minter import NFTMinter, get_minter
from poap_gateway.relayer.solana import lamports_to_sol
from poap_gateway.services.claims import ClaimError, claim_legacy, claim_poap
from poap_gateway.utils.nonce import consume_nonce, is_valid_nonce
from poap_gateway.utils.signature import (
    construct_claim_message,
    is_timestamp_fresh,
    parse_public_key,
    short_key,
    verify_wallet_signature,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Relayer"])


class MagicalClaimRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_public_key: str = Field(..., alias="userPublicKey", min_length=1, max_length=64)
    service_id: Optional[str] = Field(default=None, alias="serviceId", min_length=1, max_length=100)


class SignedClaimRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_public_key: str = Field(..., alias="userPublicKey", min_length=1, max_length=64)
    campaign_id: str = Field(..., alias="campaignId", min_length=1, max_length=64)
    nonce: str = Field(..., max_length=64)
    timestamp: int
    signature: str = Field(..., min_length=1, max_length=128)
    secret_code: Optional[str] = Field(default=None, alias="secretCode", max_length=100)


def _timestamp_seconds(timestamp: int) -> float:
    # Browser clients send Date.now() milliseconds
    if timestamp > 10 ** 12:
        return timestamp / 1000
    return float(timestamp)


@router.get("/api/relayer/stats")
async def relayer_stats(
    db: Session = Depends(get_db),
    minter: Optional[NFTMinter] = Depends(get_minter),
):
    claim_mints, claim_gas = (
        db.query(func.count(Claim.id), func.coalesce(func.sum(Claim.gas_cost), 0))
        .filter(Claim.status == CLAIM_CONFIRMED)
        .one()
    )
    legacy_mints, legacy_gas = (
        db.query(func.count(LegacyMint.id), func.coalesce(func.sum(LegacyMint.gas_cost), 0))
        .filter(LegacyMint.mint_address.isnot(None))
        .one()
    )

    stats = {
        "relayerPublicKey": None,
        "balanceLamports": None,
        "balanceSOL": None,
        "network": settings.SOLANA_NETWORK,
        "rpcHost": None,
        "totalMints": claim_mints + legacy_mints,
        "totalGasCostSOL": lamports_to_sol(int(claim_gas) + int(legacy_gas)),
        "minBalanceSOL": lamports_to_sol(settings.MIN_RELAYER_BALANCE_LAMPORTS),
        "healthy": False,
    }
    if minter is None:
        return ok(stats)

    stats["relayerPublicKey"] = str(minter.relayer_pubkey)
    stats["rpcHost"] = minter.solana.rpc_host
    try:
        balance = await minter.get_balance()
    except Exception as e:
        logger.warning(f"⚠️  Relayer balance unavailable: {e}")
        stats["error"] = "Balance unavailable"
        return ok(stats)

    stats["balanceLamports"] = balance
    stats["balanceSOL"] = lamports_to_sol(balance)
    stats["healthy"] = balance >= settings.MIN_RELAYER_BALANCE_LAMPORTS
    return ok(stats)


@router.post("/api/nft/claim-magical", status_code=201)
async def claim_magical(
    payload: MagicalClaimRequest,
    db: Session = Depends(get_db),
    minter: Optional[NFTMinter] = Depends(get_minter),
):
    try:
        result = await claim_legacy(db, minter, payload.user_public_key.strip(), payload.service_id)
    except ClaimError as e:
        raise claim_http_error(e)
    return ok(result, message="NFT minted gaslessly")


@router.post("/api/nft/claim-with-signature", status_code=201)
async def claim_with_signature(
    payload: SignedClaimRequest,
    db: Session = Depends(get_db),
    minter: Optional[NFTMinter] = Depends(get_minter),
):
    """
    Claim a campaign POAP with proof of wallet ownership.

    Raises:
        400: Malformed nonce or stale timestamp
        401: Signature does not verify
        409: Nonce replayed (plus every error of POST /api/poap/claim)
    """
    user_public_key = payload.user_public_key.strip()

    if not is_valid_nonce(payload.nonce):
        raise HTTPException(status_code=400, detail="Nonce must be a UUID v4")

    if not is_timestamp_fresh(_timestamp_seconds(payload.timestamp)):
        raise HTTPException(status_code=400, detail="Signature timestamp expired or in the future")

    message = construct_claim_message(payload.campaign_id, user_public_key, payload.nonce, payload.timestamp)
    if not verify_wallet_signature(message, payload.signature, user_public_key):
        logger.warning(f"🚫 Invalid claim signature from {short_key(user_public_key)}")
        raise HTTPException(status_code=401, detail="Invalid signature")

    if not consume_nonce(payload.nonce):
        logger.warning(f"🔁 Replayed nonce from {short_key(user_public_key)}")
        raise HTTPException(status_code=409, detail="Nonce already used")

    try:
        result = await claim_poap(
            db,
            minter,
            campaign_id=payload.campaign_id,
            user_public_key=user_public_key,
            secret_code=payload.secret_code,
        )
    except ClaimError as e:
        raise claim_http_error(e)

    return ok(result, message="POAP claimed successfully")


@router.get("/api/nft/user/{user_public_key}")
async def get_user_nfts(user_public_key: str, minter: Optional[NFTMinter] = Depends(get_minter)):
    owner = parse_public_key(user_public_key)
    if owner is None:
        raise HTTPException(status_code=400, detail="Invalid userPublicKey")
    if minter is None:
        raise HTTPException(status_code=503, detail="Relayer not configured")

    try:
        nfts = await minter.solana.get_wallet_nfts(owner)
    except Exception as e:
        logger.error(f"❌ Failed to fetch NFTs for {short_key(user_public_key)}: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch NFTs from RPC")

    return ok({"userPublicKey": user_public_key, "total": len(nfts), "nfts": nfts})
