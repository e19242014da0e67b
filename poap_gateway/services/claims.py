"""
POAP Claim Service
==================

Validates and executes gasless claims.

Flow for one claim:
1. Validate wallet address, campaign state and secret code (no locks)
2. Under the campaign's asyncio.Lock: re-check duplicates and the claim cap,
   then insert a "pending" claim row. The pending row holds the wallet's slot
   and counts against max_claims while the mint is in flight.
3. Outside the lock: relayer balance check, mint, flip the row to "confirmed".
   A failure before the mint transaction is broadcast deletes the pending row
   so the wallet can retry. Once broadcast, the row is never deleted: an
   unconfirmed mint stays "pending" with its transaction signature.

The unique constraint on (campaign_id, user_public_key) covers deployments
with more than one gateway process.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from poap_gateway.config import EXPLORER_BASE_URL, settings
from poap_gateway.models import CLAIM_CONFIRMED, CLAIM_PENDING, Campaign, Claim, LegacyMint
from poap_gateway.relayer.minter import MintError, MintUnconfirmed, NFTMinter
from poap_gateway.relayer.solana import lamports_to_sol
from poap_gateway.utils.metrics import CLAIMS_TOTAL
from poap_gateway.utils.security import constant_time_equals
from poap_gateway.utils.signature import is_valid_public_key, short_key

logger = logging.getLogger(__name__)


# ============================================================
# Errors
# ============================================================

class ClaimError(Exception):
    """Claim rejected; `status_code` is the HTTP status to answer with."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidPublicKey(ClaimError):
    def __init__(self):
        super().__init__("Invalid userPublicKey", 400)


class CampaignNotFound(ClaimError):
    def __init__(self):
        super().__init__("Campaign not found", 404)


class CampaignInactive(ClaimError):
    def __init__(self):
        super().__init__("Campaign is not active", 400)


class InvalidSecretCode(ClaimError):
    def __init__(self):
        super().__init__("Invalid secret code", 403)


class RelayerUnavailable(ClaimError):
    def __init__(self, message: str = "Relayer not configured"):
        super().__init__(message, 503)


class AlreadyClaimed(ClaimError):
    def __init__(self):
        super().__init__("Already claimed", 409)


class ClaimLimitReached(ClaimError):
    def __init__(self):
        super().__init__("Campaign claim limit reached", 409)


class MintFailed(ClaimError):
    def __init__(self):
        super().__init__("Mint failed", 502)


class MintPending(ClaimError):
    def __init__(self):
        super().__init__("Mint submitted but not yet confirmed", 504)


# ============================================================
# Locks
# ============================================================

# Structure: {key: [asyncio.Lock, number of holders and waiters]}
_campaign_locks: Dict[str, list] = {}


@asynccontextmanager
async def campaign_lock(key: str):
    """
    Hold the lock for `key` (a campaign id, or "legacy:<serviceId>").

    The table only holds keys with a current holder or waiter.
    """
    entry = _campaign_locks.get(key)
    if entry is None:
        entry = _campaign_locks[key] = [asyncio.Lock(), 0]
    entry[1] += 1
    try:
        async with entry[0]:
            yield
    finally:
        entry[1] -= 1
        if entry[1] == 0 and _campaign_locks.get(key) is entry:
            del _campaign_locks[key]


def explorer_tx_url(signature: str) -> str:
    return f"{EXPLORER_BASE_URL}/tx/{signature}{settings.explorer_cluster_suffix}"


def count_claims(db: Session, campaign_id: str, include_pending: bool = False) -> int:
    query = db.query(func.count(Claim.id)).filter(Claim.campaign_id == campaign_id)
    if not include_pending:
        query = query.filter(Claim.status == CLAIM_CONFIRMED)
    return query.scalar() or 0


async def _ensure_balance(minter: NFTMinter) -> None:
    try:
        balance = await minter.get_balance()
    except Exception as e:
        logger.error(f"❌ Could not read relayer balance: {e}")
        raise RelayerUnavailable("Relayer unavailable")

    if balance < settings.MIN_RELAYER_BALANCE_LAMPORTS:
        logger.warning(
            f"⚠️  Relayer balance too low: {balance} < {settings.MIN_RELAYER_BALANCE_LAMPORTS} lamports"
        )
        raise RelayerUnavailable("Relayer balance too low")


# ============================================================
# Campaign claims
# ============================================================

def _reserve_claim(db: Session, campaign: Campaign, user_public_key: str) -> Claim:
    existing = (
        db.query(Claim)
        .filter(Claim.campaign_id == campaign.id, Claim.user_public_key == user_public_key)
        .first()
    )
    if existing is not None:
        raise AlreadyClaimed()

    if campaign.max_claims is not None:
        if count_claims(db, campaign.id, include_pending=True) >= campaign.max_claims:
            raise ClaimLimitReached()

    claim = Claim(campaign_id=campaign.id, user_public_key=user_public_key, status=CLAIM_PENDING)
    db.add(claim)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyClaimed()
    return claim


def _release_claim(db: Session, row) -> None:
    """Delete a reservation row (Claim or LegacyMint) after a failed mint."""
    db.delete(row)
    db.commit()


def _hold_unconfirmed(db: Session, row, error: MintUnconfirmed) -> None:
    """Keep a reservation whose mint was broadcast, recording what was sent."""
    row.mint_address = error.mint
    row.transaction_hash = error.signature
    if isinstance(row, Claim):
        row.token_account = error.token_account
    db.commit()
    logger.warning(f"⏳ Holding unconfirmed mint {error.mint} (signature {error.signature})")


async def claim_poap(
    db: Session,
    minter: Optional[NFTMinter],
    campaign_id: str,
    user_public_key: str,
    secret_code: Optional[str] = None,
) -> Dict:
    """
    Claim a campaign POAP for `user_public_key`.

    Returns:
        Dict: claimId, campaignId, userPublicKey, mintAddress, tokenAccount,
              transactionSignature, gasCostLamports, explorerUrl

    Raises:
        ClaimError: Rejected claim (status_code carries the HTTP status)
    """
    try:
        if not is_valid_public_key(user_public_key):
            raise InvalidPublicKey()

        campaign = db.get(Campaign, campaign_id)
        if campaign is None:
            raise CampaignNotFound()
        if not campaign.is_active:
            raise CampaignInactive()

        if campaign.secret_code:
            if not secret_code or not constant_time_equals(secret_code, campaign.secret_code):
                raise InvalidSecretCode()

        if minter is None:
            raise RelayerUnavailable()

        async with campaign_lock(campaign.id):
            claim = _reserve_claim(db, campaign, user_public_key)
    except ClaimError:
        CLAIMS_TOTAL.labels(outcome="rejected").inc()
        raise

    logger.info(f"🎫 Claim reserved: campaign={campaign.id} user={short_key(user_public_key)}")

    try:
        await _ensure_balance(minter)
    except RelayerUnavailable:
        _release_claim(db, claim)
        CLAIMS_TOTAL.labels(outcome="rejected").inc()
        raise

    try:
        result = await minter.mint_to(
            user_public_key,
            name=campaign.name,
            symbol=campaign.symbol or settings.DEFAULT_NFT_SYMBOL,
            uri=campaign.metadata_uri,
        )
    except MintUnconfirmed as e:
        _hold_unconfirmed(db, claim, e)
        CLAIMS_TOTAL.labels(outcome="unconfirmed").inc()
        raise MintPending()
    except MintError as e:
        _release_claim(db, claim)
        CLAIMS_TOTAL.labels(outcome="mint_failed").inc()
        logger.error(f"❌ Mint failed for claim {claim.id}: {e}")
        raise MintFailed()

    claim.status = CLAIM_CONFIRMED
    claim.mint_address = result.mint
    claim.token_account = result.token_account
    claim.transaction_hash = result.signature
    claim.gas_cost = result.gas_cost_lamports
    db.commit()

    CLAIMS_TOTAL.labels(outcome="confirmed").inc()
    logger.info(f"✅ Claim confirmed: {claim.id} mint={result.mint}")

    return {
        "claimId": claim.id,
        "campaignId": campaign.id,
        "userPublicKey": user_public_key,
        "mintAddress": result.mint,
        "tokenAccount": result.token_account,
        "transactionSignature": result.signature,
        "gasCostLamports": result.gas_cost_lamports,
        "explorerUrl": explorer_tx_url(result.signature),
    }


# ============================================================
# Legacy demo mints
# ============================================================

DEFAULT_SERVICE_ID = "default"


async def claim_legacy(
    db: Session,
    minter: Optional[NFTMinter],
    user_public_key: str,
    service_id: Optional[str] = None,
) -> Dict:
    """Mint one demo NFT per (service, wallet), without a campaign."""
    service_id = service_id or DEFAULT_SERVICE_ID

    if not is_valid_public_key(user_public_key):
        raise InvalidPublicKey()
    if minter is None:
        raise RelayerUnavailable()

    async with campaign_lock(f"legacy:{service_id}"):
        existing = (
            db.query(LegacyMint)
            .filter(LegacyMint.service_id == service_id, LegacyMint.user_public_key == user_public_key)
            .first()
        )
        if existing is not None:
            raise AlreadyClaimed()

        record = LegacyMint(service_id=service_id, user_public_key=user_public_key)
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AlreadyClaimed()

    try:
        await _ensure_balance(minter)
    except RelayerUnavailable:
        _release_claim(db, record)
        raise

    name = f"{settings.LEGACY_NFT_NAME} {service_id}"
    try:
        result = await minter.mint_to(user_public_key, name=name, symbol=settings.DEFAULT_NFT_SYMBOL)
    except MintUnconfirmed as e:
        _hold_unconfirmed(db, record, e)
        raise MintPending()
    except MintError as e:
        _release_claim(db, record)
        logger.error(f"❌ Legacy mint failed for {short_key(user_public_key)}: {e}")
        raise MintFailed()

    record.mint_address = result.mint
    record.transaction_hash = result.signature
    record.gas_cost = result.gas_cost_lamports
    db.commit()

    return {
        "nftMint": result.mint,
        "transactionSignature": result.signature,
        "userTokenAccount": result.token_account,
        "gasCostPaidByRelayer": lamports_to_sol(result.gas_cost_lamports),
        "metadata": {
            "name": name,
            "symbol": settings.DEFAULT_NFT_SYMBOL,
            "uri": result.uri,
            "serviceId": service_id,
        },
        "relayerPublicKey": str(minter.relayer_pubkey),
        "explorerUrl": explorer_tx_url(result.signature),
    }
