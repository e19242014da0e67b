"""
Wallet signature helpers.

Claims submitted through /api/nft/claim-with-signature carry an Ed25519
signature over:

    poap-claim|<campaignId>|<userPublicKey>|<nonce>|<timestamp>

made with the claiming wallet. Signatures are base58, as wallets return them.
"""

import logging
import time
from typing import Optional

from solders.pubkey import Pubkey
from solders.signature import Signature

from poap_gateway.config import settings

logger = logging.getLogger(__name__)

CLAIM_MESSAGE_PREFIX = "poap-claim"


def parse_public_key(value: str) -> Optional[Pubkey]:
    """Parse a base58 Solana address; None if it is not a valid 32-byte key."""
    if not isinstance(value, str) or not 32 <= len(value) <= 44:
        return None
    try:
        return Pubkey.from_string(value)
    except ValueError:
        return None


def is_valid_public_key(value: str) -> bool:
    return parse_public_key(value) is not None


def short_key(value: str) -> str:
    """Truncated key for log lines."""
    if not value or len(value) <= 10:
        return value
    return f"{value[:4]}...{value[-4:]}"


def construct_claim_message(campaign_id: str, user_public_key: str, nonce: str, timestamp: int) -> str:
    return f"{CLAIM_MESSAGE_PREFIX}|{campaign_id}|{user_public_key}|{nonce}|{timestamp}"


def is_timestamp_fresh(timestamp: int, now: Optional[float] = None) -> bool:
    """Timestamp (unix seconds) must be within SIGNATURE_TOLERANCE_SECONDS of now."""
    now = time.time() if now is None else now
    return abs(now - timestamp) <= settings.SIGNATURE_TOLERANCE_SECONDS


def verify_wallet_signature(message: str, signature_b58: str, public_key: str) -> bool:
    """
    Verify an Ed25519 wallet signature.

    Args:
        message: UTF-8 message the wallet signed
        signature_b58: Base58 signature (64 bytes)
        public_key: Base58 wallet address

    Returns:
        bool: True only if the signature is well formed and valid
    """
    pubkey = parse_public_key(public_key)
    if pubkey is None:
        return False

    try:
        signature = Signature.from_string(signature_b58)
    except ValueError:
        logger.debug(f"Malformed signature from {short_key(public_key)}")
        return False

    return signature.verify(pubkey, message.encode("utf-8"))
