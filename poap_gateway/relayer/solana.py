"""
Solana RPC Service
==================

Wraps the async JSON-RPC client and the relayer hot keypair.

Only idempotent reads are retried. Sending a transaction is never retried
here: a resend after a timeout could land a second mint.
"""

import json
import logging
from typing import List, Optional
from urllib.parse import urlparse

import base58
import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TokenAccountOpts, TxOpts
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from poap_gateway.config import settings

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
SECRET_KEY_LENGTH = 64

rpc_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type((SolanaRpcException, httpx.HTTPError)),
    reraise=True,
)


def load_keypair(secret: str) -> Keypair:
    """
    Load the relayer keypair.

    Accepts a base58 secret key (64 bytes) or a JSON byte array as written
    by `solana-keygen`.

    Raises:
        ValueError: Secret cannot be decoded into a keypair
    """
    secret = (secret or "").strip()
    if not secret:
        raise ValueError("RELAYER_SECRET_KEY is empty")

    try:
        if secret.startswith("["):
            raw = bytes(json.loads(secret))
        else:
            raw = base58.b58decode(secret)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid relayer secret key: {e}") from e

    if len(raw) != SECRET_KEY_LENGTH:
        raise ValueError(f"Relayer secret key must be {SECRET_KEY_LENGTH} bytes, got {len(raw)}")
    return Keypair.from_bytes(raw)


class TransactionUnconfirmed(Exception):
    """Transaction was broadcast but confirmation did not come back; it may still land."""

    def __init__(self, signature: Signature, reason: str):
        super().__init__(f"Transaction {signature} unconfirmed: {reason}")
        self.signature = signature


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


class SolanaService:
    """RPC client plus relayer keypair."""

    def __init__(self, keypair: Keypair, rpc_url: Optional[str] = None, client: Optional[AsyncClient] = None):
        self.rpc_url = rpc_url or settings.SOLANA_RPC_URL
        self.relayer = keypair
        self.client = client or AsyncClient(self.rpc_url, commitment=Confirmed)

        logger.info(f"🌐 Connected to: {self.rpc_host}")
        logger.info(f"⚡ Relayer loaded: {self.relayer.pubkey()}")

    @classmethod
    def from_settings(cls) -> "SolanaService":
        return cls(load_keypair(settings.RELAYER_SECRET_KEY), settings.SOLANA_RPC_URL)

    @property
    def relayer_pubkey(self) -> Pubkey:
        return self.relayer.pubkey()

    @property
    def rpc_host(self) -> str:
        """RPC host without path or query (API keys often live there)."""
        return urlparse(self.rpc_url).netloc or self.rpc_url

    @rpc_retry
    async def get_balance(self, pubkey: Optional[Pubkey] = None) -> int:
        resp = await self.client.get_balance(pubkey or self.relayer_pubkey, commitment=Confirmed)
        return resp.value

    @rpc_retry
    async def get_latest_blockhash(self) -> Hash:
        resp = await self.client.get_latest_blockhash(commitment=Confirmed)
        return resp.value.blockhash

    @rpc_retry
    async def get_minimum_balance_for_rent_exemption(self, size: int) -> int:
        resp = await self.client.get_minimum_balance_for_rent_exemption(size, commitment=Confirmed)
        return resp.value

    async def send_and_confirm(self, tx: Transaction) -> Signature:
        """
        Send a fully signed transaction and wait for confirmed commitment.

        Raises:
            TransactionUnconfirmed: The send was accepted but confirmation failed
                or timed out
        """
        resp = await self.client.send_transaction(
            tx, opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed)
        )
        signature = resp.value
        try:
            await self.client.confirm_transaction(signature, commitment=Confirmed)
        except Exception as e:
            raise TransactionUnconfirmed(signature, str(e)) from e
        return signature

    @rpc_retry
    async def get_wallet_nfts(self, owner: Pubkey) -> List[dict]:
        """Token accounts of `owner` that hold exactly one unit of a 0-decimal mint."""
        resp = await self.client.get_token_accounts_by_owner_json_parsed(
            owner, TokenAccountOpts(program_id=TOKEN_PROGRAM_ID), commitment=Confirmed
        )

        nfts = []
        for keyed in resp.value:
            parsed = keyed.account.data.parsed
            info = parsed.get("info", {}) if isinstance(parsed, dict) else {}
            amount = info.get("tokenAmount", {})
            if amount.get("decimals") == 0 and amount.get("amount") == "1":
                nfts.append({
                    "mint": info.get("mint"),
                    "tokenAccount": str(keyed.pubkey),
                    "amount": 1,
                })
        return nfts

    async def close(self) -> None:
        await self.client.close()
        logger.info("🔌 Solana RPC client closed")
