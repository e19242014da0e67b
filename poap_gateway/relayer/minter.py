"""
NFT Minter
==========

Mints a 1/1 POAP straight into the claimer's wallet with the relayer paying
every fee and rent deposit.

One transaction:
1. create mint account (rent exempt)
2. initialize mint (0 decimals, relayer as mint + freeze authority)
3. create the owner's associated token account
4. mint 1 token to it
5. create Metaplex metadata
6. create master edition (max supply 0, no prints)

Mints are serialized behind one asyncio.Lock because every transaction is
paid by the same hot keypair; the gas cost is the relayer balance delta.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, create_account
from solders.transaction import Transaction
from spl.token.constants import MINT_LEN, TOKEN_PROGRAM_ID
from spl.token.instructions import (
    InitializeMintParams,
    MintToParams,
    create_associated_token_account,
    get_associated_token_address,
    initialize_mint,
    mint_to,
)

from poap_gateway.config import settings
from poap_gateway.relayer.metadata import create_master_edition_v3, create_metadata_account_v3
from poap_gateway.relayer.solana import SolanaService, TransactionUnconfirmed
from poap_gateway.utils.metrics import MINT_DURATION, RELAYER_BALANCE

logger = logging.getLogger(__name__)


@dataclass
class MintResult:
    mint: str
    signature: str
    token_account: str
    uri: str
    gas_cost_lamports: int


class MintError(Exception):
    """Mint transaction could not be built or sent; nothing reached the chain."""


class MintUnconfirmed(MintError):
    """Mint transaction was broadcast but its confirmation failed or timed out."""

    def __init__(self, signature: str, mint: str, token_account: str):
        super().__init__(f"Mint {mint} unconfirmed (signature {signature})")
        self.signature = signature
        self.mint = mint
        self.token_account = token_account


class NFTMinter:
    """Builds, signs and submits POAP mint transactions."""

    def __init__(self, solana: SolanaService):
        self.solana = solana
        self._lock = asyncio.Lock()

    @property
    def relayer_pubkey(self) -> Pubkey:
        return self.solana.relayer_pubkey

    async def get_balance(self) -> int:
        balance = await self.solana.get_balance()
        RELAYER_BALANCE.set(balance)
        return balance

    async def build_mint_transaction(
        self,
        owner: Pubkey,
        mint_keypair: Keypair,
        name: str,
        symbol: str,
        uri: str,
    ) -> Transaction:
        payer = self.solana.relayer
        payer_pk = payer.pubkey()
        mint_pk = mint_keypair.pubkey()

        rent = await self.solana.get_minimum_balance_for_rent_exemption(MINT_LEN)
        token_account = get_associated_token_address(owner, mint_pk)

        instructions = [
            create_account(CreateAccountParams(
                from_pubkey=payer_pk,
                to_pubkey=mint_pk,
                lamports=rent,
                space=MINT_LEN,
                owner=TOKEN_PROGRAM_ID,
            )),
            initialize_mint(InitializeMintParams(
                decimals=0,
                program_id=TOKEN_PROGRAM_ID,
                mint=mint_pk,
                mint_authority=payer_pk,
                freeze_authority=payer_pk,
            )),
            create_associated_token_account(payer_pk, owner, mint_pk),
            mint_to(MintToParams(
                program_id=TOKEN_PROGRAM_ID,
                mint=mint_pk,
                dest=token_account,
                mint_authority=payer_pk,
                amount=1,
            )),
            create_metadata_account_v3(
                mint=mint_pk,
                mint_authority=payer_pk,
                payer=payer_pk,
                update_authority=payer_pk,
                name=name,
                symbol=symbol,
                uri=uri,
            ),
            create_master_edition_v3(
                mint=mint_pk,
                update_authority=payer_pk,
                mint_authority=payer_pk,
                payer=payer_pk,
                max_supply=0,
            ),
        ]

        blockhash = await self.solana.get_latest_blockhash()
        message = Message.new_with_blockhash(instructions, payer_pk, blockhash)
        return Transaction([payer, mint_keypair], message, blockhash)

    async def mint_to(
        self,
        owner: str,
        name: str,
        symbol: str = "POAP",
        uri: Optional[str] = None,
    ) -> MintResult:
        """
        Mint a 1/1 NFT to `owner`.

        Args:
            owner: Base58 wallet address of the recipient
            name: NFT name (truncated to 32 bytes on chain)
            symbol: NFT symbol (truncated to 10 bytes on chain)
            uri: Metadata JSON URI; DEFAULT_METADATA_URI if omitted

        Raises:
            MintError: Nothing was broadcast (invalid owner, RPC failure
                before or during the send)
            MintUnconfirmed: Transaction was broadcast but not confirmed
        """
        metadata_uri = uri or settings.DEFAULT_METADATA_URI
        try:
            owner_pk = Pubkey.from_string(owner)
        except ValueError as e:
            raise MintError(f"Invalid owner public key: {e}") from e

        async with self._lock:
            started = time.perf_counter()
            mint_keypair = Keypair()
            token_account = get_associated_token_address(owner_pk, mint_keypair.pubkey())
            try:
                balance_before = await self.get_balance()
                tx = await self.build_mint_transaction(owner_pk, mint_keypair, name, symbol, metadata_uri)
                signature = await self.solana.send_and_confirm(tx)
            except TransactionUnconfirmed as e:
                logger.error(f"⏳ Mint {mint_keypair.pubkey()} sent but unconfirmed for {owner[:8]}...: {e}")
                raise MintUnconfirmed(
                    signature=str(e.signature),
                    mint=str(mint_keypair.pubkey()),
                    token_account=str(token_account),
                ) from e
            except Exception as e:
                logger.error(f"❌ Mint failed for {owner[:8]}...: {e}")
                raise MintError(str(e)) from e
            finally:
                MINT_DURATION.observe(time.perf_counter() - started)

            # The mint has landed; a failed balance read only loses the gas figure
            try:
                balance_after = await self.get_balance()
                gas_cost = max(balance_before - balance_after, 0)
            except Exception as e:
                logger.warning(f"⚠️  Could not read relayer balance after mint {signature}: {e}")
                gas_cost = 0

        logger.info(f"✅ Minted {mint_keypair.pubkey()} to {owner[:8]}... (gas {gas_cost} lamports)")
        return MintResult(
            mint=str(mint_keypair.pubkey()),
            signature=str(signature),
            token_account=str(token_account),
            uri=metadata_uri,
            gas_cost_lamports=gas_cost,
        )


def get_minter(request: Request) -> Optional[NFTMinter]:
    """FastAPI dependency: the process-wide minter, or None when no relayer is configured."""
    return getattr(request.app.state, "minter", None)
