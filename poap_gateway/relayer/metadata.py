"""
Metaplex Token Metadata instructions.

Builds the two instructions that turn a fresh SPL mint into a 1/1 NFT:
- CreateMetadataAccountV3 (name, symbol, uri, royalties)
- CreateMasterEditionV3 (freezes supply)

Instruction data is Borsh:
- u8/u16/u64 little-endian
- string = u32 length + UTF-8 bytes
- Option<T> = 0u8 | 1u8 + T
"""

import struct
from typing import Optional, Tuple

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from spl.token.constants import TOKEN_PROGRAM_ID

TOKEN_METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")

CREATE_METADATA_ACCOUNT_V3 = 33
CREATE_MASTER_EDITION_V3 = 17

MAX_NAME_LENGTH = 32
MAX_SYMBOL_LENGTH = 10
MAX_URI_LENGTH = 200


# ============================================================
# Borsh primitives
# ============================================================

def borsh_u8(value: int) -> bytes:
    return struct.pack("<B", value)


def borsh_u16(value: int) -> bytes:
    return struct.pack("<H", value)


def borsh_u64(value: int) -> bytes:
    return struct.pack("<Q", value)


def borsh_bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def borsh_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack("<I", len(raw)) + raw


def borsh_option(payload: Optional[bytes]) -> bytes:
    if payload is None:
        return b"\x00"
    return b"\x01" + payload


def truncate_utf8(value: str, max_bytes: int) -> str:
    """Cut `value` to at most `max_bytes` UTF-8 bytes without splitting a character."""
    raw = value.encode("utf-8")
    if len(raw) <= max_bytes:
        return value
    return raw[:max_bytes].decode("utf-8", errors="ignore")


# ============================================================
# PDAs
# ============================================================

def find_metadata_pda(mint: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [b"metadata", bytes(TOKEN_METADATA_PROGRAM_ID), bytes(mint)],
        TOKEN_METADATA_PROGRAM_ID,
    )


def find_master_edition_pda(mint: Pubkey) -> Tuple[Pubkey, int]:
    return Pubkey.find_program_address(
        [b"metadata", bytes(TOKEN_METADATA_PROGRAM_ID), bytes(mint), b"edition"],
        TOKEN_METADATA_PROGRAM_ID,
    )


# ============================================================
# Instruction data
# ============================================================

def encode_create_metadata_v3_data(
    name: str,
    symbol: str,
    uri: str,
    seller_fee_basis_points: int = 0,
    is_mutable: bool = True,
) -> bytes:
    """
    Encode CreateMetadataAccountV3 arguments.

    Name and symbol are truncated to their on-chain limits; an over-long uri
    raises ValueError because truncating it would point at the wrong JSON.
    """
    if len(uri.encode("utf-8")) > MAX_URI_LENGTH:
        raise ValueError(f"Metadata URI exceeds {MAX_URI_LENGTH} bytes")
    if not 0 <= seller_fee_basis_points <= 10000:
        raise ValueError("seller_fee_basis_points must be between 0 and 10000")

    data_v2 = (
        borsh_string(truncate_utf8(name, MAX_NAME_LENGTH))
        + borsh_string(truncate_utf8(symbol, MAX_SYMBOL_LENGTH))
        + borsh_string(uri)
        + borsh_u16(seller_fee_basis_points)
        + borsh_option(None)  # creators
        + borsh_option(None)  # collection
        + borsh_option(None)  # uses
    )
    return (
        borsh_u8(CREATE_METADATA_ACCOUNT_V3)
        + data_v2
        + borsh_bool(is_mutable)
        + borsh_option(None)  # collection_details
    )


def encode_create_master_edition_v3_data(max_supply: Optional[int] = 0) -> bytes:
    payload = None if max_supply is None else borsh_u64(max_supply)
    return borsh_u8(CREATE_MASTER_EDITION_V3) + borsh_option(payload)


# ============================================================
# Instructions
# ============================================================

def create_metadata_account_v3(
    mint: Pubkey,
    mint_authority: Pubkey,
    payer: Pubkey,
    update_authority: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    seller_fee_basis_points: int = 0,
    is_mutable: bool = True,
) -> Instruction:
    metadata, _ = find_metadata_pda(mint)
    accounts = [
        AccountMeta(metadata, is_signer=False, is_writable=True),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(mint_authority, is_signer=True, is_writable=False),
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(update_authority, is_signer=True, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    data = encode_create_metadata_v3_data(name, symbol, uri, seller_fee_basis_points, is_mutable)
    return Instruction(TOKEN_METADATA_PROGRAM_ID, data, accounts)


def create_master_edition_v3(
    mint: Pubkey,
    update_authority: Pubkey,
    mint_authority: Pubkey,
    payer: Pubkey,
    max_supply: Optional[int] = 0,
) -> Instruction:
    edition, _ = find_master_edition_pda(mint)
    metadata, _ = find_metadata_pda(mint)
    accounts = [
        AccountMeta(edition, is_signer=False, is_writable=True),
        AccountMeta(mint, is_signer=False, is_writable=True),
        AccountMeta(update_authority, is_signer=True, is_writable=False),
        AccountMeta(mint_authority, is_signer=True, is_writable=False),
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(metadata, is_signer=False, is_writable=True),
        AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(TOKEN_METADATA_PROGRAM_ID, encode_create_master_edition_v3_data(max_supply), accounts)
