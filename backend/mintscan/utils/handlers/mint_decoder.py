"""
Decoder for the SPL Token InitializeMint instruction.

Most token program instructions are not mint initializations, so a mismatch
is the normal outcome and is reported as ``None`` rather than raised.
"""

import logging
from typing import Optional

import base58
from solders.pubkey import Pubkey

from ..models import InitializeMintData, MintInitRecord, NormalizedInstruction
from ..solana_constants import (
    MINT_INIT_AUTHORITY_OFFSET,
    MINT_INIT_DATA_LENGTH,
    MINT_INIT_DATA_LENGTH_NO_FREEZE,
    MINT_INIT_DECIMALS_OFFSET,
    MINT_INIT_FREEZE_AUTHORITY_OFFSET,
    MINT_INIT_FREEZE_OPTION_OFFSET,
    MINT_INIT_OPCODE_OFFSET,
    MINT_INIT_OPCODES,
    PUBKEY_LENGTH,
)

logger = logging.getLogger(__name__)


def decode_instruction_data(encoded: str) -> Optional[bytes]:
    """
    Decode a base58 instruction payload as returned by getBlock with the json encoding.

    Returns:
        The raw bytes, or None when the payload is malformed
    """
    if not isinstance(encoded, str):
        return None
    try:
        return base58.b58decode(encoded)
    except ValueError:
        return None


def _pubkey_from_bytes(raw: bytes) -> Optional[str]:
    if len(raw) != PUBKEY_LENGTH:
        return None
    return str(Pubkey(raw))


def unpack_initialize_mint(data: bytes) -> Optional[InitializeMintData]:
    """
    Unpack an InitializeMint or InitializeMint2 payload.

    Layout: u8 opcode, u8 decimals, 32-byte mint authority, u8 freeze
    authority option, 32-byte freeze authority. A payload without a freeze
    authority may stop right after the option byte.
    """
    if not isinstance(data, (bytes, bytearray)) or not data:
        return None

    opcode = data[MINT_INIT_OPCODE_OFFSET]
    if opcode not in MINT_INIT_OPCODES:
        return None

    if len(data) not in (MINT_INIT_DATA_LENGTH, MINT_INIT_DATA_LENGTH_NO_FREEZE):
        return None

    freeze_option = data[MINT_INIT_FREEZE_OPTION_OFFSET]
    if freeze_option not in (0, 1):
        return None
    if freeze_option == 1 and len(data) != MINT_INIT_DATA_LENGTH:
        return None

    mint_authority = _pubkey_from_bytes(bytes(data[MINT_INIT_AUTHORITY_OFFSET:MINT_INIT_FREEZE_OPTION_OFFSET]))
    if mint_authority is None:
        return None

    freeze_authority = None
    if freeze_option == 1:
        freeze_authority = _pubkey_from_bytes(bytes(data[MINT_INIT_FREEZE_AUTHORITY_OFFSET:MINT_INIT_DATA_LENGTH]))
        if freeze_authority is None:
            return None

    return InitializeMintData(
        opcode=opcode,
        decimals=data[MINT_INIT_DECIMALS_OFFSET],
        mint_authority=mint_authority,
        freeze_authority=freeze_authority,
    )


def is_valid_pubkey(address: str) -> bool:
    """Check that an address is a base58 encoded 32-byte public key."""
    if not isinstance(address, str) or not address:
        return False
    try:
        Pubkey.from_string(address)
        return True
    except ValueError:
        return False


def decode_mint_init(instruction: NormalizedInstruction) -> Optional[MintInitRecord]:
    """
    Decode a normalized token program instruction into a MintInitRecord.

    The mint being initialized is always the instruction's first account.
    """
    payload = unpack_initialize_mint(instruction.data)
    if payload is None:
        return None

    if not instruction.accounts:
        return None
    mint_address = instruction.accounts[0]
    if not is_valid_pubkey(mint_address):
        return None

    return MintInitRecord(
        mint_address=mint_address,
        decimals=payload.decimals,
        mint_authority=payload.mint_authority,
        freeze_authority=payload.freeze_authority,
        program_id=instruction.program_id,
    )
