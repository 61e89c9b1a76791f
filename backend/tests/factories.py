"""
Builders for getBlock-shaped test data.
"""

import os
from typing import Any, Dict, List, Optional

from base58 import b58encode

from mintscan.utils.block_fetcher import BLOCK_UNAVAILABLE
from mintscan.utils.solana_constants import SYSTEM_ADDRESSES

TOKEN_PROGRAM_ID = SYSTEM_ADDRESSES['token_program']
RENT_SYSVAR = SYSTEM_ADDRESSES['rent_sysvar']
SYSTEM_PROGRAM_ID = SYSTEM_ADDRESSES['system_program']


def random_address() -> str:
    return b58encode(os.urandom(32)).decode('utf-8')


def mint_init_data(
    decimals: int = 6,
    authority: Optional[bytes] = None,
    freeze_authority: Optional[bytes] = None,
    opcode: int = 0,
    pad_freeze: bool = True,
) -> bytes:
    """Build an InitializeMint payload."""
    authority = authority if authority is not None else os.urandom(32)
    data = bytes([opcode, decimals]) + authority
    if freeze_authority is not None:
        return data + bytes([1]) + freeze_authority
    return data + bytes([0]) + (bytes(32) if pad_freeze else b'')


def encode_ix(program_id_index: int, accounts: List[int], data: bytes) -> Dict[str, Any]:
    return {
        "programIdIndex": program_id_index,
        "accounts": accounts,
        "data": b58encode(data).decode('utf-8'),
        "stackHeight": None,
    }


def legacy_tx(
    account_keys: List[str],
    instructions: List[Dict[str, Any]],
    inner: Optional[List[Dict[str, Any]]] = None,
    err: Any = None,
    signature: str = "legacy-sig",
    version: Any = "legacy",
) -> Dict[str, Any]:
    tx = {
        "transaction": {
            "signatures": [signature],
            "message": {
                "accountKeys": account_keys,
                "header": {
                    "numRequiredSignatures": 1,
                    "numReadonlySignedAccounts": 0,
                    "numReadonlyUnsignedAccounts": 1,
                },
                "instructions": instructions,
                "recentBlockhash": random_address(),
            },
        },
        "meta": {
            "err": err,
            "fee": 5000,
            "innerInstructions": inner or [],
            "logMessages": [],
        },
    }
    if version is not None:
        tx["version"] = version
    return tx


def versioned_tx(
    static_keys: List[str],
    instructions: List[Dict[str, Any]],
    loaded_writable: List[str] = (),
    loaded_readonly: List[str] = (),
    inner: Optional[List[Dict[str, Any]]] = None,
    err: Any = None,
    signature: str = "versioned-sig",
) -> Dict[str, Any]:
    lookups = []
    if loaded_writable or loaded_readonly:
        lookups.append({
            "accountKey": random_address(),
            "writableIndexes": list(range(len(loaded_writable))),
            "readonlyIndexes": list(range(len(loaded_writable), len(loaded_writable) + len(loaded_readonly))),
        })
    tx = legacy_tx(static_keys, instructions, inner=inner, err=err, signature=signature, version=0)
    tx["transaction"]["message"]["addressTableLookups"] = lookups
    tx["meta"]["loadedAddresses"] = {
        "writable": list(loaded_writable),
        "readonly": list(loaded_readonly),
    }
    return tx


def mint_tx(mint: str, decimals: int = 6, authority: Optional[bytes] = None, signature: str = "sig") -> Dict[str, Any]:
    """A legacy transaction with one InitializeMint for ``mint``."""
    payer = random_address()
    keys = [payer, mint, TOKEN_PROGRAM_ID, RENT_SYSVAR]
    data = mint_init_data(decimals=decimals, authority=authority)
    return legacy_tx(keys, [encode_ix(2, [1, 3], data)], signature=signature)


class FakeBlockFetcher:
    """In-memory BlockFetcher for scanner tests."""

    def __init__(self, height: int, blocks: Optional[Dict[int, Dict[str, Any]]] = None):
        self.height = height
        self.blocks = blocks or {}
        self.unavailable = set()
        self.failing: Dict[int, Exception] = {}
        self.height_error: Optional[Exception] = None
        self.fetched: List[int] = []
        self.closed = False

    async def current_height(self) -> int:
        if self.height_error is not None:
            raise self.height_error
        return self.height

    async def fetch_block(self, slot: int):
        self.fetched.append(slot)
        if slot in self.failing:
            raise self.failing[slot]
        if slot in self.unavailable:
            return BLOCK_UNAVAILABLE
        return self.blocks.get(slot, {"blockhash": random_address(), "parentSlot": slot - 1, "transactions": []})

    async def close(self):
        self.closed = True
