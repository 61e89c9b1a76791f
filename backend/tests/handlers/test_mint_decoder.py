import os

import pytest
from base58 import b58encode

from factories import TOKEN_PROGRAM_ID, mint_init_data, random_address
from mintscan.utils.handlers.mint_decoder import (
    decode_instruction_data,
    decode_mint_init,
    is_valid_pubkey,
    unpack_initialize_mint,
)
from mintscan.utils.models import NormalizedInstruction


def _b58(raw: bytes) -> str:
    return b58encode(raw).decode('utf-8')


def _instruction(data: bytes, accounts=None) -> NormalizedInstruction:
    return NormalizedInstruction(
        program_id=TOKEN_PROGRAM_ID,
        accounts=tuple(accounts if accounts is not None else [random_address()]),
        data=data,
        index=0,
    )


def test_unpack_initialize_mint_without_freeze_authority():
    authority = os.urandom(32)
    payload = mint_init_data(decimals=6, authority=authority)
    assert len(payload) == 67

    decoded = unpack_initialize_mint(payload)

    assert decoded is not None
    assert decoded.opcode == 0
    assert decoded.decimals == 6
    assert decoded.mint_authority == _b58(authority)
    assert decoded.freeze_authority is None


def test_unpack_initialize_mint_with_freeze_authority():
    authority, freeze = os.urandom(32), os.urandom(32)
    decoded = unpack_initialize_mint(mint_init_data(decimals=9, authority=authority, freeze_authority=freeze))

    assert decoded.decimals == 9
    assert decoded.mint_authority == _b58(authority)
    assert decoded.freeze_authority == _b58(freeze)


def test_unpack_initialize_mint2():
    decoded = unpack_initialize_mint(mint_init_data(decimals=0, opcode=20))
    assert decoded is not None
    assert decoded.opcode == 20
    assert decoded.decimals == 0


def test_unpack_short_payload_without_freeze_authority():
    payload = mint_init_data(pad_freeze=False)
    assert len(payload) == 35
    assert unpack_initialize_mint(payload) is not None


def test_unpack_short_payload_claiming_freeze_authority():
    payload = bytes([0, 6]) + os.urandom(32) + bytes([1])
    assert unpack_initialize_mint(payload) is None


@pytest.mark.parametrize("payload", [
    b'',
    bytes([3]) + bytes(66),             # MintTo
    bytes([7]) + bytes(8),              # MintTo with amount
    bytes([0, 6]) + bytes(10),          # truncated
    mint_init_data() + b'\x00',         # trailing byte
])
def test_unpack_rejects_other_payloads(payload):
    assert unpack_initialize_mint(payload) is None


def test_unpack_rejects_invalid_freeze_option():
    payload = bytearray(mint_init_data())
    payload[34] = 2
    assert unpack_initialize_mint(bytes(payload)) is None


def test_unpack_rejects_non_bytes():
    assert unpack_initialize_mint(None) is None
    assert unpack_initialize_mint("not bytes") is None


def test_decode_instruction_data():
    raw = os.urandom(20)
    assert decode_instruction_data(_b58(raw)) == raw
    assert decode_instruction_data("0OIl") is None
    assert decode_instruction_data(None) is None


def test_is_valid_pubkey():
    assert is_valid_pubkey(random_address())
    assert is_valid_pubkey(TOKEN_PROGRAM_ID)
    assert not is_valid_pubkey(None)
    assert not is_valid_pubkey("")
    assert not is_valid_pubkey("too_short")
    assert not is_valid_pubkey("1" * 45)


def test_decode_mint_init_uses_first_account_as_mint():
    mint = random_address()
    authority = os.urandom(32)
    record = decode_mint_init(_instruction(mint_init_data(authority=authority), accounts=[mint, random_address()]))

    assert record is not None
    assert record.mint_address == mint
    assert record.mint_authority == _b58(authority)
    assert record.mint_address != record.mint_authority
    assert record.program_id == TOKEN_PROGRAM_ID


def test_decode_mint_init_ignores_other_instructions():
    assert decode_mint_init(_instruction(bytes([3]) + bytes(8))) is None


def test_decode_mint_init_requires_mint_account():
    assert decode_mint_init(_instruction(mint_init_data(), accounts=[])) is None
    assert decode_mint_init(_instruction(mint_init_data(), accounts=["not-a-key"])) is None
