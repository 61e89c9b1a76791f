"""
Handlers for classifying, extracting and decoding Solana block data
"""

from .mint_decoder import (
    decode_instruction_data,
    decode_mint_init,
    is_valid_pubkey,
    unpack_initialize_mint,
)
from .transaction_classifier import classify_transaction, transaction_version
from .instruction_extractor import TransactionProcessor, extract_program_instructions
