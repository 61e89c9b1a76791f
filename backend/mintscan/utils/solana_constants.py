"""
Constants used across Solana-related utilities.
"""

# System and program addresses
SYSTEM_ADDRESSES = {
    'system_program': '11111111111111111111111111111111',
    'token_program': 'TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA',
    'token2022_program': 'TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb',
    'rent_sysvar': 'SysvarRent111111111111111111111111111111111',
}

# Program IDs whose InitializeMint layout is understood by the decoder
TOKEN_PROGRAMS = {
    'TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA': 'spl_token',
    'TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb': 'token2022',
}

# SPL Token instruction opcodes (first byte of the instruction data)
TOKEN_IX_OPCODES = {
    'initializeMint': 0,
    'initializeMint2': 20,
}
MINT_INIT_OPCODES = frozenset(TOKEN_IX_OPCODES.values())

# InitializeMint payload layout:
# u8 opcode | u8 decimals | [32] mint authority | u8 freeze option | [32] freeze authority
PUBKEY_LENGTH = 32
MINT_INIT_OPCODE_OFFSET = 0
MINT_INIT_DECIMALS_OFFSET = 1
MINT_INIT_AUTHORITY_OFFSET = 2
MINT_INIT_FREEZE_OPTION_OFFSET = MINT_INIT_AUTHORITY_OFFSET + PUBKEY_LENGTH
MINT_INIT_FREEZE_AUTHORITY_OFFSET = MINT_INIT_FREEZE_OPTION_OFFSET + 1
# Full layout, freeze authority slot always present
MINT_INIT_DATA_LENGTH = MINT_INIT_FREEZE_AUTHORITY_OFFSET + PUBKEY_LENGTH
# The token program packs a None freeze authority as the option byte alone
MINT_INIT_DATA_LENGTH_NO_FREEZE = MINT_INIT_FREEZE_AUTHORITY_OFFSET

# getBlock transaction version tags
LEGACY_VERSION = 'legacy'
SUPPORTED_VERSIONS = (0,)
MAX_SUPPORTED_TRANSACTION_VERSION = 0

# JSON-RPC error codes that mean "there is no block to give you"
BLOCK_UNAVAILABLE_ERROR_CODES = {
    -32004,  # Block not available for slot
    -32007,  # Slot was skipped, or missing due to ledger jump to recent snapshot
    -32009,  # Slot was skipped, or missing in long-term storage
    -32014,  # Block status not yet available
}
NODE_UNHEALTHY_ERROR_CODE = -32005  # Node is behind or unhealthy
RETRYABLE_ERROR_CODES = {-32603, -32002, -32016}
