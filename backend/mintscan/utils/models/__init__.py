"""
Data models for transactions and decoded mint facts
"""

from .mint import InitializeMintData, MintInitRecord
from .transaction import (
    AddressTableLookup,
    ClassifiedTransaction,
    CompiledInstruction,
    InnerInstructionGroup,
    LegacyTransaction,
    NormalizedInstruction,
    NormalizedTransaction,
    TransactionStats,
    VersionedTransaction,
)
