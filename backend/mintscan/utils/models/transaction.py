"""
Models for representing Solana transactions in the two getBlock wire shapes
and the canonical shape the instruction extractor works on.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..solana_constants import LEGACY_VERSION


@dataclass(frozen=True)
class CompiledInstruction:
    """An instruction as carried on the wire: indexes into the account key list."""
    program_id_index: int
    accounts: Tuple[int, ...]
    data: str  # base58, as returned by the ``json`` encoding
    stack_height: Optional[int] = None


@dataclass(frozen=True)
class InnerInstructionGroup:
    """CPI instructions emitted while executing top-level instruction ``index``."""
    index: int
    instructions: Tuple[CompiledInstruction, ...]


@dataclass(frozen=True)
class AddressTableLookup:
    account_key: str
    writable_indexes: Tuple[int, ...]
    readonly_indexes: Tuple[int, ...]


@dataclass(frozen=True)
class NormalizedTransaction:
    """Canonical transaction shape with a flat, fully resolved account key list."""
    signature: Optional[str]
    version: Union[str, int]
    account_keys: Tuple[str, ...]
    instructions: Tuple[CompiledInstruction, ...]
    inner_instructions: Tuple[InnerInstructionGroup, ...] = ()
    failed: bool = False


@dataclass(frozen=True)
class NormalizedInstruction:
    """An instruction with its program id and accounts resolved to addresses."""
    program_id: str
    accounts: Tuple[str, ...]
    data: bytes
    index: int
    inner: bool = False


@dataclass(frozen=True)
class LegacyTransaction:
    """Legacy message: every account is listed in ``accountKeys``."""
    signature: Optional[str]
    account_keys: Tuple[str, ...]
    instructions: Tuple[CompiledInstruction, ...]
    inner_instructions: Tuple[InnerInstructionGroup, ...] = ()
    failed: bool = False

    version = LEGACY_VERSION

    def normalize(self) -> NormalizedTransaction:
        return NormalizedTransaction(
            signature=self.signature,
            version=self.version,
            account_keys=self.account_keys,
            instructions=self.instructions,
            inner_instructions=self.inner_instructions,
            failed=self.failed,
        )


@dataclass(frozen=True)
class VersionedTransaction:
    """
    Versioned (v0) message.

    Instructions may reference accounts loaded through address lookup tables.
    The runtime orders the resolved key list as static keys, then loaded
    writable addresses, then loaded readonly addresses; the node reports the
    loaded addresses in ``meta.loadedAddresses`` in that same order.
    """
    version: int
    signature: Optional[str]
    static_account_keys: Tuple[str, ...]
    instructions: Tuple[CompiledInstruction, ...]
    loaded_writable: Tuple[str, ...] = ()
    loaded_readonly: Tuple[str, ...] = ()
    address_table_lookups: Tuple[AddressTableLookup, ...] = ()
    inner_instructions: Tuple[InnerInstructionGroup, ...] = ()
    failed: bool = False

    @property
    def account_keys(self) -> Tuple[str, ...]:
        return self.static_account_keys + self.loaded_writable + self.loaded_readonly

    def normalize(self) -> NormalizedTransaction:
        return NormalizedTransaction(
            signature=self.signature,
            version=self.version,
            account_keys=self.account_keys,
            instructions=self.instructions,
            inner_instructions=self.inner_instructions,
            failed=self.failed,
        )


ClassifiedTransaction = Union[LegacyTransaction, VersionedTransaction]


@dataclass
class TransactionStats:
    """Per-block tallies kept while processing transactions."""
    total_transactions: int = 0
    legacy_transactions: int = 0
    versioned_transactions: int = 0
    failed_transactions: int = 0
    unclassifiable_transactions: int = 0
    matched_instructions: int = 0
    decoded_mints: int = 0
    error_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def soft_failures(self) -> int:
        return self.unclassifiable_transactions

    def update_error_count(self, error_type: str) -> None:
        self.error_counts[error_type] = self.error_counts.get(error_type, 0) + 1

    def merge(self, other: 'TransactionStats') -> None:
        self.total_transactions += other.total_transactions
        self.legacy_transactions += other.legacy_transactions
        self.versioned_transactions += other.versioned_transactions
        self.failed_transactions += other.failed_transactions
        self.unclassifiable_transactions += other.unclassifiable_transactions
        self.matched_instructions += other.matched_instructions
        self.decoded_mints += other.decoded_mints
        for error_type, count in other.error_counts.items():
            self.error_counts[error_type] = self.error_counts.get(error_type, 0) + count

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary."""
        return {
            "total_transactions": self.total_transactions,
            "legacy_transactions": self.legacy_transactions,
            "versioned_transactions": self.versioned_transactions,
            "failed_transactions": self.failed_transactions,
            "unclassifiable_transactions": self.unclassifiable_transactions,
            "soft_failures": self.soft_failures,
            "matched_instructions": self.matched_instructions,
            "decoded_mints": self.decoded_mints,
            "error_counts": dict(self.error_counts),
        }


__all__: List[str] = [
    'CompiledInstruction',
    'InnerInstructionGroup',
    'AddressTableLookup',
    'NormalizedTransaction',
    'NormalizedInstruction',
    'LegacyTransaction',
    'VersionedTransaction',
    'ClassifiedTransaction',
    'TransactionStats',
]
