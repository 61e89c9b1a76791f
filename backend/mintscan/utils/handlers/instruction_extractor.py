"""
Extracts the instructions addressed to a target program from normalized
transactions and feeds them to the mint decoder.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional

from ..models import (
    CompiledInstruction,
    MintInitRecord,
    NormalizedInstruction,
    NormalizedTransaction,
    TransactionStats,
    VersionedTransaction,
)
from ..solana_error import UnclassifiableTransactionError
from .mint_decoder import decode_instruction_data, decode_mint_init
from .transaction_classifier import classify_transaction

logger = logging.getLogger(__name__)


def _resolve(
    instruction: CompiledInstruction,
    account_keys: tuple,
    index: int,
    inner: bool,
) -> Optional[NormalizedInstruction]:
    """Resolve a compiled instruction against the flat key list, None if any index is out of range."""
    key_count = len(account_keys)
    if not 0 <= instruction.program_id_index < key_count:
        return None
    if any(not 0 <= i < key_count for i in instruction.accounts):
        return None
    data = decode_instruction_data(instruction.data)
    if data is None:
        return None
    return NormalizedInstruction(
        program_id=account_keys[instruction.program_id_index],
        accounts=tuple(account_keys[i] for i in instruction.accounts),
        data=data,
        index=index,
        inner=inner,
    )


def extract_program_instructions(
    transaction: NormalizedTransaction,
    program_id: str,
    include_inner: bool = True,
) -> List[NormalizedInstruction]:
    """
    Return the instructions of a transaction addressed to ``program_id``.

    Top-level instructions come first in message order, followed by inner
    (CPI) instructions ordered by the top-level instruction that emitted them.
    An instruction whose indexes cannot be resolved is skipped on its own.

    Args:
        transaction: Normalized transaction
        program_id: Target program address
        include_inner: Also scan ``meta.innerInstructions``

    Returns:
        List of NormalizedInstruction
    """
    keys = transaction.account_keys
    matched: List[NormalizedInstruction] = []

    for index, compiled in enumerate(transaction.instructions):
        if compiled.program_id_index < len(keys) and keys[compiled.program_id_index] != program_id:
            continue
        resolved = _resolve(compiled, keys, index, inner=False)
        if resolved is None:
            logger.debug(f"Skipping unresolvable instruction {index} in {transaction.signature}")
            continue
        if resolved.program_id == program_id:
            matched.append(resolved)

    if include_inner:
        for group in transaction.inner_instructions:
            for compiled in group.instructions:
                if compiled.program_id_index < len(keys) and keys[compiled.program_id_index] != program_id:
                    continue
                resolved = _resolve(compiled, keys, group.index, inner=True)
                if resolved is None:
                    logger.debug(f"Skipping unresolvable inner instruction of {group.index} in {transaction.signature}")
                    continue
                if resolved.program_id == program_id:
                    matched.append(resolved)

    return matched


class TransactionProcessor:
    """Runs classify, extract and decode over the transactions of one block."""

    def __init__(self, program_id: str, include_inner: bool = True):
        self.program_id = program_id
        self.include_inner = include_inner

    def iter_transaction_mints(self, raw: Any, stats: TransactionStats) -> Iterator[MintInitRecord]:
        """Yield the mint initializations found in one raw transaction."""
        stats.total_transactions += 1
        try:
            classified = classify_transaction(raw)
        except UnclassifiableTransactionError as e:
            stats.unclassifiable_transactions += 1
            stats.update_error_count(type(e).__name__)
            logger.debug(f"Skipping unclassifiable transaction: {e}")
            return

        if isinstance(classified, VersionedTransaction):
            stats.versioned_transactions += 1
        else:
            stats.legacy_transactions += 1

        if classified.failed:
            # A reverted transaction initialized nothing
            stats.failed_transactions += 1
            return

        normalized = classified.normalize()
        for instruction in extract_program_instructions(normalized, self.program_id, self.include_inner):
            stats.matched_instructions += 1
            record = decode_mint_init(instruction)
            if record is None:
                continue
            stats.decoded_mints += 1
            yield record.with_context(signature=normalized.signature)

    def iter_block_mints(self, block: Dict[str, Any], slot: int, stats: TransactionStats) -> Iterator[MintInitRecord]:
        """
        Yield mint initializations from a block lazily, one transaction at a time.

        Consumers can persist each record before the next transaction is
        examined.
        """
        transactions = block.get('transactions') or []
        if not isinstance(transactions, list):
            raise UnclassifiableTransactionError(f"Block {slot} transactions field is not a list")

        for raw in transactions:
            for record in self.iter_transaction_mints(raw, stats):
                yield record.with_context(slot=slot)
