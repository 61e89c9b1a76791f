"""
Classifier for getBlock transactions.

Tags each transaction as legacy or versioned and builds the matching typed
model. Anything that matches neither shape raises
UnclassifiableTransactionError, which callers count as a soft failure.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from ..models import (
    AddressTableLookup,
    ClassifiedTransaction,
    CompiledInstruction,
    InnerInstructionGroup,
    LegacyTransaction,
    VersionedTransaction,
)
from ..solana_constants import LEGACY_VERSION, SUPPORTED_VERSIONS
from ..solana_error import UnclassifiableTransactionError

logger = logging.getLogger(__name__)


def _account_key(entry: Any) -> str:
    # jsonParsed responses carry {"pubkey": ..., "signer": ..., "writable": ...}
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict) and isinstance(entry.get('pubkey'), str):
        return entry['pubkey']
    raise UnclassifiableTransactionError(f"Invalid account key entry: {entry!r}")


def _account_keys(raw_keys: Any, field_name: str) -> Tuple[str, ...]:
    if not isinstance(raw_keys, list):
        raise UnclassifiableTransactionError(f"{field_name} is missing or not a list")
    return tuple(_account_key(entry) for entry in raw_keys)


def _index_list(raw: Any, field_name: str) -> Tuple[int, ...]:
    if not isinstance(raw, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in raw):
        raise UnclassifiableTransactionError(f"{field_name} must be a list of integers")
    return tuple(raw)


def _compiled_instruction(raw: Any) -> CompiledInstruction:
    if not isinstance(raw, dict):
        raise UnclassifiableTransactionError("Instruction is not an object")
    program_id_index = raw.get('programIdIndex')
    if not isinstance(program_id_index, int) or isinstance(program_id_index, bool):
        raise UnclassifiableTransactionError("Instruction is missing programIdIndex")
    data = raw.get('data', '')
    if not isinstance(data, str):
        raise UnclassifiableTransactionError("Instruction data is not a string")
    return CompiledInstruction(
        program_id_index=program_id_index,
        accounts=_index_list(raw.get('accounts', []), 'accounts'),
        data=data,
        stack_height=raw.get('stackHeight'),
    )


def _instructions(raw: Any) -> Tuple[CompiledInstruction, ...]:
    if not isinstance(raw, list):
        raise UnclassifiableTransactionError("message.instructions is missing or not a list")
    return tuple(_compiled_instruction(ix) for ix in raw)


def _inner_instructions(meta: Dict[str, Any]) -> Tuple[InnerInstructionGroup, ...]:
    groups = meta.get('innerInstructions') or []
    if not isinstance(groups, list):
        raise UnclassifiableTransactionError("meta.innerInstructions is not a list")
    result = []
    for group in groups:
        if not isinstance(group, dict) or not isinstance(group.get('index'), int):
            raise UnclassifiableTransactionError("Malformed inner instruction group")
        result.append(InnerInstructionGroup(
            index=group['index'],
            instructions=_instructions(group.get('instructions', [])),
        ))
    return tuple(sorted(result, key=lambda g: g.index))


def _address_table_lookups(raw: Any) -> Tuple[AddressTableLookup, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise UnclassifiableTransactionError("message.addressTableLookups is not a list")
    lookups = []
    for lookup in raw:
        if not isinstance(lookup, dict) or not isinstance(lookup.get('accountKey'), str):
            raise UnclassifiableTransactionError("Malformed address table lookup")
        lookups.append(AddressTableLookup(
            account_key=lookup['accountKey'],
            writable_indexes=_index_list(lookup.get('writableIndexes', []), 'writableIndexes'),
            readonly_indexes=_index_list(lookup.get('readonlyIndexes', []), 'readonlyIndexes'),
        ))
    return tuple(lookups)


def transaction_version(raw: Dict[str, Any]) -> Union[str, int]:
    """
    Read the version tag of a getBlock transaction entry.

    A missing tag means the node answered without maxSupportedTransactionVersion,
    in which case only legacy transactions are returned.
    """
    version = raw.get('version', LEGACY_VERSION)
    if version is None or version == LEGACY_VERSION:
        return LEGACY_VERSION
    if isinstance(version, int) and not isinstance(version, bool) and version in SUPPORTED_VERSIONS:
        return version
    raise UnclassifiableTransactionError(f"Unknown transaction version: {version!r}")


def classify_transaction(raw: Any) -> ClassifiedTransaction:
    """
    Classify one getBlock transaction entry.

    Args:
        raw: ``{"transaction": {...}, "meta": {...}, "version": ...}``

    Returns:
        LegacyTransaction or VersionedTransaction

    Raises:
        UnclassifiableTransactionError: required fields are missing or malformed
    """
    if not isinstance(raw, dict):
        raise UnclassifiableTransactionError("Transaction entry is not an object")

    transaction = raw.get('transaction')
    if not isinstance(transaction, dict):
        # Binary encodings come back as [data, encoding]; the scanner asks for json
        raise UnclassifiableTransactionError("Transaction is missing or not in json encoding")

    message = transaction.get('message')
    if not isinstance(message, dict):
        raise UnclassifiableTransactionError("Transaction message is missing")

    meta = raw.get('meta')
    if meta is not None and not isinstance(meta, dict):
        raise UnclassifiableTransactionError("Transaction meta is not an object")
    meta = meta or {}

    version = transaction_version(raw)
    signatures = transaction.get('signatures') or []
    signature: Optional[str] = signatures[0] if isinstance(signatures, list) and signatures else None
    account_keys = _account_keys(message.get('accountKeys'), 'message.accountKeys')
    instructions = _instructions(message.get('instructions'))
    inner = _inner_instructions(meta)
    failed = meta.get('err') is not None

    if version == LEGACY_VERSION:
        return LegacyTransaction(
            signature=signature,
            account_keys=account_keys,
            instructions=instructions,
            inner_instructions=inner,
            failed=failed,
        )

    lookups = _address_table_lookups(message.get('addressTableLookups'))
    loaded = meta.get('loadedAddresses')
    if loaded is None:
        if lookups:
            raise UnclassifiableTransactionError(
                "Versioned transaction uses lookup tables but meta.loadedAddresses is missing"
            )
        loaded = {}
    if not isinstance(loaded, dict):
        raise UnclassifiableTransactionError("meta.loadedAddresses is not an object")

    loaded_writable = _account_keys(loaded.get('writable', []), 'loadedAddresses.writable')
    loaded_readonly = _account_keys(loaded.get('readonly', []), 'loadedAddresses.readonly')

    expected_writable = sum(len(lookup.writable_indexes) for lookup in lookups)
    expected_readonly = sum(len(lookup.readonly_indexes) for lookup in lookups)
    if (len(loaded_writable), len(loaded_readonly)) != (expected_writable, expected_readonly):
        raise UnclassifiableTransactionError(
            f"Loaded addresses ({len(loaded_writable)}w/{len(loaded_readonly)}r) do not match "
            f"lookup table indexes ({expected_writable}w/{expected_readonly}r)"
        )

    return VersionedTransaction(
        version=version,
        signature=signature,
        static_account_keys=account_keys,
        instructions=instructions,
        loaded_writable=loaded_writable,
        loaded_readonly=loaded_readonly,
        address_table_lookups=lookups,
        inner_instructions=inner,
        failed=failed,
    )
