"""
Mints router - read-only view of the mints discovered by the scanner
"""

from typing import Any, Dict, List, Optional
import logging
from fastapi import APIRouter, Depends, Query

from ..config import Config, Constants
from ..dependencies.scanner import get_mint_ledger, get_scanner
from ..tasks.mint_scanner import MintScanner
from ..utils.mint_ledger import MintLedger

logger = logging.getLogger(__name__)

# Create FastAPI router
router = APIRouter(
    tags=["Mints"]
)

# Handlers stay async and only read ledger snapshots


@router.get("/mints")
async def get_mints(
    limit: Optional[int] = Query(
        default=None,
        description="Only return the most recently discovered N mint addresses",
        ge=0,
        le=Constants.MAX_TOKEN_LIMIT
    ),
    ledger: MintLedger = Depends(get_mint_ledger)
) -> List[str]:
    """
    Get discovered mint addresses in discovery order.

    Args:
        limit: Optional cap on the number of addresses

    Returns:
        List of mint addresses
    """
    return ledger.addresses(limit)


@router.get("/tokens")
async def get_tokens(
    limit: int = Query(
        default=Constants.DEFAULT_TOKEN_LIMIT,
        description="Number of most recent token records to return",
        ge=0,
        le=Constants.MAX_TOKEN_LIMIT
    ),
    ledger: MintLedger = Depends(get_mint_ledger)
) -> List[Dict[str, Any]]:
    """
    Get discovered token records, newest first.

    Records loaded from disk at startup only carry the address; records
    found during this process lifetime also carry the decoded fields.
    """
    return [record.to_dict() for record in ledger.snapshot(limit=limit, newest_first=True)]


@router.get("/status")
async def get_status(
    ledger: MintLedger = Depends(get_mint_ledger),
    scanner: Optional[MintScanner] = Depends(get_scanner)
) -> Dict[str, Any]:
    """Get scanner progress and counters. Error details are only included in DEBUG mode."""
    if scanner is None:
        return {"state": "not_started", "known_mints": len(ledger)}
    return scanner.status(include_errors=Config.DEBUG)
