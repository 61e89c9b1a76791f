"""
Scanner dependencies module.
Provides the shared ledger and scanner instances to request handlers.
"""
from typing import Optional

from fastapi import HTTPException, Request

from ..tasks.mint_scanner import MintScanner
from ..utils.mint_ledger import MintLedger


def get_mint_ledger(request: Request) -> MintLedger:
    """
    Get the MintLedger owned by the application.
    The ledger is created once in the lifespan and shared with the scanner.
    """
    ledger: Optional[MintLedger] = getattr(request.app.state, 'ledger', None)
    if ledger is None:
        raise HTTPException(status_code=503, detail="Ledger not ready")
    return ledger


def get_scanner(request: Request) -> Optional[MintScanner]:
    """Get the running MintScanner, if any."""
    return getattr(request.app.state, 'scanner', None)
