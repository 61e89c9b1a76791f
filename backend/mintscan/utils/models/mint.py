"""
Models for decoded mint initialization facts.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class InitializeMintData:
    """Decoded InitializeMint / InitializeMint2 instruction payload."""
    opcode: int
    decimals: int
    mint_authority: str
    freeze_authority: Optional[str] = None


@dataclass(frozen=True)
class MintInitRecord:
    """A newly initialized mint, the only fact the scanner derives."""
    mint_address: str
    decimals: Optional[int] = None
    mint_authority: Optional[str] = None
    freeze_authority: Optional[str] = None
    program_id: Optional[str] = None
    slot: Optional[int] = None
    signature: Optional[str] = None
    discovered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def with_context(self, slot: Optional[int] = None, signature: Optional[str] = None) -> 'MintInitRecord':
        """Return a copy carrying the block and transaction it was found in."""
        return MintInitRecord(
            mint_address=self.mint_address,
            decimals=self.decimals,
            mint_authority=self.mint_authority,
            freeze_authority=self.freeze_authority,
            program_id=self.program_id,
            slot=slot if slot is not None else self.slot,
            signature=signature if signature is not None else self.signature,
            discovered_at=self.discovered_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the query surface."""
        return {
            "tokenAddress": self.mint_address,
            "timestamp": self.discovered_at.isoformat(),
            "decimals": self.decimals,
            "mintAuthority": self.mint_authority,
            "freezeAuthority": self.freeze_authority,
            "programId": self.program_id,
            "slot": self.slot,
            "signature": self.signature,
        }
