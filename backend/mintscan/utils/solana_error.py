"""
Custom error types for Solana RPC operations and the mint scanner.
"""

class SolanaError(Exception):
    """Base class for Solana errors."""
    pass

class RPCError(SolanaError):
    """Base class for RPC errors."""

    def __init__(self, message: str, code: int = None):
        super().__init__(message)
        self.code = code

class RetryableError(RPCError):
    """Base class for errors that can be retried."""
    pass

class RateLimitError(RetryableError):
    """Raised when rate limit is exceeded."""
    pass

class NodeUnhealthyError(RetryableError):
    """Raised when node is unhealthy or behind."""
    pass

class ConnectionError(RetryableError):
    """Raised when connection fails."""
    pass

class TimeoutError(RetryableError):
    """Raised when request times out."""
    pass

class SlotSkippedError(RPCError):
    """Raised when a slot was skipped or its block is not available on the node."""

    def __init__(self, slot: int, message: str = None, code: int = None):
        super().__init__(message or f"Slot {slot} was skipped or is not available", code)
        self.slot = slot

class TransactionError(SolanaError):
    """Base class for transaction errors."""
    pass

class UnclassifiableTransactionError(TransactionError):
    """Raised when a transaction matches neither the legacy nor the versioned shape."""
    pass

class PersistenceError(SolanaError):
    """Raised when scanner state cannot be written to disk."""
    pass

class ScannerStartupError(SolanaError):
    """Raised when the scanner cannot establish its initial cursor."""
    pass

# Public exports
__all__ = [
    'SolanaError',
    'RPCError',
    'RetryableError',
    'RateLimitError',
    'NodeUnhealthyError',
    'ConnectionError',
    'TimeoutError',
    'SlotSkippedError',
    'TransactionError',
    'UnclassifiableTransactionError',
    'PersistenceError',
    'ScannerStartupError',
]
