"""
Background tasks
"""

from .mint_scanner import BlockFailurePolicy, CycleResult, MintScanner, ScannerState
